"""Tests for the player lookup cache."""

from __future__ import annotations

import pytest

from game_gateway import HttpError, NotFoundError, TransportError
from game_models import Player
from services.player_api import PlayerApiService, PlayerCache
from tests.helpers import FakeGameServer, player_json


@pytest.fixture
def player_api(server: FakeGameServer) -> PlayerApiService:
    return PlayerApiService(server)


class TestGetPlayer:
    @pytest.mark.asyncio
    async def test_fetches_once_then_serves_cache(self, server: FakeGameServer, player_api: PlayerApiService) -> None:
        """Should issue exactly one request per id until the cache is cleared."""
        server.route("GET", "/players/p1", player_json("p1", "Ana"))

        first = await player_api.get_player("p1")
        second = await player_api.get_player("p1")

        assert first.name == second.name == "Ana"
        assert server.count("GET", "/players/p1") == 1
        assert player_api.cache_size == 1

    @pytest.mark.asyncio
    async def test_clear_forces_refetch(self, server: FakeGameServer, player_api: PlayerApiService) -> None:
        """Should fetch again after the cache is cleared (logout then next session)."""
        server.route("GET", "/players/p1", player_json("p1", "Ana"))

        await player_api.get_player("p1")
        player_api.clear_player_cache()
        await player_api.get_player("p1")

        assert server.count("GET", "/players/p1") == 2

    @pytest.mark.asyncio
    async def test_numeric_and_string_ids_share_an_entry(
        self, server: FakeGameServer, player_api: PlayerApiService
    ) -> None:
        server.route("GET", "/players/7", player_json(7, "Sev"))

        await player_api.get_player(7)
        await player_api.get_player("7")

        assert server.count("GET", "/players/7") == 1
        assert 7 in player_api.cache

    @pytest.mark.asyncio
    async def test_missing_id_in_response_is_filled(self, server: FakeGameServer, player_api: PlayerApiService) -> None:
        server.route("GET", "/players/p1", {"name": "Ana"})

        player = await player_api.get_player("p1")

        assert player.id == "p1"
        assert "p1" in player_api.cache

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            NotFoundError(404, "no player", "GET", "/players/p1"),
            TransportError("connection refused"),
            HttpError(500, "boom", "GET", "/players/p1"),
        ],
    )
    async def test_failure_propagates_and_is_not_cached(
        self, server: FakeGameServer, player_api: PlayerApiService, error: Exception
    ) -> None:
        """Should raise the gateway error and leave the cache untouched."""
        server.route("GET", "/players/p1", error)

        with pytest.raises(type(error)):
            await player_api.get_player("p1")

        assert "p1" not in player_api.cache
        assert player_api.cache_size == 0

    @pytest.mark.asyncio
    async def test_empty_id_rejected(self, server: FakeGameServer, player_api: PlayerApiService) -> None:
        with pytest.raises(ValueError):
            await player_api.get_player("")

        assert server.calls == []


class TestPlayerCache:
    def test_put_uses_requested_key(self) -> None:
        cache = PlayerCache()
        cache.put(Player(id="server-id", name="Ana"), "p1")

        assert cache.get("p1").name == "Ana"
        assert cache.get("server-id") is None

    def test_clear(self) -> None:
        cache = PlayerCache()
        cache.put(Player(id="p1"))
        cache.clear()

        assert len(cache) == 0
