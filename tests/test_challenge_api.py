"""Tests for challenge validation, normalization and endpoints."""

from __future__ import annotations

from typing import List

import pytest

from game_gateway import HttpError, ParseError
from services.challenge_api import (
    ChallengeApiService,
    ChallengeValidationError,
    normalize_word,
    validate_words,
)
from tests.helpers import FakeGameServer

CHALLENGES_PATH = "/game_sessions/s1/challenges"


@pytest.fixture
def api(server: FakeGameServer) -> ChallengeApiService:
    return ChallengeApiService(server)


class TestNormalizeWord:
    @pytest.mark.parametrize(
        ("word", "expected"),
        [
            ("chat", "chat"),
            ("Élève", "eleve"),
            ("garçon", "garcon"),
            ("où", "ou"),
            ("Noël", "noel"),
            ("piñata", "pinata"),
            ("arc-en-ciel", "arcenciel"),
            ("l'été 2", "lete"),
        ],
    )
    def test_folds_and_strips(self, word: str, expected: str) -> None:
        assert normalize_word(word) == expected


class TestValidateWords:
    def test_cleans_and_drops_blank_forbidden_words(self) -> None:
        words = validate_words("  Chat ", "TABLE", ["Griffe", " ", "Poil", "miaou", ""])

        assert words == ["chat", "table", "griffe", "poil", "miaou"]

    @pytest.mark.parametrize(
        ("input1", "input2", "forbidden", "message"),
        [
            ("chat", "table", ["a", "b"], "3 forbidden words"),
            ("chat", "table", ["a", "b", " "], "3 forbidden words"),
            ("chat", "table", ["Chat", "b", "c"], "different"),
            ("chat", "chat", ["a", "b", "c"], "different"),
            ("", "table", ["a", "b", "c"], "cannot be empty"),
        ],
    )
    def test_rejections(self, input1: str, input2: str, forbidden: List[str], message: str) -> None:
        with pytest.raises(ChallengeValidationError, match=message):
            validate_words(input1, input2, forbidden)

    def test_count_checked_before_uniqueness(self) -> None:
        """Should report the missing forbidden words first, even when words also repeat."""
        with pytest.raises(ChallengeValidationError, match="3 forbidden words"):
            validate_words("chat", "chat", ["x"])


class TestSendChallenge:
    @pytest.mark.asyncio
    async def test_sends_normalized_words(self, server: FakeGameServer, api: ChallengeApiService) -> None:
        """Should lowercase the fixed words and fold the guessable ones before posting."""
        server.route("POST", CHALLENGES_PATH, {"id": 9, "first_word": "un", "second_word": "eleve"})

        challenge = await api.send_challenge("s1", "Un", " Élève ", "Sur", "Une", "Chaise", ["École", "Prof", "Cahier"])

        assert server.bodies("POST", CHALLENGES_PATH) == [
            {
                "first_word": "un",
                "second_word": "eleve",
                "third_word": "sur",
                "fourth_word": "une",
                "fifth_word": "chaise",
                "forbidden_words": ["ecole", "prof", "cahier"],
            }
        ]
        assert challenge.id == "9"
        assert challenge.input1 == "eleve"
        assert challenge.game_session_id == "s1"

    @pytest.mark.asyncio
    async def test_invalid_words_never_reach_the_server(
        self, server: FakeGameServer, api: ChallengeApiService
    ) -> None:
        with pytest.raises(ChallengeValidationError):
            await api.send_challenge("s1", "un", "chat", "sur", "une", "table", ["a", "b"])

        assert server.calls == []

    @pytest.mark.asyncio
    async def test_target_without_letters(self, server: FakeGameServer, api: ChallengeApiService) -> None:
        with pytest.raises(ChallengeValidationError, match="letters"):
            await api.send_challenge("s1", "un", "123", "sur", "une", "table", ["a", "b", "c"])

        assert server.calls == []

    @pytest.mark.asyncio
    async def test_server_error_propagates(self, server: FakeGameServer, api: ChallengeApiService) -> None:
        server.route("POST", CHALLENGES_PATH, HttpError(400, "Max challenges reached"))

        with pytest.raises(HttpError, match="Max challenges"):
            await api.send_challenge("s1", "un", "chat", "sur", "une", "table", ["a", "b", "c"])


class TestListing:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("method_name", "suffix"),
        [
            ("get_my_challenges", "/myChallenges"),
            ("get_my_challenges_to_guess", "/myChallengesToGuess"),
            ("list_session_challenges", "/challenges"),
        ],
    )
    async def test_bare_list(
        self, server: FakeGameServer, api: ChallengeApiService, method_name: str, suffix: str
    ) -> None:
        server.route("GET", f"/game_sessions/s1{suffix}", [{"id": "c1"}, {"id": "c2"}])

        challenges = await getattr(api, method_name)("s1")

        assert [c.id for c in challenges] == ["c1", "c2"]

    @pytest.mark.asyncio
    async def test_items_envelope(self, server: FakeGameServer, api: ChallengeApiService) -> None:
        server.route("GET", "/game_sessions/s1/myChallenges", {"items": [{"id": "c1"}], "total": 1})

        assert [c.id for c in await api.get_my_challenges("s1")] == ["c1"]

    @pytest.mark.asyncio
    async def test_empty_object_is_empty_list(self, server: FakeGameServer, api: ChallengeApiService) -> None:
        server.route("GET", "/game_sessions/s1/myChallenges", {})

        assert await api.get_my_challenges("s1") == []

    @pytest.mark.asyncio
    async def test_non_list_is_parse_error(self, server: FakeGameServer, api: ChallengeApiService) -> None:
        server.route("GET", "/game_sessions/s1/challenges", "nope")

        with pytest.raises(ParseError):
            await api.list_session_challenges("s1")


class TestAnswer:
    @pytest.mark.asyncio
    async def test_posts_answer(self, server: FakeGameServer, api: ChallengeApiService) -> None:
        path = f"{CHALLENGES_PATH}/c3/answer"
        server.route("POST", path, {})

        await api.answer_challenge("s1", "c3", "un chat sur une table", True)

        assert server.bodies("POST", path) == [{"answer": "un chat sur une table", "is_resolved": True}]
