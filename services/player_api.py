"""
Player lookups with a per-login cache.

Sessions often reference players by id only. Names do not change while a
room is alive, so a player fetched once is served from the cache until the
cache is cleared (logout, or an explicit clear). No TTL and no eviction: a
room holds a handful of players.

Concurrent misses for the same id are not de-duplicated; with cooperative
scheduling and sequential enrichment that only happens across devices.
"""

from typing import Any, Dict, Optional

import config
from game_gateway import GameServerClient
from game_models import Player, as_id
from logger import setup_logger


logger = setup_logger(__name__, config.LOG_FILE, config.LOG_LEVEL)


class PlayerCache:
    def __init__(self) -> None:
        self._players: Dict[str, Player] = {}

    def get(self, player_id: Any) -> Optional[Player]:
        return self._players.get(as_id(player_id) or "")

    def put(self, player: Player, player_id: Any = None) -> None:
        self._players[as_id(player_id) or player.id] = player

    def clear(self) -> None:
        self._players.clear()

    def __contains__(self, player_id: object) -> bool:
        return (as_id(player_id) or "") in self._players

    def __len__(self) -> int:
        return len(self._players)


class PlayerApiService:
    def __init__(self, client: GameServerClient, cache: Optional[PlayerCache] = None) -> None:
        self.client = client
        self.cache = cache if cache is not None else PlayerCache()

    @property
    def cache_size(self) -> int:
        return len(self.cache)

    async def get_player(self, player_id: Any) -> Player:
        """
        Cached player record; fetches GET /players/{id} on a miss.

        Raises NotFoundError / TransportError / HttpError from the gateway;
        a failed fetch leaves the cache untouched.
        """
        pid = as_id(player_id)
        if pid is None:
            raise ValueError("player_id is empty")

        cached = self.cache.get(pid)
        if cached is not None:
            logger.debug(f"[PlayerApi] Cache HIT for player {pid}")
            return cached

        logger.info(f"[PlayerApi] Cache MISS for player {pid} - fetching")
        data = await self.client.get(f"/players/{pid}")
        player = Player.from_json(data)
        if not player.id:
            # Some endpoints omit the id of the requested resource
            player = player.copy_with(id=pid)

        self.cache.put(player, pid)
        return player

    def clear_player_cache(self) -> None:
        self.cache.clear()
        logger.info("[PlayerApi] Player cache cleared")
