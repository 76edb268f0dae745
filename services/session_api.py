"""
Game session endpoints and the fetch/enrich pipeline.

GET /game_sessions/{id} often returns players as stubs (id + team only).
get_game_session() turns that into a fully named session:

1. fetch + parse (any known payload shape)
2. every player with an empty name is resolved through the player cache
3. session-scoped fields (team, role, host flag, challenge progress) always
   come from the session payload, never from the cached player record

A player that already has a name is never fetched, and a stub is fetched at
most once per login: after the first tick that sees a player, every later tick
is served from the cache.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

import config
from game_gateway import GameClientError, GameServerClient
from game_models import GameSession, Player
from game_protocol import JoinRequest, STATUS_LOBBY
from logger import setup_logger
from services.player_api import PlayerApiService
from session_parser import GameSessionParser, extract_host_id


logger = setup_logger(__name__, config.LOG_FILE, config.LOG_LEVEL)


class SessionApiService:
    def __init__(
        self,
        client: GameServerClient,
        player_api: PlayerApiService,
        parser: Optional[GameSessionParser] = None,
    ) -> None:
        self.client = client
        self.player_api = player_api
        self.parser = parser or GameSessionParser()

    async def create_game_session(self) -> GameSession:
        data = await self.client.post("/game_sessions")
        session = self.parser.parse(data)
        logger.info(f"[SessionApi] Session created: {session.id}")
        return session

    async def join_game_session(self, session_id: str, color: str) -> None:
        body = JoinRequest(color=color)
        logger.info(f"[SessionApi] JOIN session={session_id} color={body.color}")
        await self.client.post(f"/game_sessions/{session_id}/join", body.model_dump())

    async def leave_game_session(self, session_id: str) -> None:
        logger.info(f"[SessionApi] LEAVE session={session_id}")
        await self.client.get(f"/game_sessions/{session_id}/leave")

    async def start_game_session(self, session_id: str) -> None:
        logger.info(f"[SessionApi] START session={session_id}")
        await self.client.post(f"/game_sessions/{session_id}/start")

    async def get_game_session_status(self, session_id: str) -> str:
        data = await self.client.get(f"/game_sessions/{session_id}/status")
        return str(data.get("status") or STATUS_LOBBY)

    async def get_game_session(self, session_id: str) -> GameSession:
        """Fetch a session and fill in player names. Session-level errors propagate."""
        data = await self.client.get(f"/game_sessions/{session_id}")
        logger.debug(f"[SessionApi] GET session raw keys={sorted(data.keys())}")

        session = self.parser.parse(data)
        if not session.id:
            session = session.copy_with(id=str(session_id))

        # Checked per player, not just the first one: a later stub is enriched
        # even when earlier players already carry names.
        if session.players:
            players = await self.enrich_players(session.players, data)
            session = session.copy_with(players=players)

        return session

    async def enrich_players(self, players: List[Player], payload: Mapping[str, Any]) -> List[Player]:
        """
        Resolve unnamed players via the cache, keeping list order.

        A failed lookup keeps the stub and moves on; it is never raised.
        """
        host_id = extract_host_id(payload)
        if host_id is not None:
            logger.debug(f"[SessionApi] Host id from payload: {host_id}")

        enriched: List[Player] = []
        for stub in players:
            is_host = stub.id == host_id if host_id is not None else stub.is_host

            if stub.name:
                enriched.append(stub.copy_with(is_host=is_host))
                continue

            try:
                full = await self.player_api.get_player(stub.id)
            except GameClientError as e:
                logger.error(f"[SessionApi] Enrichment failed for player {stub.id}: {e}")
                enriched.append(stub.copy_with(is_host=is_host))
                continue

            enriched.append(merge_session_fields(full, stub, is_host))

        return enriched


def merge_session_fields(full: Player, stub: Player, is_host: bool) -> Player:
    """Identity from the fetched record, session-scoped state from the stub."""
    return full.copy_with(
        id=stub.id,
        color=stub.color,
        is_host=is_host,
        role=stub.role if stub.role is not None else full.role,
        challenges_sent=stub.challenges_sent,
        has_drawn=stub.has_drawn,
        has_guessed=stub.has_guessed,
    )

