"""
SessionSynchronizer: keeps the current game session fresh by polling.

Owns, for one login session:
- the current GameSession value
- session_stream: every refreshed session (player data can change without
  a status change)
- status_stream / phase_stream: only when the value actually changed
- the polling timer

The player cache belongs to the PlayerApiService passed in; this object only
exposes clearing it, so both can be invalidated together at logout.

States: Idle -> Polling -> Idle. Starting twice is a no-op with a warning;
stopping is always safe.
"""

from __future__ import annotations

from typing import Optional

import config
from app.polling import PollingService
from app.streams import ValueStream
from game_models import GameSession
from logger import setup_logger
from services.player_api import PlayerApiService
from services.session_api import SessionApiService


logger = setup_logger(__name__, config.LOG_FILE, config.LOG_LEVEL)

_UNSET = object()


class SessionSynchronizer:
    def __init__(
        self,
        session_api: SessionApiService,
        player_api: PlayerApiService,
        interval: float = config.SESSION_POLLING_INTERVAL_SECONDS,
    ):
        self.session_api = session_api
        self.player_api = player_api
        self.interval = interval

        self.session_stream: ValueStream[Optional[GameSession]] = ValueStream("SessionStream")
        self.status_stream: ValueStream[str] = ValueStream("StatusStream")
        self.phase_stream: ValueStream[Optional[str]] = ValueStream("PhaseStream")

        self._current: Optional[GameSession] = None
        self._session_id: Optional[str] = None
        self._last_status = _UNSET
        self._last_phase = _UNSET
        self._poller: Optional[PollingService] = None
        self._generation = 0

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def current_session(self) -> Optional[GameSession]:
        return self._current

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    @property
    def is_polling(self) -> bool:
        return self._poller is not None and self._poller.is_polling

    def set_session(self, session: Optional[GameSession]) -> None:
        """Replace the current value (after create/leave) and notify subscribers."""
        if session is None:
            self.stop_polling()
            self._generation += 1
            self._current = None
            self._session_id = None
            self.session_stream.emit(None)
            return
        self._apply(session)

    def _apply(self, session: GameSession) -> GameSession:
        previous = self._current

        # A payload without host_id must not erase a host we already know
        if (
            session.host_id is None
            and previous is not None
            and previous.id == session.id
            and previous.host_id is not None
        ):
            session = session.copy_with(host_id=previous.host_id)

        self._current = session
        self._session_id = session.id
        self.session_stream.emit(session)

        if session.status != self._last_status:
            logger.info(f"[SessionSync] status: {self._describe(self._last_status)} -> {session.status}")
            self._last_status = session.status
            self.status_stream.emit(session.status)

        if session.game_phase != self._last_phase:
            logger.info(f"[SessionSync] phase: {self._describe(self._last_phase)} -> {session.game_phase}")
            self._last_phase = session.game_phase
            self.phase_stream.emit(session.game_phase)

        return session

    @staticmethod
    def _describe(value: object) -> str:
        return "<none>" if value is _UNSET else str(value)

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------
    async def refresh(self, session_id: Optional[str] = None) -> GameSession:
        """Fetch + enrich once. Errors propagate to the caller."""
        sid = session_id or self._session_id
        if not sid:
            raise ValueError("No session to refresh")
        session = await self.session_api.get_game_session(sid)
        return self._apply(session)

    def start_polling(self, session_id: Optional[str] = None, interval: Optional[float] = None) -> bool:
        if session_id:
            self._session_id = str(session_id)
        if not self._session_id:
            raise ValueError("No session to poll")
        if self.is_polling:
            logger.warning("[SessionSync] Polling already running")
            return False
        # Reuse the poller so a tick left over from a previous run still
        # counts as in flight
        if self._poller is None:
            self._poller = PollingService(self.interval, self._poll_once, name="SessionPolling")
        if interval is not None:
            self._poller.interval = float(interval)
        return self._poller.start()

    async def _poll_once(self) -> None:
        # Errors are logged by the poller; the next tick retries
        generation = self._generation
        if not self._session_id:
            logger.debug("[SessionSync] No current session, skipping tick")
            return
        session = await self.session_api.get_game_session(self._session_id)
        if generation != self._generation:
            logger.debug("[SessionSync] Session was reset during the tick, dropping result")
            return
        self._apply(session)

    def stop_polling(self) -> None:
        if self._poller is not None:
            self._poller.stop()

    def clear_player_cache(self) -> None:
        self.player_api.clear_player_cache()

    def reset(self) -> None:
        """Forget the current session (leave/logout). Streams stay open."""
        self.stop_polling()
        self._generation += 1
        self._current = None
        self._session_id = None
        self._last_status = _UNSET
        self._last_phase = _UNSET
        self.session_stream.emit(None)

    async def aclose(self) -> None:
        """Stop polling, wait for an in-flight tick, close every stream."""
        if self._poller is not None:
            await self._poller.aclose()
            self._poller = None
        self.session_stream.close()
        self.status_stream.close()
        self.phase_stream.close()
