"""
Lobby flow orchestration (application layer).

LobbyController owns everything that lives for one login session:
- token store, API services, player cache
- SessionSynchronizer (current session + polling + streams)

User-initiated actions (login, room lifecycle, challenges)
report failures through `error_message` and return False instead of raising;
background polling failures stay silent. logout() is the single invalidation
point: polling stops, the player cache and tokens are cleared together.
"""

from typing import List, Optional

import config
from logger import setup_logger

from game_gateway import GameClientError, GameServerClient, TokenStore, build_client
from game_models import Challenge, GameSession, Player
from game_protocol import STATUS_DRAWING, STATUS_LOBBY
from services.auth_api import AuthApiService
from services.challenge_api import ChallengeApiService
from services.image_api import ImageApiService
from services.player_api import PlayerApiService
from services.session_api import SessionApiService
from app.session_sync import SessionSynchronizer
from app.team_roles import all_players_have_roles, assign_initial_roles, available_team_color, team_is_full


logger = setup_logger(__name__, config.LOG_FILE, config.LOG_LEVEL)


# The server only reports these conditions as free text
_ALREADY_IN_SESSION = ("already in game session", "player already in", "already in room", "already in session")
_NOT_IN_SESSION = ("not in game session", "player not in")


def _message_has(error: Exception, markers) -> bool:
    text = str(error).lower()
    return any(m in text for m in markers)


class LobbyController:
    def __init__(
        self,
        client: Optional[GameServerClient] = None,
        polling_interval: float = config.LOBBY_POLLING_INTERVAL_SECONDS,
    ):
        self.client = client or build_client(TokenStore())
        self.auth = AuthApiService(self.client)
        self.players = PlayerApiService(self.client)
        self.sessions = SessionApiService(self.client, self.players)
        self.challenges = ChallengeApiService(self.client)
        self.images = ImageApiService(self.client)
        self.sync = SessionSynchronizer(self.sessions, self.players, interval=polling_interval)

        self.current_player: Optional[Player] = None
        self.is_loading = False
        self.is_changing_team = False
        self.error_message: Optional[str] = None

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------
    @property
    def current_session(self) -> Optional[GameSession]:
        return self.sync.current_session

    @property
    def is_host(self) -> bool:
        session = self.current_session
        if session is None or self.current_player is None:
            return False
        return session.is_player_host(self.current_player.id)

    def can_start_game(self) -> bool:
        session = self.current_session
        return session is not None and self.is_host and session.is_ready_to_start

    def is_player_in_team(self, color: str) -> bool:
        session = self.current_session
        if session is None or self.current_player is None:
            return False
        return any(p.id == self.current_player.id and p.color == color for p in session.players)

    def _fail(self, action: str, error: Exception) -> bool:
        logger.error(f"[LobbyController] {action} failed: {error}")
        self.error_message = str(error)
        return False

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------
    async def login(self, username: str) -> bool:
        self.is_loading = True
        self.error_message = None
        try:
            await self.auth.login_with_username(username)
            self.current_player = await self.auth.get_me()
            return True
        except GameClientError as e:
            return self._fail("Login", e)
        finally:
            self.is_loading = False

    async def logout(self) -> None:
        self.sync.reset()
        self.sync.clear_player_cache()
        self.auth.logout()
        self.current_player = None
        self.error_message = None
        logger.info("[LobbyController] Logged out, session and player cache cleared")

    # ------------------------------------------------------------------
    # Room lifecycle
    # ------------------------------------------------------------------
    async def create_room(self) -> Optional[GameSession]:
        self.is_loading = True
        self.error_message = None
        try:
            session = await self.sessions.create_game_session()
            # The creator is the host even when the server does not say so
            if session.host_id is None and self.current_player is not None:
                session = session.copy_with(host_id=self.current_player.id)
            self.sync.set_session(session)
            return session
        except GameClientError as e:
            self._fail("Create room", e)
            return None
        finally:
            self.is_loading = False

    async def join_room(self, session_id: str, color: Optional[str] = None) -> bool:
        self.is_loading = True
        self.error_message = None
        try:
            if color is None:
                snapshot = await self.sessions.get_game_session(session_id)
                color = available_team_color(snapshot)
                logger.info(f"[LobbyController] Auto-assigned team {color}")
            await self._safe_join(session_id, color)
            await self.sync.refresh(session_id)
            return True
        except (GameClientError, ValueError) as e:
            return self._fail("Join room", e)
        finally:
            self.is_loading = False

    async def _safe_join(self, session_id: str, color: str) -> None:
        try:
            await self.sessions.join_game_session(session_id, color)
        except GameClientError as e:
            if not _message_has(e, _ALREADY_IN_SESSION):
                raise
            logger.warning(f"[LobbyController] Already in session {session_id}, continuing")

    async def change_team(self, color: str) -> bool:
        session = self.current_session
        if session is None or self.is_changing_team or self.is_player_in_team(color):
            return False
        if team_is_full(session, color):
            self.error_message = f"Team {color} is full ({config.PLAYERS_PER_TEAM}/{config.PLAYERS_PER_TEAM})"
            return False

        self.is_changing_team = True
        self.error_message = None
        try:
            try:
                await self.sessions.leave_game_session(session.id)
            except GameClientError as e:
                if not _message_has(e, _NOT_IN_SESSION):
                    raise
            await self._safe_join(session.id, color)
            await self.sync.refresh(session.id)
            return True
        except (GameClientError, ValueError) as e:
            return self._fail("Change team", e)
        finally:
            self.is_changing_team = False

    async def start_game(self) -> bool:
        session = self.current_session
        if session is None or not self.can_start_game():
            return False
        if session.status != STATUS_LOBBY:
            logger.warning(f"[LobbyController] Session {session.id} already started ({session.status})")
            return False

        self.is_loading = True
        self.error_message = None
        try:
            await self.sessions.start_game_session(session.id)
            session = await self.sync.refresh(session.id)

            if not all_players_have_roles(session):
                logger.warning("[LobbyController] Server sent no roles, assigning locally")
                session = assign_initial_roles(session)
            if session.game_phase is None:
                session = session.copy_with(game_phase=STATUS_DRAWING)
            self.sync.set_session(session)
            return True
        except GameClientError as e:
            return self._fail("Start game", e)
        finally:
            self.is_loading = False

    async def leave_room(self) -> bool:
        session = self.current_session
        if session is None:
            return True
        self.is_loading = True
        self.error_message = None
        try:
            await self.sessions.leave_game_session(session.id)
            self.sync.reset()
            return True
        except GameClientError as e:
            return self._fail("Leave room", e)
        finally:
            self.is_loading = False

    # ------------------------------------------------------------------
    # Challenges
    # ------------------------------------------------------------------
    async def send_challenge(
        self,
        article1: str,
        input1: str,
        preposition: str,
        article2: str,
        input2: str,
        forbidden_words: List[str],
    ) -> Optional[Challenge]:
        """Send a challenge for the current session, then refresh so challenges_sent moves."""
        session = self.current_session
        if session is None:
            return None
        self.error_message = None
        try:
            challenge = await self.challenges.send_challenge(
                session.id, article1, input1, preposition, article2, input2, forbidden_words
            )
        except (GameClientError, ValueError) as e:
            self._fail("Send challenge", e)
            return None
        await self.refresh_session()
        return challenge

    async def challenges_to_guess(self) -> List[Challenge]:
        session = self.current_session
        if session is None:
            return []
        try:
            return await self.challenges.get_my_challenges_to_guess(session.id)
        except GameClientError as e:
            self._fail("Load challenges", e)
            return []

    async def answer_challenge(self, challenge_id: str, answer: str, is_resolved: bool) -> bool:
        session = self.current_session
        if session is None:
            return False
        self.error_message = None
        try:
            await self.challenges.answer_challenge(session.id, challenge_id, answer, is_resolved)
            return True
        except GameClientError as e:
            return self._fail("Answer challenge", e)

    async def generate_challenge_image(self, challenge_id: str, prompt: str) -> Optional[str]:
        """Draw a challenge image with retries. Returns the URL ("" if pending), None on failure."""
        session = self.current_session
        if session is None:
            return None
        self.error_message = None
        try:
            return await self.images.generate_image_with_retry(session.id, challenge_id, prompt)
        except (GameClientError, ValueError) as e:
            self._fail("Image generation", e)
            return None

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------
    def start_polling(self) -> bool:
        if self.current_session is None:
            return False
        return self.sync.start_polling(self.current_session.id)

    def stop_polling(self) -> None:
        self.sync.stop_polling()

    async def refresh_session(self) -> Optional[GameSession]:
        """Manual refresh; like a poll tick, failures are logged, not surfaced."""
        if self.sync.session_id is None:
            return None
        try:
            return await self.sync.refresh()
        except GameClientError as e:
            logger.error(f"[LobbyController] Refresh failed: {e}")
            return None

    async def aclose(self) -> None:
        await self.sync.aclose()


async def run_until_finished(controller: LobbyController, poll_interval: float) -> Optional[GameSession]:
    """Poll the controller's session until it finishes (used by the CLI)."""
    updates = controller.sync.session_stream.listen()
    controller.sync.start_polling(interval=poll_interval)
    try:
        async for session in updates:
            if session is not None and session.is_finished:
                return session
        return controller.current_session
    finally:
        controller.stop_polling()
        await updates.aclose()
