"""
Account endpoints: create, login, me, logout.

Accounts are keyed by username; every account uses the same configured
placeholder password. This is not an authentication design, it only gets a
JWT for the game server.
"""
from __future__ import annotations

from typing import Optional

import config
from game_gateway import GameClientError, GameServerClient, HttpError, ParseError
from game_models import Player
from game_protocol import Credentials
from logger import setup_logger


logger = setup_logger(__name__, config.LOG_FILE, config.LOG_LEVEL)


# Server wording for "no such account / wrong password" and "name taken"
_AUTH_FAILURE_MARKERS = ("401", "404", "unauthorized", "invalid", "not found", "introuvable")
_ALREADY_EXISTS_MARKERS = ("already exists", "déjà", "existe")


def _mentions(error: Exception, markers) -> bool:
    # Only a server answer carries wording; transport and parse failures never match
    if not isinstance(error, HttpError):
        return False
    text = f"{error.status} {error.body}".lower()
    return any(m in text for m in markers)


class AuthApiService:
    def __init__(self, client: GameServerClient, default_password: Optional[str] = None) -> None:
        self.client = client
        self.default_password = default_password if default_password is not None else config.DEFAULT_PLAYER_PASSWORD

    @property
    def is_logged_in(self) -> bool:
        return self.client.tokens.has_token

    @property
    def current_player_id(self) -> Optional[str]:
        return self.client.tokens.player_id

    async def create_player(self, name: str, password: str) -> Player:
        body = Credentials(name=name, password=password)
        data = await self.client.post("/players", body.model_dump())
        return Player.from_json(data)

    async def login(self, name: str, password: str) -> str:
        body = Credentials(name=name, password=password)
        data = await self.client.post("/login", body.model_dump())
        jwt = data.get("jwt") or data.get("token") or data.get("access_token")
        if not jwt:
            raise ParseError("JWT missing from login response")
        self.client.tokens.save_jwt(str(jwt))
        return str(jwt)

    async def login_with_username(self, username: str) -> str:
        """
        Log in, creating the account on first use.

        A failure that looks like "unknown account" triggers account creation;
        any other failure (network, 5xx) propagates.
        """
        password = self.default_password
        try:
            jwt = await self.login(username, password)
            logger.info(f"[AuthApi] Logged in existing account: {username}")
            return jwt
        except GameClientError as e:
            if not _mentions(e, _AUTH_FAILURE_MARKERS):
                logger.error(f"[AuthApi] Unexpected login error: {e}")
                raise
            logger.info(f"[AuthApi] Unknown account, creating: {username}")

        try:
            await self.create_player(username, password)
        except GameClientError as e:
            # Created concurrently by another device
            if not _mentions(e, _ALREADY_EXISTS_MARKERS):
                logger.error(f"[AuthApi] Account creation failed: {e}")
                raise
            logger.warning(f"[AuthApi] Account appeared meanwhile, logging in: {username}")

        jwt = await self.login(username, password)
        logger.info(f"[AuthApi] Logged in new account: {username}")
        return jwt

    async def get_me(self) -> Player:
        data = await self.client.get("/me")
        player = Player.from_json(data)
        if player.id:
            self.client.tokens.save_player_id(player.id)
        logger.info(f"[AuthApi] Current player: {player.name} (id={player.id})")
        return player

    def logout(self) -> None:
        self.client.tokens.clear()
