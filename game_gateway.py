"""
Game server HTTP client.

Responsibilities:
- Send JSON requests to the game server REST API
- Attach the bearer token of the logged-in player
- Map every failure onto the client error taxonomy

Error taxonomy:
- TransportError: connection failures and timeouts (transient)
- HttpError: any response with status >= 400, carrying status and raw body
- NotFoundError: HttpError for 404 (player/session absent)
- ParseError: body is not the JSON the caller needs

The server has no structured error schema, so callers that need a specific
condition ("already in session") match on the error text.
"""
from __future__ import annotations

from dataclasses import dataclass
import json
from typing import Any, Dict, Optional

import aiohttp
import asyncio

import config
from logger import setup_logger


logger = setup_logger(__name__, config.LOG_FILE, config.LOG_LEVEL)


class GameClientError(RuntimeError):
    pass


class TransportError(GameClientError):
    pass


class HttpError(GameClientError):
    def __init__(self, status: int, body: str, method: str = "", path: str = "") -> None:
        self.status = int(status)
        self.body = body or ""
        self.method = method
        self.path = path
        where = f" {method} {path}" if method else ""
        super().__init__(f"HTTP {self.status}{where}: {self.body}")


class NotFoundError(HttpError):
    pass


class ParseError(GameClientError):
    pass


@dataclass
class TokenStore:
    """
    In-memory holder for the current JWT and player id.

    One instance per login session; cleared on logout.
    """

    jwt: Optional[str] = None
    player_id: Optional[str] = None

    def save_jwt(self, jwt: str) -> None:
        self.jwt = jwt

    def save_player_id(self, player_id: str) -> None:
        self.player_id = str(player_id)

    def clear(self) -> None:
        self.jwt = None
        self.player_id = None

    @property
    def has_token(self) -> bool:
        return bool(self.jwt)


class GameServerClient:
    def __init__(
        self,
        base_url: str,
        tokens: Optional[TokenStore] = None,
        timeout_total_seconds: float = 10.0,
        timeout_connect_seconds: float = 3.0,
    ) -> None:
        self.base_url = (base_url or "").rstrip("/")
        self.tokens = tokens or TokenStore()
        self.timeout_total_seconds = float(timeout_total_seconds)
        self.timeout_connect_seconds = float(timeout_connect_seconds)

    def _timeout(self, total: Optional[float] = None) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(
            total=float(total) if total is not None else self.timeout_total_seconds,
            connect=self.timeout_connect_seconds,
        )

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.tokens.jwt:
            headers["Authorization"] = f"Bearer {self.tokens.jwt}"
        return headers

    async def request_json(
        self,
        method: str,
        path: str,
        json_body: Optional[dict] = None,
        timeout_total_seconds: Optional[float] = None,
    ) -> Any:
        """
        Perform one request and return the decoded JSON body.

        An empty 2xx body decodes to {}.
        """
        if not self.base_url:
            raise TransportError("Game server base_url is empty")

        method = method.upper()
        url = f"{self.base_url}{path}"
        logger.debug(f"[GameServerClient] {method} {path} (auth={'yes' if self.tokens.jwt else 'no'})")
        try:
            async with aiohttp.ClientSession(timeout=self._timeout(timeout_total_seconds)) as session:
                async with session.request(method, url, json=json_body, headers=self._headers()) as resp:
                    raw = await resp.read()
                    status = resp.status
                    charset = resp.charset or "utf-8"
        except asyncio.TimeoutError as e:
            raise TransportError(f"Game server timeout: {method} {path}") from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Game server connection error: {method} {path}: {e}") from e

        if status >= 400:
            # Error bodies are only shown and matched on, never parsed
            body = raw.decode(charset, errors="replace")
            if status == 404:
                raise NotFoundError(status, body, method, path)
            raise HttpError(status, body, method, path)

        try:
            text = raw.decode(charset)
        except (UnicodeDecodeError, LookupError) as e:
            raise ParseError(f"Undecodable {charset} body from {method} {path}") from e

        if not text.strip():
            return {}
        try:
            return json.loads(text)
        except ValueError as e:
            raise ParseError(f"Invalid JSON from {method} {path}: {text[:200]}") from e

    async def request_object(
        self,
        method: str,
        path: str,
        json_body: Optional[dict] = None,
        timeout_total_seconds: Optional[float] = None,
    ) -> Dict[str, Any]:
        """Like request_json, but the body must be a JSON object."""
        data = await self.request_json(method, path, json_body, timeout_total_seconds)
        if not isinstance(data, dict):
            raise ParseError(f"Expected a JSON object from {method.upper()} {path}, got {type(data).__name__}")
        return data

    async def get(self, path: str) -> Dict[str, Any]:
        return await self.request_object("GET", path)

    async def get_json(self, path: str) -> Any:
        """GET for endpoints that may answer with a bare JSON list."""
        return await self.request_json("GET", path)

    async def post(
        self,
        path: str,
        body: Optional[dict] = None,
        timeout_total_seconds: Optional[float] = None,
    ) -> Dict[str, Any]:
        return await self.request_object("POST", path, json_body=body or {}, timeout_total_seconds=timeout_total_seconds)


def build_client(tokens: Optional[TokenStore] = None) -> GameServerClient:
    """Client wired from config, seeding a pre-issued token when one is configured."""
    tokens = tokens or TokenStore()
    if config.GAME_API_TOKEN and not tokens.jwt:
        tokens.save_jwt(config.GAME_API_TOKEN)
    return GameServerClient(
        base_url=config.GAME_API_BASE_URL,
        tokens=tokens,
        timeout_total_seconds=config.HTTP_TIMEOUT_TOTAL_SECONDS,
        timeout_connect_seconds=config.HTTP_TIMEOUT_CONNECT_SECONDS,
    )
