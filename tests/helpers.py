"""Test doubles shared across the suite."""

from __future__ import annotations

import asyncio
import copy
import inspect
from typing import Any, Callable, Dict, List, Optional, Tuple

from game_gateway import NotFoundError, TokenStore


class FakeGameServer:
    """
    Duck-typed GameServerClient backed by a route table.

    A route value may be a JSON-like object, an exception to raise, or a
    callable taking the request body and returning either (sync or async).
    """

    def __init__(self) -> None:
        self.tokens = TokenStore()
        self.routes: Dict[Tuple[str, str], Any] = {}
        self.calls: List[Tuple[str, str, Optional[dict]]] = []

    def route(self, method: str, path: str, response: Any) -> None:
        self.routes[(method.upper(), path)] = response

    def count(self, method: str, path: str) -> int:
        return sum(1 for m, p, _ in self.calls if m == method.upper() and p == path)

    def count_prefix(self, method: str, prefix: str) -> int:
        return sum(1 for m, p, _ in self.calls if m == method.upper() and p.startswith(prefix))

    def bodies(self, method: str, path: str) -> List[Optional[dict]]:
        return [b for m, p, b in self.calls if m == method.upper() and p == path]

    async def _handle(self, method: str, path: str, body: Optional[dict]) -> Any:
        self.calls.append((method, path, body))
        if (method, path) not in self.routes:
            raise NotFoundError(404, "not found", method, path)
        result = self.routes[(method, path)]
        if callable(result) and not isinstance(result, Exception):
            result = result(body)
            if inspect.isawaitable(result):
                result = await result
        if isinstance(result, Exception):
            raise result
        return copy.deepcopy(result)

    async def get(self, path: str) -> Any:
        return await self._handle("GET", path, None)

    async def get_json(self, path: str) -> Any:
        return await self._handle("GET", path, None)

    async def post(self, path: str, body: Optional[dict] = None, timeout_total_seconds: Optional[float] = None) -> Any:
        return await self._handle("POST", path, body or {})


def player_json(pid: Any, name: str = "", **extra: Any) -> Dict[str, Any]:
    data: Dict[str, Any] = {"id": pid, "name": name}
    data.update(extra)
    return data


async def wait_until(condition: Callable[[], bool], timeout: float = 2.0, step: float = 0.005) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not condition():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(step)
