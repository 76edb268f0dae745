"""
Phase routing logic.

Decides which part of the game a client should be showing for a session, and
lets callers wait for the session to get there.

The server reports progress in two overlapping fields, `status` and
`game_phase`, and does not always move them together. Rules, in order:
1. "finished" in either field -> results
2. a known in-game phase -> that phase
3. a known in-game status -> that status ("playing" means drawing)
4. lobby status -> lobby
5. anything else (a value added server-side) -> generic game screen
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional, TypeVar

import config
from app.session_sync import SessionSynchronizer
from app.streams import ValueStream
from game_models import GameSession
from game_protocol import (
    STATUS_CHALLENGE,
    STATUS_DRAWING,
    STATUS_FINISHED,
    STATUS_GUESSING,
    STATUS_LOBBY,
    STATUS_PLAYING,
)
from logger import setup_logger


logger = setup_logger(__name__, config.LOG_FILE, config.LOG_LEVEL)

T = TypeVar("T")

DEST_LOBBY = "lobby"
DEST_CHALLENGE = "challenge"
DEST_DRAWING = "drawing"
DEST_GUESSING = "guessing"
DEST_RESULTS = "results"
DEST_GAME = "game"

_IN_GAME = {
    STATUS_CHALLENGE: DEST_CHALLENGE,
    STATUS_DRAWING: DEST_DRAWING,
    STATUS_GUESSING: DEST_GUESSING,
}


def _norm(value: Any) -> str:
    return "" if value is None else str(value).strip().lower()


def resolve_destination(session: Optional[GameSession]) -> str:
    if session is None:
        return DEST_LOBBY

    status = _norm(session.status)
    phase = _norm(session.game_phase)

    if STATUS_FINISHED in (status, phase):
        return DEST_RESULTS
    if phase in _IN_GAME:
        return _IN_GAME[phase]
    if status in _IN_GAME:
        return _IN_GAME[status]
    if status == STATUS_PLAYING:
        return DEST_DRAWING
    if status == STATUS_LOBBY or not status:
        return DEST_LOBBY
    return DEST_GAME


async def wait_for_value(
    stream: ValueStream[T],
    predicate: Callable[[T], bool],
    timeout: Optional[float] = None,
) -> T:
    """
    First value on the stream matching predicate (the latest value counts).

    Raises asyncio.TimeoutError after `timeout` seconds, RuntimeError if the
    stream closes first.
    """
    latest = stream.latest
    if latest is not None and predicate(latest):
        return latest

    values = stream.listen()

    async def _wait() -> T:
        async for value in values:
            if predicate(value):
                return value
        raise RuntimeError(f"{stream.name} closed while waiting")

    try:
        return await asyncio.wait_for(_wait(), timeout)
    finally:
        await values.aclose()


async def wait_for_destination(
    sync: SessionSynchronizer,
    destination: str,
    timeout: Optional[float] = config.PHASE_WAIT_TIMEOUT_SECONDS,
) -> GameSession:
    """Wait until the synchronized session resolves to `destination`."""
    session = await wait_for_value(
        sync.session_stream,
        lambda s: s is not None and resolve_destination(s) == destination,
        timeout,
    )
    logger.info(f"[PhaseRouter] Reached '{destination}' (status={session.status}, phase={session.game_phase})")
    return session
