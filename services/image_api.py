"""
Image generation for drawing challenges.

The draw endpoint is slow and occasionally fails; calls are low volume (one
per challenge), so a plain bounded retry with a growing delay is enough:
wait 2s after the first failure, 4s after the second, then give up and
re-raise the last error.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

import config
from game_gateway import GameClientError, GameServerClient
from game_protocol import DrawRequest
from logger import setup_logger


logger = setup_logger(__name__, config.LOG_FILE, config.LOG_LEVEL)

T = TypeVar("T")


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = config.IMAGE_MAX_RETRIES,
    delay_step: float = config.IMAGE_RETRY_DELAY_STEP_SECONDS,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """
    Await operation() up to max_retries times.

    After failed attempt n the wait is delay_step * n seconds. Only client
    errors (transport / HTTP) are retried; anything else propagates at once.
    """
    if max_retries < 1:
        raise ValueError("max_retries must be >= 1")

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_retries),
        wait=wait_incrementing(start=delay_step, increment=delay_step),
        retry=retry_if_exception_type(GameClientError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
        sleep=sleep,
    )
    async for attempt in retrying:
        with attempt:
            result = await operation()
    return result


def _extract_image_url(data: Dict[str, Any]) -> str:
    challenge = data.get("challenge") if isinstance(data.get("challenge"), dict) else {}
    for value in (
        data.get("image_url"),
        data.get("imageUrl"),
        data.get("url"),
        challenge.get("image_url"),
        challenge.get("imageUrl"),
    ):
        if value:
            return str(value)
    return ""


class ImageApiService:
    def __init__(self, client: GameServerClient, timeout_total_seconds: Optional[float] = None) -> None:
        self.client = client
        self.timeout_total_seconds = (
            timeout_total_seconds if timeout_total_seconds is not None else config.IMAGE_HTTP_TIMEOUT_TOTAL_SECONDS
        )

    async def generate_image_for_challenge(self, session_id: str, challenge_id: str, prompt: str) -> str:
        """
        Ask the server to draw a challenge. Returns the image URL, or "" when
        the response does not carry one yet (it shows up on a later refresh).
        """
        body = DrawRequest(prompt=prompt)
        data = await self.client.post(
            f"/game_sessions/{session_id}/challenges/{challenge_id}/draw",
            body.model_dump(),
            timeout_total_seconds=self.timeout_total_seconds,
        )
        url = _extract_image_url(data)
        if not url:
            logger.warning(f"[ImageApi] No image URL for challenge {challenge_id}, will come with next refresh")
        return url

    async def generate_image_with_retry(
        self,
        session_id: str,
        challenge_id: str,
        prompt: str,
        max_retries: int = config.IMAGE_MAX_RETRIES,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> str:
        return await with_retry(
            lambda: self.generate_image_for_challenge(session_id, challenge_id, prompt),
            max_retries=max_retries,
            sleep=sleep,
        )
