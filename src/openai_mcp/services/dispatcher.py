from __future__ import annotations

import asyncio
import base64
import os
import re
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar, Union

import httpx

from openai_mcp.core.exceptions import (
    ConfigurationError,
    DispatchCancelledError,
    ProviderError,
    RateLimitExceededError,
    TransportError,
)
from openai_mcp.core.logger import setup_logger
from openai_mcp.core.settings import settings
from openai_mcp.models.operation_model import (
    ModelInfo,
    ModelsList,
    OperationRequest,
    SpeechResult,
    TranscriptionResult,
)
from openai_mcp.services import request_builders as builders

logger = setup_logger(__name__)

T = TypeVar("T")

DEFAULT_RETRY_AFTER_S = 1.0
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_retry_after(value: Optional[str]) -> float:
    """Seconds to back off after a 429.

    Reads the leading integer of the header ("2", "2.5" -> 2). Missing,
    unparsable or non-positive values fall back to one second.
    """
    if value is None:
        return DEFAULT_RETRY_AFTER_S
    match = _LEADING_INT.match(str(value))
    if not match:
        return DEFAULT_RETRY_AFTER_S
    seconds = int(match.group(1))
    if seconds <= 0:
        return DEFAULT_RETRY_AFTER_S
    return float(seconds)


def _throttle_header(error: BaseException) -> tuple[bool, Optional[str]]:
    """(is this a 429, its retry-after header) for errors raised by a request builder."""
    if isinstance(error, RateLimitExceededError):
        return True, error.retry_after
    if isinstance(error, httpx.HTTPStatusError) and error.response.status_code == 429:
        return True, error.response.headers.get("retry-after")
    return False, None


class Dispatcher:
    """
    Rate-limited, retrying chokepoint for every call to the provider API.

    - Outbound requests from one instance are issued at least
      `min_interval_s` apart (issue time, not completion time).
    - HTTP 429 is retried after the provider's `retry-after` hint, up to a
      per-call retry budget. Everything else propagates unchanged.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        base_url: Optional[str] = None,
        min_interval_s: Optional[float] = None,
        max_retries: Optional[int] = None,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        key = api_key or settings.OPENAI_API_KEY or os.environ.get("OPENAI_API_KEY")
        if not key:
            raise ConfigurationError("OPENAI_API_KEY environment variable is required")

        self.base_url = (base_url or settings.OPENAI_API_BASE).rstrip("/")
        self.min_interval_s = (
            min_interval_s
            if min_interval_s is not None
            else settings.OPENAI_MIN_REQUEST_INTERVAL_MS / 1000.0
        )
        self.max_retries = max_retries if max_retries is not None else settings.OPENAI_MAX_RETRIES

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {key}"},
            timeout=timeout_s if timeout_s is not None else settings.OPENAI_REQUEST_TIMEOUT_S,
            transport=transport,
        )
        self._clock = clock
        self._sleep = sleep
        # Lock waiters resume FIFO, which fixes the order in which racing calls are issued.
        self._lock = asyncio.Lock()
        self._last_issued_at: Optional[float] = None

    async def __aenter__(self) -> "Dispatcher":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Pacing + retry
    # ------------------------------------------------------------------

    @staticmethod
    def _raise_if_cancelled(cancel_event: Optional[asyncio.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise DispatchCancelledError("Request cancelled before it was issued")

    async def _pause(self, delay: float, cancel_event: Optional[asyncio.Event]) -> None:
        """Sleep for `delay` seconds, waking early with an error if `cancel_event` fires."""
        self._raise_if_cancelled(cancel_event)
        if delay <= 0:
            return
        if cancel_event is None:
            await self._sleep(delay)
            return

        sleeper = asyncio.ensure_future(self._sleep(delay))
        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, waiter):
                if not task.done():
                    task.cancel()
        self._raise_if_cancelled(cancel_event)

    async def _abandon_acquire(self, acquirer: "asyncio.Future[bool]") -> None:
        acquirer.cancel()
        await asyncio.wait({acquirer})
        # The lock may have been handed over before the cancel landed.
        if not acquirer.cancelled() and acquirer.exception() is None:
            self._lock.release()

    async def _acquire_turn(self, cancel_event: Optional[asyncio.Event]) -> None:
        """Take the spacing lock, giving up early if `cancel_event` fires while queued."""
        if cancel_event is None:
            await self._lock.acquire()
            return

        self._raise_if_cancelled(cancel_event)
        acquirer = asyncio.ensure_future(self._lock.acquire())
        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({acquirer, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except BaseException:
            waiter.cancel()
            await self._abandon_acquire(acquirer)
            raise
        waiter.cancel()

        if cancel_event.is_set():
            await self._abandon_acquire(acquirer)
            raise DispatchCancelledError("Request cancelled while queued for its turn")

    async def _wait_for_turn(self, cancel_event: Optional[asyncio.Event]) -> None:
        await self._acquire_turn(cancel_event)
        try:
            self._raise_if_cancelled(cancel_event)
            if self._last_issued_at is not None:
                remaining = self.min_interval_s - (self._clock() - self._last_issued_at)
                if remaining > 0:
                    logger.debug(f"Spacing outbound request by {remaining * 1000:.1f}ms")
                    await self._pause(remaining, cancel_event)
            self._last_issued_at = self._clock()
        finally:
            self._lock.release()

    async def issue(
        self,
        request_builder: Callable[[], Awaitable[T]],
        retries: Optional[int] = None,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> T:
        """Run `request_builder` (exactly one HTTP call) under pacing and 429 retry.

        Every attempt, retries included, waits for its spacing turn first.
        On a 429 with budget left, sleeps for the `retry-after` hint and tries
        again with one retry fewer. Any other error, or a 429 once the budget
        is spent, is re-raised as-is.
        """
        remaining = self.max_retries if retries is None else retries

        while True:
            await self._wait_for_turn(cancel_event)
            try:
                return await request_builder()
            except (ProviderError, httpx.HTTPStatusError) as e:
                throttled, header = _throttle_header(e)
                if not throttled or remaining <= 0:
                    raise
                delay = parse_retry_after(header)
                logger.warning(
                    f"Provider throttled request (429); retrying in {delay:g}s "
                    f"({remaining} retries left)"
                )
                await self._pause(delay, cancel_event)
                remaining -= 1

    async def _send(self, request: OperationRequest) -> Any:
        logger.info(f"{request.method} {self.base_url}{request.path}")
        try:
            resp = await self._client.request(request.method, request.path, json=request.body)
        except httpx.TransportError as e:
            logger.error(f"Transport error calling {request.path}: {e!r}")
            raise TransportError(f"Request to {request.path} failed: {e}") from e

        if not resp.is_success:
            if resp.status_code == 429:
                logger.warning(f"Provider returned HTTP 429 for {request.path}")
            else:
                logger.error(f"Provider returned HTTP error {resp.status_code}: {resp.text}")
            raise ProviderError.from_response(resp)

        if request.response_mode == "binary":
            return resp.content
        return resp.json()

    async def _dispatch(self, request: OperationRequest) -> Any:
        return await self.issue(lambda: self._send(request))

    # ------------------------------------------------------------------
    # Capabilities
    # ------------------------------------------------------------------

    async def chat_completion(
        self,
        model: str,
        messages: List[Dict[str, Any]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        top_p: Optional[float] = None,
        tools: Optional[List[Any]] = None,
        tool_choice: Optional[Any] = None,
    ) -> Dict[str, Any]:
        return await self._dispatch(
            builders.build_chat_completion(
                model, messages, temperature, max_tokens, top_p, tools, tool_choice
            )
        )

    async def create_embedding(
        self,
        model: str,
        input: Union[str, List[str]],
        dimensions: Optional[int] = None,
    ) -> Dict[str, Any]:
        return await self._dispatch(builders.build_create_embedding(model, input, dimensions))

    async def list_models(self) -> ModelsList:
        return await self._dispatch(builders.build_list_models())

    async def get_model(self, model_id: str) -> ModelInfo:
        return await self._dispatch(builders.build_get_model(model_id))

    async def create_image(
        self,
        prompt: str,
        model: Optional[str] = None,
        size: Optional[str] = None,
        quality: Optional[str] = None,
        n: Optional[int] = None,
    ) -> Dict[str, Any]:
        return await self._dispatch(builders.build_create_image(prompt, model, size, quality, n))

    async def create_speech(
        self,
        model: str,
        input: str,
        voice: str,
        response_format: Optional[str] = None,
        speed: Optional[float] = None,
    ) -> SpeechResult:
        audio: bytes = await self._dispatch(
            builders.build_create_speech(model, input, voice, response_format, speed)
        )
        return {"audio_base64": base64.b64encode(audio).decode("ascii")}

    async def create_transcription(
        self,
        model: str,
        file_url: str,
        language: Optional[str] = None,
        response_format: Optional[str] = None,
    ) -> TranscriptionResult:
        """Transcribe audio referenced by `file_url`.

        Limitation: the URL is forwarded as a JSON `file` field rather than
        uploading the audio as multipart/form-data, so the provider never
        sees the actual file content.
        """
        return await self._dispatch(
            builders.build_create_transcription(model, file_url, language, response_format)
        )

    async def moderate_content(self, input: str, model: Optional[str] = None) -> Dict[str, Any]:
        return await self._dispatch(builders.build_moderate_content(input, model))
