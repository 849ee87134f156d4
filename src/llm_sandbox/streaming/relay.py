"""
Streaming relay between an upstream provider and a stream consumer.

One ``StreamRelay`` handles one streaming request:

    INIT --open()--> STREAMING --stream()--> DONE | ERRORED | CANCELLED

``open()`` issues the upstream call. ``stream()`` pulls bytes from the
upstream body through the frame decoder and the normalizer and yields outbound
SSE frames. Exactly one completion log record is written per request, except
when the consumer cancels or the provider is not configured.
"""

import asyncio
import time
from collections.abc import AsyncIterator
from enum import Enum

import httpx

from llm_sandbox.models.completion import CompletionRequest
from llm_sandbox.providers.base import ChatProvider
from llm_sandbox.storage.completion_log import CompletionLogger
from llm_sandbox.streaming.normalizer import StreamAccumulator, normalize_events
from llm_sandbox.streaming.sse import DONE_FRAME, format_sse, iter_frames
from llm_sandbox.utils.errors import ConfigurationError
from llm_sandbox.utils.logging import get_logger
from llm_sandbox.utils.token_tracking import UsageTracker

logger = get_logger(__name__)


class RelayState(str, Enum):
    INIT = "init"
    STREAMING = "streaming"
    DONE = "done"
    ERRORED = "errored"
    CANCELLED = "cancelled"


def error_message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class StreamRelay:
    """Relay for a single streaming completion request. Not reusable."""

    def __init__(
        self,
        provider: ChatProvider,
        request: CompletionRequest,
        completion_logger: CompletionLogger,
        usage_tracker: UsageTracker | None = None,
        start_time: float | None = None,
    ) -> None:
        """
        Initialize the relay.

        Args:
            provider: Upstream provider serving the request
            request: Validated completion request
            completion_logger: Log receiving the terminal record
            usage_tracker: Optional usage history, updated on success
            start_time: Request start (``time.time()``), defaults to now
        """
        self.provider = provider
        self.request = request
        self.completion_logger = completion_logger
        self.usage_tracker = usage_tracker
        self.start_time = start_time if start_time is not None else time.time()
        self.state = RelayState.INIT
        self.accumulator = StreamAccumulator(model_used=provider.resolve_model(request))
        self._logged = False

    def _duration_ms(self) -> int:
        return int((time.time() - self.start_time) * 1000)

    def _record(self, error: str | None = None) -> None:
        if self._logged:
            return
        self._logged = True

        acc = self.accumulator
        self.completion_logger.log(
            model=acc.model_used,
            template=self.request.template,
            prompt=self.request.log_prompt(),
            system_prompt=self.request.system_prompt,
            max_tokens=self.provider.resolve_max_tokens(self.request),
            content=acc.full_content,
            reasoning_content=acc.full_reasoning,
            usage=acc.final_usage,
            duration_ms=self._duration_ms(),
            error=error,
        )

    async def open(self) -> httpx.Response:
        """
        Issue the upstream streaming call.

        A failure here ends the request before any outbound byte is produced.
        It is logged (empty content, zero usage) unless the provider was never
        called because of missing configuration.

        Raises:
            ConfigurationError: If the provider credential is missing
            UpstreamError: If the provider rejects the request
        """
        try:
            response = await self.provider.start_stream(self.request)
        except ConfigurationError:
            self.state = RelayState.ERRORED
            raise
        except Exception as exc:
            self.state = RelayState.ERRORED
            logger.error(
                "Failed to open upstream stream",
                extra={
                    "provider": self.provider.name,
                    "error": error_message(exc),
                    "error_type": type(exc).__name__,
                },
            )
            self._record(error=error_message(exc))
            raise

        self.state = RelayState.STREAMING
        return response

    async def stream(self, response: httpx.Response) -> AsyncIterator[str]:
        """
        Yield outbound SSE frames for the upstream response.

        Ends with ``data: [DONE]`` on success. On an upstream failure the error
        is logged with the partial accumulator state and re-raised, so the
        outbound stream ends without the sentinel.
        """
        events = normalize_events(
            iter_frames(response.aiter_bytes()), self.provider, self.accumulator
        )
        try:
            async for event in events:
                yield format_sse(event.model_dump_json())

        except (asyncio.CancelledError, GeneratorExit):
            self.state = RelayState.CANCELLED
            logger.info(
                "Client disconnected, stream cancelled",
                extra={
                    "provider": self.provider.name,
                    "events_relayed": self.accumulator.event_count,
                },
            )
            raise

        except Exception as exc:
            self.state = RelayState.ERRORED
            logger.error(
                "Upstream stream failed",
                extra={
                    "provider": self.provider.name,
                    "error": error_message(exc),
                    "error_type": type(exc).__name__,
                    "events_relayed": self.accumulator.event_count,
                },
            )
            self._record(error=error_message(exc))
            raise

        finally:
            await events.aclose()
            await response.aclose()

        self.state = RelayState.DONE
        self._record()
        if self.usage_tracker is not None and self.request.track_tokens:
            self.usage_tracker.track(
                self.accumulator.final_usage,
                self.request.log_prompt(),
                self.accumulator.model_used,
                self.request.system_prompt,
            )

        logger.info(
            "Stream completed",
            extra={
                "provider": self.provider.name,
                "model": self.accumulator.model_used,
                "events_relayed": self.accumulator.event_count,
                "total_tokens": self.accumulator.final_usage.total_tokens,
                "duration_ms": self._duration_ms(),
            },
        )
        yield DONE_FRAME
