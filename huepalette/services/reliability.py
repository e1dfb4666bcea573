"""
huepalette Reliability & Timeout Management
Per-operation timeouts, settled concurrent joins and the single transient retry.
"""
import asyncio
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, TypeVar

from loguru import logger

from huepalette.config import config
from huepalette.errors import ExternalAPIError, OperationTimeoutError

T = TypeVar("T")


class TimeoutManager:
    """Manages timeouts for the awaited operations of a run."""

    def __init__(self, timeouts_ms: Optional[Dict[str, int]] = None, default_timeout_ms: int = 30000):
        self.default_timeout = default_timeout_ms / 1000
        self.timeouts = {
            "foreground": config.TIMEOUT_FOREGROUND_MS / 1000,
            "semantic": config.TIMEOUT_SEMANTIC_MS / 1000,
            "total": config.TIMEOUT_TOTAL_MS / 1000,
        }
        if timeouts_ms:
            self.timeouts.update({name: ms / 1000 for name, ms in timeouts_ms.items()})

    def get_timeout(self, operation: str) -> float:
        """Timeout in seconds for ``operation``."""
        return self.timeouts.get(operation, self.default_timeout)

    @asynccontextmanager
    async def timeout(self, operation: str, custom_timeout: Optional[float] = None):
        """Context manager raising OperationTimeoutError when the block overruns."""
        timeout_value = custom_timeout or self.get_timeout(operation)

        try:
            async with asyncio.timeout(timeout_value):
                yield
        except TimeoutError as e:
            logger.error(f"Timeout in {operation} after {timeout_value}s")
            raise OperationTimeoutError(
                f"Operation {operation} timed out after {timeout_value}s",
                {"operation": operation, "timeout_s": timeout_value},
            ) from e


@dataclass
class TaskOutcome(Generic[T]):
    """Result or error of one task in a settled join."""
    name: str
    value: Optional[T] = None
    error: Optional[Exception] = None
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


async def _settle(name: str, awaitable: Awaitable[T]) -> TaskOutcome[T]:
    start = time.perf_counter()
    try:
        value = await awaitable
    except Exception as e:
        duration_ms = int((time.perf_counter() - start) * 1000)
        logger.debug(f"Task {name} failed after {duration_ms}ms: {e}")
        return TaskOutcome(name=name, error=e, duration_ms=duration_ms)
    return TaskOutcome(name=name, value=value, duration_ms=int((time.perf_counter() - start) * 1000))


async def gather_settled(tasks: Dict[str, Awaitable[Any]]) -> Dict[str, TaskOutcome[Any]]:
    """
    Run awaitables concurrently and collect every outcome.

    A failing task never cancels its siblings; its exception is captured in
    its TaskOutcome instead of propagating.

    Args:
        tasks: Mapping of task name to awaitable

    Returns:
        Mapping of task name to TaskOutcome, in the input order
    """
    outcomes = await asyncio.gather(*(_settle(name, aw) for name, aw in tasks.items()))
    return {outcome.name: outcome for outcome in outcomes}


async def retry_transient(
    func: Callable[[], Awaitable[T]],
    operation: str = "request",
    delay_ms: Optional[int] = None,
) -> T:
    """
    Call ``func``, retrying exactly once if it reports a transient provider error.

    Only ExternalAPIError with ``transient=True`` (the provider's "model
    loading" answer) is retried. Everything else, and a second failure,
    propagates.
    """
    delay_ms = config.RETRY_DELAY_MS if delay_ms is None else delay_ms
    try:
        return await func()
    except ExternalAPIError as e:
        if not e.transient:
            raise
        logger.warning(f"{operation}: provider is loading, retrying once in {delay_ms}ms")
        await asyncio.sleep(delay_ms / 1000)
        return await func()
