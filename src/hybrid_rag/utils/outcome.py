"""Explicit outcome type for the optional subsystems.

Embedding, vector-store and disk-cache calls return an ``Outcome`` instead of
raising, so degraded paths show up in signatures. ``attempt`` turns a
coroutine into an outcome (with an optional timeout) and ``with_fallback``
unwraps one with a default.
"""

from __future__ import annotations
import asyncio
import logging
from typing import Awaitable, Callable, Generic, Optional, Tuple, Type, TypeVar

from ..exceptions import ConfigurationError

T = TypeVar("T")

STATUS_OK = "ok"
STATUS_FAILED = "failed"
STATUS_TIMEOUT = "timeout"
STATUS_UNAVAILABLE = "unavailable"


class Outcome(Generic[T]):
    """Result of an optional operation: a value, or the reason there is none."""

    __slots__ = ("value", "status", "error")

    def __init__(
        self,
        value: Optional[T] = None,
        status: str = STATUS_OK,
        error: Optional[BaseException] = None,
    ):
        self.value = value
        self.status = status
        self.error = error

    @classmethod
    def ok(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failed(cls, error: BaseException) -> "Outcome[T]":
        return cls(status=STATUS_FAILED, error=error)

    @classmethod
    def timed_out(cls, error: Optional[BaseException] = None) -> "Outcome[T]":
        return cls(status=STATUS_TIMEOUT, error=error)

    @classmethod
    def unavailable(cls, reason: str = "subsystem disabled") -> "Outcome[T]":
        return cls(status=STATUS_UNAVAILABLE, error=RuntimeError(reason))

    @property
    def is_ok(self) -> bool:
        return self.status == STATUS_OK

    def __repr__(self) -> str:
        if self.is_ok:
            return f"Outcome(ok, value={self.value!r})"
        return f"Outcome({self.status}, error={self.error!r})"


async def attempt(
    operation: Callable[[], Awaitable[T]],
    description: str,
    logger: logging.Logger,
    timeout: Optional[float] = None,
    propagate: Tuple[Type[BaseException], ...] = (ConfigurationError,),
) -> Outcome[T]:
    """
    Run an optional async operation and capture its failure as an Outcome.

    Exceptions listed in ``propagate`` are hard errors and are re-raised.

    Args:
        operation: Zero-argument callable returning an awaitable
        description: Short label used in log messages
        logger: Logger for degraded-path warnings
        timeout: Seconds before the operation counts as timed out (None = no limit)
        propagate: Exception types that must reach the caller

    Returns:
        Outcome carrying the value, or the failure status and error
    """
    try:
        if timeout is None:
            value = await operation()
        else:
            value = await asyncio.wait_for(operation(), timeout=timeout)
    except propagate:
        raise
    except asyncio.TimeoutError as e:
        logger.warning(f"{description} timed out after {timeout}s")
        return Outcome.timed_out(e)
    except Exception as e:
        logger.warning(f"{description} failed: {e}")
        return Outcome.failed(e)
    return Outcome.ok(value)


def with_fallback(outcome: Outcome[T], fallback: T) -> T:
    """Return the outcome's value when it succeeded, otherwise ``fallback``."""
    if outcome.is_ok:
        return outcome.value
    return fallback
