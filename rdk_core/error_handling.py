"""Exceptions and retry helpers for remote robot operations.

Adapters never retry or translate errors: a failed RPC surfaces as the
original ``grpc.aio.AioRpcError``.  The helpers at the bottom of this module
are for application code (the MCP server) that wants structured ``{"ok":
False, ...}`` results and exponential backoff on transient failures.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import time
from typing import Optional

import grpc

logger = logging.getLogger(__name__)


class RDKClientError(Exception):
    """Base class for errors raised locally by this package."""


class ResponseValidationError(RDKClientError):
    """The server answered, but the answer violates a method's postcondition."""


class RequestValidationError(RDKClientError, ValueError):
    """Arguments were rejected before any request was sent."""


class ResourceNotFoundError(RDKClientError, LookupError):
    """A short resource name did not match anything the robot reported."""


# gRPC status codes that are safe to retry (transient network issues)
RETRYABLE_CODES = {
    grpc.StatusCode.UNAVAILABLE,
    grpc.StatusCode.DEADLINE_EXCEEDED,
    grpc.StatusCode.RESOURCE_EXHAUSTED,
}


def format_grpc_error(exc: grpc.RpcError) -> dict:
    """Convert a gRPC exception into a structured error dict."""
    code = exc.code()
    return {
        "ok": False,
        "error": f"{code.name}: {exc.details() or ''}",
        "retryable": code in RETRYABLE_CODES,
        "grpc_code": code.name,
    }


# ── Retry ────────────────────────────────────────────────────────────


class _Budget:
    """How many more attempts a call may make: a count, or a wall-clock deadline."""

    def __init__(self, max_attempts: int, deadline: Optional[float]):
        self.max_attempts = max_attempts
        self.expires = None if deadline is None else time.perf_counter() + deadline

    def remaining(self) -> Optional[float]:
        return None if self.expires is None else self.expires - time.perf_counter()

    def allows(self, attempts: int) -> bool:
        if self.expires is None:
            return attempts < self.max_attempts
        return attempts == 0 or self.remaining() > 0

    def cap(self, delay: float) -> float:
        remaining = self.remaining()
        return delay if remaining is None else max(0.0, min(delay, remaining))


def with_retry(
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 10.0,
    deadline: Optional[float] = None,
):
    """Exponential-backoff retry decorator for async gRPC operations.

    Only UNAVAILABLE, DEADLINE_EXCEEDED and RESOURCE_EXHAUSTED are retried.
    Other gRPC errors, local :class:`RDKClientError` failures and unexpected
    exceptions become an ``{"ok": False, ...}`` result straight away.

    With *deadline* (seconds) set, attempts continue until the deadline
    passes and *max_attempts* is ignored; backoff never sleeps past it.

    The wrapped coroutine's own return value is passed through unchanged.
    When retries run out the result carries ``attempts``.
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            budget = _Budget(max_attempts, deadline)
            attempts = 0
            last_error: Optional[grpc.RpcError] = None

            while budget.allows(attempts):
                attempts += 1
                try:
                    return await func(*args, **kwargs)
                except grpc.RpcError as exc:
                    if exc.code() not in RETRYABLE_CODES:
                        logger.warning(
                            "%s: gRPC %s (not retried)", func.__name__, exc.code().name
                        )
                        return format_grpc_error(exc)
                    last_error = exc
                except RDKClientError as exc:
                    logger.warning("%s failed: %s", func.__name__, exc)
                    return {"ok": False, "error": str(exc), "retryable": False}
                except Exception as exc:
                    logger.error("Unexpected error in %s: %s", func.__name__, exc)
                    return {"ok": False, "error": str(exc), "retryable": False}

                if not budget.allows(attempts):
                    break
                delay = budget.cap(min(base_delay * 2 ** (attempts - 1), max_delay))
                logger.info(
                    "%s: gRPC %s, retry %d in %.2fs",
                    func.__name__,
                    last_error.code().name,
                    attempts,
                    delay,
                )
                await asyncio.sleep(delay)

            logger.warning("%s: giving up after %d attempts", func.__name__, attempts)
            result = format_grpc_error(last_error)
            result["attempts"] = attempts
            return result

        return wrapper

    return decorator
