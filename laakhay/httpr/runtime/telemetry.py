"""Structured logging for request execution and group orchestration.

Every function takes the logger to write to, so callers can inject their
own; messages are event names and the details travel in ``extra``.
"""

from __future__ import annotations

import logging
from datetime import timedelta


def log_attempt_failed(
    log: logging.Logger,
    *,
    request: str,
    attempt: int,
    error_type: str,
    error_message: str,
) -> None:
    """Log a failed network attempt.

    Args:
        log: Logger to write to
        request: "METHOD url" of the request
        attempt: One-based attempt number
        error_type: Exception class name
        error_message: Exception message
    """
    log.warning(
        "request_attempt_failed",
        extra={
            "request": request,
            "attempt": attempt,
            "error_type": error_type,
            "error_message": error_message,
        },
    )


def log_retry_scheduled(log: logging.Logger, *, request: str, attempt: int, delay: float) -> None:
    """Log the delay before the next attempt."""
    log.info(
        "request_retry_scheduled",
        extra={"request": request, "next_attempt": attempt, "delay_s": delay},
    )


def log_request_completed(
    log: logging.Logger,
    *,
    request: str,
    status_code: int,
    attempts: int,
    elapsed: timedelta | None,
    debug: bool = False,
) -> None:
    """Log a request that produced a response."""
    log.log(
        logging.INFO if debug else logging.DEBUG,
        "request_completed",
        extra={
            "request": request,
            "status_code": status_code,
            "attempts": attempts,
            "elapsed_ms": elapsed.total_seconds() * 1000.0 if elapsed is not None else None,
        },
    )


def log_request_failed(
    log: logging.Logger,
    *,
    request: str,
    attempts: int,
    error_type: str,
    error_message: str,
) -> None:
    """Log a request whose last attempt failed or that never materialized."""
    log.error(
        "request_failed",
        extra={
            "request": request,
            "attempts": attempts,
            "error_type": error_type,
            "error_message": error_message,
        },
    )


def log_stream_closed(log: logging.Logger, *, mode: str, delivered: int, total: int) -> None:
    """Log the end of a group stream."""
    log.debug(
        "group_stream_closed",
        extra={"mode": mode, "delivered": delivered, "total": total},
    )


def log_hook_failed(
    log: logging.Logger,
    *,
    hook: str,
    phase: str,
    error_type: str,
    error_message: str,
) -> None:
    """Log a hook that raised; the hook is skipped and execution continues.

    Args:
        log: Logger to write to
        hook: Hook name
        phase: "before_send" or "after_response"
        error_type: Exception class name
        error_message: Exception message
    """
    log.error(
        "hook_failed",
        extra={
            "hook": hook,
            "phase": phase,
            "error_type": error_type,
            "error_message": error_message,
        },
        exc_info=True,
    )


def log_group_request_error(log: logging.Logger, *, request: str, error_type: str) -> None:
    """Log an unexpected executor exception converted into an error envelope."""
    log.error(
        "group_request_error",
        extra={"request": request, "error_type": error_type},
        exc_info=True,
    )
