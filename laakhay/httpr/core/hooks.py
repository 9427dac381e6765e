"""Before-send and after-response hooks.

Hooks are configured at two scopes: the shared scope of a ``Service`` and
the scope of a single ``Request``. At dispatch time the two lists are
concatenated, shared scope first, and run in order.

Architecture:
    Hooks are small objects implementing one of two protocols
    (``on_before_send`` / ``on_after_response``). Plain callables are
    adapted through ``before_send()`` / ``after_response()`` so callers can
    register either form.

Design Decisions:
    - Before-send hooks mutate the wire request in place and cannot cancel
      the call.
    - After-response hooks return a stop signal. Evaluation halts at the
      first hook that signals stop; delivery of the result is unaffected.
    - A hook that raises is logged and skipped (error isolation).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .request import Request, WireRequest
    from .response import Response

logger = logging.getLogger(__name__)

BeforeSendFn = Callable[["WireRequest"], Any]
AfterResponseFn = Callable[["Request", "Response | None"], Any]


@runtime_checkable
class BeforeSendHook(Protocol):
    """Observes or mutates the outgoing wire request."""

    def on_before_send(self, wire: WireRequest) -> None: ...


@runtime_checkable
class AfterResponseHook(Protocol):
    """Observes a request/response pair.

    Returns True to ask a containing sequence to stop.
    """

    def on_after_response(self, request: Request, response: Response | None) -> bool: ...


@dataclass(frozen=True)
class FunctionBeforeSend:
    """Adapter turning a plain callable into a BeforeSendHook."""

    fn: BeforeSendFn

    def on_before_send(self, wire: WireRequest) -> None:
        self.fn(wire)


@dataclass(frozen=True)
class FunctionAfterResponse:
    """Adapter turning a plain callable into an AfterResponseHook."""

    fn: AfterResponseFn

    def on_after_response(self, request: Request, response: Response | None) -> bool:
        return bool(self.fn(request, response))


def before_send(hook: BeforeSendHook | BeforeSendFn) -> BeforeSendHook:
    """Coerce a hook object or callable into a BeforeSendHook.

    Can also be used as a decorator.

    Raises:
        TypeError: If hook is neither a hook object nor callable
    """
    if isinstance(hook, BeforeSendHook):
        return hook
    if callable(hook):
        return FunctionBeforeSend(hook)
    raise TypeError(f"Not a before-send hook: {hook!r}")


def after_response(hook: AfterResponseHook | AfterResponseFn) -> AfterResponseHook:
    """Coerce a hook object or callable into an AfterResponseHook.

    Can also be used as a decorator.

    Raises:
        TypeError: If hook is neither a hook object nor callable
    """
    if isinstance(hook, AfterResponseHook):
        return hook
    if callable(hook):
        return FunctionAfterResponse(hook)
    raise TypeError(f"Not an after-response hook: {hook!r}")


def _hook_name(hook: Any) -> str:
    fn = getattr(hook, "fn", None)
    if fn is not None:
        return getattr(fn, "__qualname__", repr(fn))
    return hook.__class__.__name__


@dataclass
class HookSet:
    """Ordered before-send and after-response hook lists for one scope."""

    before: list[BeforeSendHook] = field(default_factory=list)
    after: list[AfterResponseHook] = field(default_factory=list)

    def add_before(self, *hooks: BeforeSendHook | BeforeSendFn) -> None:
        self.before.extend(before_send(h) for h in hooks)

    def add_after(self, *hooks: AfterResponseHook | AfterResponseFn) -> None:
        self.after.extend(after_response(h) for h in hooks)

    @classmethod
    def compose(cls, shared: HookSet | None, local: HookSet | None) -> HookSet:
        """Concatenate shared-scope hooks followed by request-scope hooks.

        Args:
            shared: Shared-scope hooks (from a Service), may be None
            local: Request-scope hooks, may be None

        Returns:
            New HookSet; the inputs are not modified
        """
        before: list[BeforeSendHook] = []
        after: list[AfterResponseHook] = []
        for scope in (shared, local):
            if scope is None:
                continue
            before.extend(scope.before)
            after.extend(scope.after)
        return cls(before=before, after=after)

    def run_before_send(self, wire: WireRequest, *, log: logging.Logger | None = None) -> None:
        """Run every before-send hook in order."""
        from ..runtime.telemetry import log_hook_failed

        log = log or logger
        for hook in self.before:
            try:
                hook.on_before_send(wire)
            except Exception as e:
                log_hook_failed(
                    log,
                    hook=_hook_name(hook),
                    phase="before_send",
                    error_type=type(e).__name__,
                    error_message=str(e),
                )

    def run_after_response(
        self,
        request: Request,
        response: Response | None,
        *,
        log: logging.Logger | None = None,
    ) -> bool:
        """Run after-response hooks until one signals stop.

        Returns:
            True if a hook signalled stop, False otherwise
        """
        from ..runtime.telemetry import log_hook_failed

        log = log or logger
        for hook in self.after:
            try:
                stop = hook.on_after_response(request, response)
            except Exception as e:
                log_hook_failed(
                    log,
                    hook=_hook_name(hook),
                    phase="after_response",
                    error_type=type(e).__name__,
                    error_message=str(e),
                )
                continue
            if stop:
                return True
        return False
