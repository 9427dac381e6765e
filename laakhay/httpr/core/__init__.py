"""Core components."""

from .config import ServiceConfig
from .exceptions import (
    ConfigurationError,
    DecodingError,
    HttprError,
    MaterializationError,
    TransportError,
)
from .hooks import (
    AfterResponseHook,
    BeforeSendHook,
    HookSet,
    after_response,
    before_send,
)
from .request import Request, WireRequest
from .response import Response, ResultEnvelope
from .service import Service

__all__ = [
    "ServiceConfig",
    # Errors
    "HttprError",
    "MaterializationError",
    "TransportError",
    "DecodingError",
    "ConfigurationError",
    # Hooks
    "BeforeSendHook",
    "AfterResponseHook",
    "HookSet",
    "before_send",
    "after_response",
    # Requests and responses
    "Request",
    "WireRequest",
    "Response",
    "ResultEnvelope",
    "Service",
]
