"""Laakhay HTTPR - declarative HTTP requests with retries, hooks and groups."""

from .core import (
    AfterResponseHook,
    BeforeSendHook,
    ConfigurationError,
    DecodingError,
    HookSet,
    HttprError,
    MaterializationError,
    Request,
    Response,
    ResultEnvelope,
    Service,
    ServiceConfig,
    TransportError,
    WireRequest,
    after_response,
    before_send,
)
from .registry import DictStore, LockingStore, ServiceRegistry, ServiceStore
from .runtime import Group, HTTPClient, RequestExecutor, ResultStream, StepGate

__version__ = "0.1.0"

__all__ = [
    "Request",
    "WireRequest",
    "Response",
    "ResultEnvelope",
    "Service",
    "ServiceConfig",
    "ServiceRegistry",
    "ServiceStore",
    "DictStore",
    "LockingStore",
    "RequestExecutor",
    "HTTPClient",
    "Group",
    "ResultStream",
    "StepGate",
    "HookSet",
    "BeforeSendHook",
    "AfterResponseHook",
    "before_send",
    "after_response",
    "HttprError",
    "MaterializationError",
    "TransportError",
    "DecodingError",
    "ConfigurationError",
]
