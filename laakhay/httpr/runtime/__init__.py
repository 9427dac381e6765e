"""Runtime orchestration components."""

from .http_client import HTTPClient
from .executor import RequestExecutor
from .group import Group
from .stream import ResultStream, StepGate

__all__ = [
    "HTTPClient",
    "RequestExecutor",
    "Group",
    "ResultStream",
    "StepGate",
]
