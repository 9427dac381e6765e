"""Service and request configuration."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_TIMEOUT = 20.0


class ServiceConfig(BaseModel):
    """Settings shared by a service and the requests it creates.

    Attributes:
        timeout: Total request timeout in seconds
        debug: Emit executor telemetry at INFO instead of DEBUG
    """

    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    debug: bool = False

    model_config = ConfigDict(frozen=True)
