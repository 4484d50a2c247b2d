from .base import BaseService
from .errors import (
    AmbiguousError,
    BackendCallError,
    CloneFailedError,
    ConfigError,
    ExternalCommandFailedError,
    MalformedURLError,
    NoOrgError,
    NotFoundError,
    PollCancelledError,
    PollTimeoutError,
    ServiceFailure,
    UnsupportedPlatformError,
)

__all__ = [
    "AmbiguousError",
    "BackendCallError",
    "BaseService",
    "CloneFailedError",
    "ConfigError",
    "ExternalCommandFailedError",
    "MalformedURLError",
    "NoOrgError",
    "NotFoundError",
    "PollCancelledError",
    "PollTimeoutError",
    "ServiceFailure",
    "UnsupportedPlatformError",
]
