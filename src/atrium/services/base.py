"""Shared shape for request/outcome services.

A service turns one request into one outcome. Expected failures are raised as
``ServiceFailure`` subclasses and reach the CLI unchanged, where they become
``error: ...`` plus an optional hint and exit status 1.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from .. import log
from .errors import ServiceFailure

RequestT = TypeVar("RequestT")
OutcomeT = TypeVar("OutcomeT")


class BaseService(ABC, Generic[RequestT, OutcomeT]):
    """Callable service; subclasses implement ``_run``."""

    def __call__(self, request: RequestT) -> OutcomeT:
        try:
            return self._run(request)
        except ServiceFailure as failure:
            return self._handle_failure(failure)

    @abstractmethod
    def _run(self, request: RequestT) -> OutcomeT: ...

    def _handle_failure(self, failure: ServiceFailure) -> OutcomeT:
        log.debug(f"{type(self).__name__} failed ({failure.code})")
        raise failure
