"""Service failure contracts.

Services return typed outcomes on success and raise ServiceFailure on expected
lookup/backend/runtime failures. Programmer bugs raise normal exceptions.
"""

from __future__ import annotations

from typing import Literal, Sequence

ServiceFailureCode = Literal[
    "malformed_url",
    "not_found",
    "ambiguous",
    "no_org",
    "backend_call_failed",
    "clone_failed",
    "timed_out",
    "cancelled",
    "external_command_failed",
    "unsupported_platform",
    "config_invalid",
]


class ServiceFailure(Exception):
    """Expected service failure: lookup, backend, or runtime error.

    Raised by services instead of returning a failure value. Use ``raise
    ServiceFailure(...) from exc`` to chain a causing exception; it is
    available as ``__cause__``. The CLI catches ServiceFailure, prints it in
    the error style and exits non-zero.
    """

    def __init__(
        self,
        code: ServiceFailureCode,
        message: str,
        *,
        recovery_hint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.recovery_hint = recovery_hint


class MalformedURLError(ServiceFailure):
    """A repository URL could not be parsed."""

    def __init__(self, message: str, *, recovery_hint: str | None = None) -> None:
        super().__init__("malformed_url", message, recovery_hint=recovery_hint)


class NotFoundError(ServiceFailure):
    """A name-based lookup matched nothing."""

    def __init__(self, message: str, *, recovery_hint: str | None = None) -> None:
        super().__init__("not_found", message, recovery_hint=recovery_hint)


class AmbiguousError(ServiceFailure):
    """A name-based lookup matched more than one entity."""

    def __init__(self, message: str, *, recovery_hint: str | None = None) -> None:
        super().__init__("ambiguous", message, recovery_hint=recovery_hint)


class NoOrgError(ServiceFailure):
    """No organization is available where one is required."""

    def __init__(self, message: str, *, recovery_hint: str | None = None) -> None:
        super().__init__("no_org", message, recovery_hint=recovery_hint)


class BackendCallError(ServiceFailure):
    """A backend API call failed; ``call`` names the call site."""

    def __init__(
        self,
        call: str,
        detail: str,
        *,
        status_code: int | None = None,
        recovery_hint: str | None = None,
    ) -> None:
        super().__init__(
            "backend_call_failed", f"{call}: {detail}", recovery_hint=recovery_hint
        )
        self.call = call
        self.status_code = status_code


class CloneFailedError(ServiceFailure):
    """One or more repository clones failed.

    ``failures`` holds ``(repository, detail)`` pairs for every failed clone.
    """

    def __init__(self, failures: Sequence[tuple[str, str]]) -> None:
        lines = [f"{len(failures)} repository clone(s) failed:"]
        lines.extend(f"  {repository}: {detail}" for repository, detail in failures)
        super().__init__("clone_failed", "\n".join(lines))
        self.failures = tuple(failures)


class PollTimeoutError(ServiceFailure):
    """Polling reached its deadline before the target status."""

    def __init__(self, message: str, *, recovery_hint: str | None = None) -> None:
        super().__init__("timed_out", message, recovery_hint=recovery_hint)


class PollCancelledError(ServiceFailure):
    """Polling was cancelled by the caller."""

    def __init__(self, message: str) -> None:
        super().__init__("cancelled", message)


class ExternalCommandFailedError(ServiceFailure):
    """External command (git, systemctl, launchctl, kubectl) failed."""

    def __init__(self, message: str, *, recovery_hint: str | None = None) -> None:
        super().__init__("external_command_failed", message, recovery_hint=recovery_hint)


class UnsupportedPlatformError(ServiceFailure):
    """The current OS has no supported service manager."""

    def __init__(self, message: str, *, recovery_hint: str | None = None) -> None:
        super().__init__("unsupported_platform", message, recovery_hint=recovery_hint)


class ConfigError(ServiceFailure):
    """Configuration is missing or invalid."""

    def __init__(self, message: str, *, recovery_hint: str | None = None) -> None:
        super().__init__("config_invalid", message, recovery_hint=recovery_hint)
