"""Registry failure taxonomy.

Every error carries ``permanent``: permanent failures (bad input, package
does not exist, unusable payload) will not change on retry and callers
usually skip the dependency silently; transient failures (timeouts,
network trouble, throttling) are worth surfacing.
"""

from __future__ import annotations


class RegistryError(Exception):
    """Base class for registry client failures."""

    kind = "registry-error"
    permanent = False

    def __init__(self, message: str, *, package: str | None = None) -> None:
        self.package = package
        super().__init__(message)


class InvalidPackageNameError(RegistryError):
    kind = "invalid-input"
    permanent = True


class PackageNotFoundError(RegistryError):
    kind = "not-found"
    permanent = True


class LicenseNotFoundError(PackageNotFoundError):
    """The package exists but the requested version or its license does not."""


class MalformedResponseError(RegistryError):
    kind = "malformed-response"
    permanent = True


class RegistryTimeoutError(RegistryError):
    kind = "timeout"


class RegistryNetworkError(RegistryError):
    kind = "network-error"


class RetriesExhaustedError(RegistryError):
    """All attempts failed transiently; ``last_error`` holds the final cause."""

    kind = "retries-exhausted"

    def __init__(
        self,
        message: str,
        *,
        package: str | None = None,
        attempts: int,
        last_error: RegistryError | None = None,
    ) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(message, package=package)
