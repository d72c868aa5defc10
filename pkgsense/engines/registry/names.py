"""Package-name validation shared by the registry clients."""

from __future__ import annotations

import re
from urllib.parse import quote

from pkgsense.engines.registry.errors import InvalidPackageNameError

MAX_PACKAGE_NAME_LENGTH = 214

# npm naming rules; upper case is tolerated for legacy packages (e.g. JSONStream)
_NAME_RE = re.compile(r"^(@[a-z0-9\-~][a-z0-9\-._~]*/)?[a-z0-9\-~][a-z0-9\-._~]*$", re.IGNORECASE)


def validate_package_name(name: object) -> str:
    """Return the trimmed package name or raise :class:`InvalidPackageNameError`."""
    if not isinstance(name, str):
        raise InvalidPackageNameError("invalid package name: must be a non-empty string")
    trimmed = name.strip()
    if not trimmed:
        raise InvalidPackageNameError("invalid package name: cannot be empty")
    if len(trimmed) > MAX_PACKAGE_NAME_LENGTH:
        raise InvalidPackageNameError(
            f"invalid package name: exceeds maximum length of {MAX_PACKAGE_NAME_LENGTH}",
            package=trimmed,
        )
    if not _NAME_RE.match(trimmed):
        raise InvalidPackageNameError(
            f"invalid package name {trimmed!r}: contains invalid characters",
            package=trimmed,
        )
    return trimmed


def encode_package_name(name: str) -> str:
    """Encode a name for a registry path segment (``@scope/pkg`` -> ``@scope%2Fpkg``)."""
    return quote(name, safe="@")
