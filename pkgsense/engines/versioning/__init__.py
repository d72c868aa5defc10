"""Version comparison and update classification."""

from pkgsense.engines.versioning.semver import (
    LATEST,
    Comparison,
    UpdateType,
    Version,
    classify_update,
    compare,
    is_prerelease,
    major_of,
    parse_version,
    sanitize,
    satisfies_range,
)

__all__ = [
    "LATEST",
    "Comparison",
    "UpdateType",
    "Version",
    "classify_update",
    "compare",
    "is_prerelease",
    "major_of",
    "parse_version",
    "sanitize",
    "satisfies_range",
]
