"""Semantic-version helpers for npm-style version strings and ranges.

Parsing, precedence and range matching come from ``semantic_version``
(``Version`` and ``NpmSpec``).  Every function here is total: malformed
input yields a defined "no result" value (``None``, ``False``,
:attr:`Comparison.INVALID`, :attr:`UpdateType.NONE`) instead of raising.
"""

from __future__ import annotations

import enum
import functools
import re

from semantic_version import NpmSpec, Version

LATEST = "latest"
_KEYWORDS = {"", "latest", "next"}

_LEADING_NON_DIGITS_RE = re.compile(r"^[^0-9]*")
_NUMERIC_PREFIX_RE = re.compile(r"^\d+(?:\.\d+){0,2}")
# ">= 1.2.3" is accepted by npm but not by NpmSpec's block grammar.
_OPERATOR_GAP_RE = re.compile(r"(<=|>=|<|>|=|\^|~)\s+")


class Comparison(str, enum.Enum):
    LESS = "less"
    EQUAL = "equal"
    GREATER = "greater"
    INVALID = "invalid"


class UpdateType(str, enum.Enum):
    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"
    NONE = "none"


def parse_version(text: object) -> Version | None:
    """Parse a strict semver string (a leading ``v`` or ``=`` is tolerated)."""
    if not isinstance(text, str):
        return None
    try:
        return Version(text.strip().lstrip("=v").strip())
    except ValueError:
        return None


def sanitize(raw: object) -> str:
    """Reduce a declared range to a concrete version string.

    ``"^1.2.3"`` -> ``"1.2.3"``, ``"~2"`` -> ``"2.0.0"``,
    ``"^2.0.0-beta.1"`` -> ``"2.0.0-beta.1"``; ``""``, ``"latest"`` and
    ``"next"`` -> :data:`LATEST`.  Anything without a version number is
    returned trimmed and unchanged, and will fail to parse downstream.
    """
    text = raw.strip() if isinstance(raw, str) else ""
    if text in _KEYWORDS:
        return LATEST
    cleaned = _LEADING_NON_DIGITS_RE.sub("", text)
    if not cleaned:
        return text
    first = cleaned.split()[0]
    exact = parse_version(first)
    if exact is not None:
        return str(exact)
    prefix = _NUMERIC_PREFIX_RE.match(first)
    if prefix is None:
        return text
    return str(Version.coerce(prefix.group(0)))


def _resolve(text: object) -> Version | None:
    parsed = parse_version(sanitize(text))
    if parsed is None:
        return None
    # Build metadata never takes part in precedence.
    return Version(
        major=parsed.major,
        minor=parsed.minor,
        patch=parsed.patch,
        prerelease=parsed.prerelease,
    )


def compare(a: object, b: object) -> Comparison:
    va, vb = _resolve(a), _resolve(b)
    if va is None or vb is None:
        return Comparison.INVALID
    if va < vb:
        return Comparison.LESS
    if va > vb:
        return Comparison.GREATER
    return Comparison.EQUAL


def is_prerelease(version: object) -> bool:
    parsed = _resolve(version)
    return parsed is not None and bool(parsed.prerelease)


def major_of(version: object) -> int | None:
    parsed = _resolve(version)
    return parsed.major if parsed is not None else None


def classify_update(current: object, latest: object) -> UpdateType:
    """Classify moving from *current* to *latest*.

    :attr:`UpdateType.NONE` unless *latest* is a valid, non-pre-release
    version strictly greater than *current*; otherwise the most
    significant differing component decides.
    """
    cur, new = _resolve(current), _resolve(latest)
    if cur is None or new is None or new.prerelease or new <= cur:
        return UpdateType.NONE
    if new.major != cur.major:
        return UpdateType.MAJOR
    if new.minor != cur.minor:
        return UpdateType.MINOR
    if new.patch != cur.patch:
        return UpdateType.PATCH
    return UpdateType.NONE


def _normalize_range(text: str) -> str:
    return " || ".join(
        " ".join(_OPERATOR_GAP_RE.sub(r"\1", part).split()) or "*" for part in text.split("||")
    )


@functools.lru_cache(maxsize=512)
def _spec(range_: str) -> NpmSpec | None:
    try:
        return NpmSpec(_normalize_range(range_))
    except ValueError:
        return None


def satisfies_range(version: object, range_: object) -> bool:
    """Whether *version* satisfies the npm range expression *range_*.

    Pre-releases only match a comparator carrying a pre-release on the
    same ``major.minor.patch``, as npm does.
    """
    parsed = _resolve(version)
    if parsed is None or not isinstance(range_, str):
        return False
    spec = _spec(range_)
    return spec is not None and spec.match(parsed)
