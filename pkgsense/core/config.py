"""Environment-driven settings for a pkgsense run."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from pkgsense.engines.analyzers import ANALYZER_NAMES
from pkgsense.engines.registry.bundle import DEFAULT_BUNDLE_URL
from pkgsense.engines.registry.client import DEFAULT_REGISTRY_URL

ENV_PREFIX = "PKGSENSE_"

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})


def analyzer_env_var(name: str) -> str:
    """``dependency-graph`` -> ``PKGSENSE_ANALYZERS_DEPENDENCY_GRAPH``."""
    return f"{ENV_PREFIX}ANALYZERS_{name.replace('-', '_').upper()}"


@dataclass(frozen=True)
class Settings:
    enable_analyzers: bool = True
    analyzers: Mapping[str, bool] = field(
        default_factory=lambda: {name: True for name in ANALYZER_NAMES}
    )
    registry_url: str = DEFAULT_REGISTRY_URL
    bundle_url: str = DEFAULT_BUNDLE_URL
    requests_per_minute: int = 100
    cache_ttl: float = 3600.0
    cache_max_entries: int = 200
    fetch_timeout: float = 5.0

    def enabled_analyzers(self) -> list[str]:
        """Names to run, in canonical order; empty when the master switch is off."""
        if not self.enable_analyzers:
            return []
        return [name for name in ANALYZER_NAMES if self.analyzers.get(name, True)]


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build :class:`Settings` from ``PKGSENSE_*`` variables.

    Raises ``ValueError`` naming the offending variable on malformed input.
    """
    env = os.environ if environ is None else environ
    return Settings(
        enable_analyzers=_env_bool(env, f"{ENV_PREFIX}ENABLE_ANALYZERS", True),
        analyzers={name: _env_bool(env, analyzer_env_var(name), True) for name in ANALYZER_NAMES},
        registry_url=env.get(f"{ENV_PREFIX}REGISTRY_URL", DEFAULT_REGISTRY_URL),
        bundle_url=env.get(f"{ENV_PREFIX}BUNDLE_URL", DEFAULT_BUNDLE_URL),
        requests_per_minute=_env_int(env, f"{ENV_PREFIX}REQUESTS_PER_MINUTE", 100, minimum=1),
        cache_ttl=_env_float(env, f"{ENV_PREFIX}CACHE_TTL", 3600.0),
        cache_max_entries=_env_int(env, f"{ENV_PREFIX}CACHE_MAX", 200, minimum=1),
        fetch_timeout=_env_float(env, f"{ENV_PREFIX}FETCH_TIMEOUT", 5.0),
    )


def _env_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{key} must be a boolean, got {raw!r}")


def _env_int(env: Mapping[str, str], key: str, default: int, *, minimum: int) -> int:
    raw = env.get(key)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ValueError(f"{key} must be >= {minimum}, got {value}")
    return value


def _env_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{key} must be positive, got {value:g}")
    return value
