"""Helpers shared by the registry-backed analyzers."""

from __future__ import annotations

import structlog

from pkgsense.engines.registry.errors import RegistryError

log = structlog.get_logger("pkgsense.engine")


def log_lookup_failure(analyzer: str, dependency: str, exc: RegistryError) -> None:
    """Permanent failures are expected noise; transient ones are worth a warning."""
    if exc.permanent:
        log.debug(
            "analyzer.lookup_skipped",
            analyzer=analyzer,
            dependency=dependency,
            kind=exc.kind,
        )
    else:
        log.warning(
            "analyzer.lookup_failed",
            analyzer=analyzer,
            dependency=dependency,
            kind=exc.kind,
            error=str(exc),
        )

