"""Process-wide wiring: shared registry plumbing, analyzers, orchestrator."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

import httpx
import structlog

from pkgsense.core.config import Settings, load_settings
from pkgsense.engines.analyzers import (
    ANALYZER_NAMES,
    DependencyGraphAnalyzer,
    EngineAnalyzer,
    HeuristicsAnalyzer,
    LicenseAnalyzer,
    MetadataAnalyzer,
    ScriptAnalyzer,
    UpdateAnalyzer,
    VulnerabilityAnalyzer,
    WeightAnalyzer,
)
from pkgsense.engines.manifest import build_context, load_context
from pkgsense.engines.orchestrator import AnalysisOrchestrator, AnalysisReport, Analyzer
from pkgsense.engines.registry import (
    BundleSizeClient,
    NpmRegistryClient,
    TTLCache,
    TokenBucketRateLimiter,
)

log = structlog.get_logger("pkgsense.runtime")


class Runtime:
    """Owns the cache, rate limiter and HTTP clients for one process.

    Every registry-backed analyzer shares the same cache and limiter, so
    the requests-per-minute budget holds across the whole run.  Use as an
    async context manager so the HTTP connection pool is closed.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        only: Iterable[str] | None = None,
        skip: Iterable[str] = (),
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings or load_settings()
        self.cache: TTLCache[Any] = TTLCache(
            ttl=self.settings.cache_ttl, max_entries=self.settings.cache_max_entries
        )
        self.rate_limiter = TokenBucketRateLimiter(self.settings.requests_per_minute)

        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            headers={"Accept": "application/json"},
            timeout=self.settings.fetch_timeout,
            follow_redirects=True,
        )
        shared: dict[str, Any] = {
            "cache": self.cache,
            "rate_limiter": self.rate_limiter,
            "timeout": self.settings.fetch_timeout,
            "http_client": self._http,
        }
        self.registry = NpmRegistryClient(registry_url=self.settings.registry_url, **shared)
        self.bundle = BundleSizeClient(bundle_url=self.settings.bundle_url, **shared)

        names = select_analyzers(self.settings.enabled_analyzers(), only=only, skip=skip)
        self.orchestrator = AnalysisOrchestrator(self.build_analyzers(names))
        log.debug("runtime.ready", analyzers=names)

    def build_analyzers(self, names: Iterable[str]) -> list[Analyzer]:
        factories = {
            "heuristics": HeuristicsAnalyzer,
            "weight": lambda: WeightAnalyzer(self.bundle),
            "vulnerability": VulnerabilityAnalyzer,
            "metadata": MetadataAnalyzer,
            "script": ScriptAnalyzer,
            "license": lambda: LicenseAnalyzer(self.registry),
            "update": lambda: UpdateAnalyzer(self.registry),
            "engine": lambda: EngineAnalyzer(self.registry),
            "dependency-graph": DependencyGraphAnalyzer,
        }
        return [factories[name]() for name in names]

    async def analyze_manifest(self, text: str, path: Path | str = ".") -> AnalysisReport:
        """Analyze package.json *text*; *path* is the directory it lives in.

        Raises :class:`~pkgsense.engines.manifest.ManifestError` for
        unparseable or invalid manifests before any analyzer runs.
        """
        context = build_context(text, path)
        return await self.orchestrator.run_detailed(context)

    async def analyze_path(self, path: Path) -> AnalysisReport:
        context = load_context(path)
        return await self.orchestrator.run_detailed(context)

    async def close(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> Runtime:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()


def select_analyzers(
    enabled: Iterable[str],
    *,
    only: Iterable[str] | None = None,
    skip: Iterable[str] = (),
) -> list[str]:
    """Narrow the configured analyzers by ``--only`` / ``--skip``.

    Unknown names raise ``ValueError``.
    """
    only_set = set(only) if only else None
    skip_set = set(skip)
    unknown = ((only_set or set()) | skip_set) - set(ANALYZER_NAMES)
    if unknown:
        raise ValueError(f"unknown analyzer(s): {', '.join(sorted(unknown))}")
    return [
        name
        for name in enabled
        if (only_set is None or name in only_set) and name not in skip_set
    ]
