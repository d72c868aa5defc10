"""Weight analyzer: bundle size of each declared dependency."""

from __future__ import annotations

import asyncio

from pkgsense.engines.analyzers.common import log_lookup_failure
from pkgsense.engines.orchestrator.models import (
    AnalysisContext,
    AnalyzerError,
    AnalyzerErrorCode,
    Finding,
    FindingTag,
    Severity,
)
from pkgsense.engines.registry.bundle import BundleSizeClient
from pkgsense.engines.registry.errors import RegistryError

KIB = 1024

# (lower bound in bytes, severity, label), checked from largest to smallest
SIZE_THRESHOLDS: tuple[tuple[int, Severity, str], ...] = (
    (1024 * KIB, "error", "Very heavy package"),
    (200 * KIB, "warning", "Heavy package"),
    (50 * KIB, "info", "Moderately large package"),
)


class WeightAnalyzer:
    name = "weight"

    def __init__(self, bundle: BundleSizeClient) -> None:
        self._bundle = bundle

    async def analyze(self, context: AnalysisContext) -> list[Finding]:
        deps = dict(context.dependencies)
        if not deps:
            return []

        names = list(deps)
        results = await asyncio.gather(
            *(self._bundle.fetch_size(n, deps[n]) for n in names),
            return_exceptions=True,
        )

        findings: list[Finding] = []
        transient: list[RegistryError] = []
        for name, result in zip(names, results, strict=True):
            if isinstance(result, RegistryError):
                log_lookup_failure(self.name, name, result)
                if not result.permanent:
                    transient.append(result)
                continue
            if isinstance(result, BaseException):
                raise result
            finding = _size_finding(name, deps[name], result.size)
            if finding is not None:
                findings.append(finding)

        if len(transient) == len(names):
            raise AnalyzerError(
                AnalyzerErrorCode.NETWORK,
                f"bundle size lookups failed for all {len(names)} dependencies",
                cause=transient[-1],
            )
        return findings


def _size_finding(name: str, version: str, size: int) -> Finding | None:
    for bound, severity, label in SIZE_THRESHOLDS:
        if size > bound:
            return Finding(
                severity=severity,
                message=f"{label}: {name}@{version} ({size / KIB:.1f} KB)",
                dependency=name,
                tags=frozenset((FindingTag.PERFORMANCE,)),
                meta={"size": size},
            )
    return None
