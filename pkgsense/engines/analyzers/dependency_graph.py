"""Dependency-graph analyzer: static checks over the declared ranges.

Only the manifest is inspected; installed packages are never walked.
"""

from __future__ import annotations

from collections.abc import Mapping

from pkgsense.engines.orchestrator.models import (
    AnalysisContext,
    Finding,
    FindingTag,
    info_finding,
    warning_finding,
)

DEPENDENCY_COUNT_INFO = 50
DEPENDENCY_COUNT_WARNING = 100

# package -> (alternative, reason)
HEAVY_PACKAGES: dict[str, tuple[str, str]] = {
    "lodash": (
        "lodash-es or individual lodash methods",
        "lodash is large; tree-shakeable alternatives available",
    ),
    "moment-timezone": (
        "date-fns-tz or Luxon",
        "moment-timezone is very large; modern alternatives are smaller",
    ),
    "axios": (
        "native fetch or ky",
        "axios is feature-rich but heavy; fetch API is built-in",
    ),
}


class DependencyGraphAnalyzer:
    name = "dependency-graph"

    async def analyze(self, context: AnalysisContext) -> list[Finding]:
        prod = context.production_dependencies
        dev = context.development_dependencies
        findings = _check_count(len(prod), len(dev))
        findings.extend(_check_version_conflicts(prod, dev))
        findings.extend(_check_heavy(context))
        return findings


def _check_count(n_prod: int, n_dev: int) -> list[Finding]:
    total = n_prod + n_dev
    meta = {"total": total, "dependencies": n_prod, "devDependencies": n_dev}
    breakdown = f"{total} total ({n_prod} prod + {n_dev} dev)"
    if total >= DEPENDENCY_COUNT_WARNING:
        return [
            warning_finding(
                f"Very high dependency count: {breakdown}. Consider reducing dependencies "
                "to improve install time and security surface.",
                tags=(FindingTag.DEPENDENCIES, FindingTag.PERFORMANCE),
                meta=meta,
            )
        ]
    if total >= DEPENDENCY_COUNT_INFO:
        return [
            info_finding(
                f"High dependency count: {breakdown}. Monitor for unnecessary dependencies.",
                tags=(FindingTag.DEPENDENCIES, FindingTag.QUALITY),
                meta=meta,
            )
        ]
    return []


def _check_version_conflicts(prod: Mapping[str, str], dev: Mapping[str, str]) -> list[Finding]:
    findings: list[Finding] = []
    for name, dev_range in dev.items():
        prod_range = prod.get(name)
        if prod_range is None or prod_range == dev_range:
            continue
        findings.append(
            warning_finding(
                f'Version conflict for "{name}": dependencies has {prod_range}, '
                f"devDependencies has {dev_range}. This is likely a duplication error.",
                dependency=name,
                tags=(FindingTag.DEPENDENCIES, FindingTag.DUPLICATION),
                meta={"dependencyVersion": prod_range, "devDependencyVersion": dev_range},
            )
        )
    return findings


def _check_heavy(context: AnalysisContext) -> list[Finding]:
    return [
        info_finding(
            f'"{pkg}" is a heavy dependency. Consider {alternative}. Reason: {reason}',
            dependency=pkg,
            tags=(FindingTag.DEPENDENCIES, FindingTag.PERFORMANCE),
            meta={"alternative": alternative, "reason": reason},
        )
        for pkg, (alternative, reason) in HEAVY_PACKAGES.items()
        if pkg in context.dependencies
    ]
