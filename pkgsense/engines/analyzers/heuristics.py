"""Heuristics analyzer: deprecated packages and common manifest omissions."""

from __future__ import annotations

from pkgsense.engines.orchestrator.models import (
    AnalysisContext,
    Finding,
    FindingTag,
    info_finding,
    warning_finding,
)

# package -> suggestion
DEPRECATED_PACKAGES: dict[str, str] = {
    "moment": "Consider using dayjs or luxon (moment is in maintenance mode).",
    "request": "request is deprecated; use fetch or axios instead.",
    "left-pad": "Unnecessary package; use String.prototype.padStart.",
}


class HeuristicsAnalyzer:
    name = "heuristics"

    async def analyze(self, context: AnalysisContext) -> list[Finding]:
        return [
            *_check_deprecated(context),
            *_check_exact_duplicates(context),
            *_check_files_field(context),
            *_check_type_field(context),
        ]


def _check_deprecated(context: AnalysisContext) -> list[Finding]:
    return [
        warning_finding(
            f"Deprecated dependency detected: {pkg}. {suggestion}",
            dependency=pkg,
            tags=(FindingTag.MAINTENANCE, FindingTag.REPLACEMENT),
        )
        for pkg, suggestion in DEPRECATED_PACKAGES.items()
        if pkg in context.dependencies
    ]


def _check_exact_duplicates(context: AnalysisContext) -> list[Finding]:
    # Differing ranges are reported by the dependency-graph analyzer.
    dev = context.development_dependencies
    return [
        warning_finding(
            f"Duplicate dependency in dependencies and devDependencies: {name}.",
            dependency=name,
            tags=(FindingTag.DUPLICATION,),
        )
        for name, version in context.production_dependencies.items()
        if dev.get(name) == version
    ]


def _check_files_field(context: AnalysisContext) -> list[Finding]:
    if "files" in context.manifest:
        return []
    return [
        info_finding(
            'Missing "files" field. Adding it reduces the published package size.',
            tags=(FindingTag.PACKAGING,),
        )
    ]


def _check_type_field(context: AnalysisContext) -> list[Finding]:
    if context.manifest.get("type"):
        return []
    return [
        info_finding(
            'Missing "type" field. Consider using "type": "module".',
            tags=(FindingTag.CONFIG,),
        )
    ]
