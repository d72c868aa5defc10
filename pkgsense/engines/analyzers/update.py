"""Update analyzer: newer releases of declared dependencies."""

from __future__ import annotations

import asyncio

from pkgsense.engines.analyzers.common import log_lookup_failure
from pkgsense.engines.orchestrator.models import (
    AnalysisContext,
    Finding,
    FindingTag,
    info_finding,
    warning_finding,
)
from pkgsense.engines.registry.client import NpmRegistryClient
from pkgsense.engines.registry.errors import RegistryError
from pkgsense.engines.versioning import UpdateType, classify_update, sanitize

_DESCRIPTIONS = {
    UpdateType.MAJOR: "Major",
    UpdateType.MINOR: "Minor",
    UpdateType.PATCH: "Patch",
}
_NOTES = {
    UpdateType.MAJOR: "may contain breaking changes",
    UpdateType.MINOR: "new features",
    UpdateType.PATCH: "bug fixes",
}


class UpdateAnalyzer:
    name = "update"

    def __init__(self, registry: NpmRegistryClient) -> None:
        self._registry = registry

    async def analyze(self, context: AnalysisContext) -> list[Finding]:
        deps = dict(context.dependencies)
        if not deps:
            return []

        names = list(deps)
        results = await asyncio.gather(
            *(self._registry.fetch_latest_version(n) for n in names),
            return_exceptions=True,
        )

        findings: list[Finding] = []
        for name, result in zip(names, results, strict=True):
            if isinstance(result, RegistryError):
                log_lookup_failure(self.name, name, result)
                continue
            if isinstance(result, BaseException):
                raise result
            finding = update_finding(name, sanitize(deps[name]), result)
            if finding is not None:
                findings.append(finding)
        return findings


def update_finding(name: str, current: str, latest: str) -> Finding | None:
    kind = classify_update(current, latest)
    if kind is UpdateType.NONE:
        return None
    make = warning_finding if kind is UpdateType.MAJOR else info_finding
    return make(
        f"{name}: {_DESCRIPTIONS[kind]} update available {current} → {latest} ({_NOTES[kind]})",
        dependency=name,
        tags=(FindingTag.UPDATES, FindingTag.MAINTENANCE),
        meta={"currentVersion": current, "latestVersion": latest, "updateType": kind.value},
    )
