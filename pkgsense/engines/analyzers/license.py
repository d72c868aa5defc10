"""License analyzer: dependency licenses against the package's own."""

from __future__ import annotations

import asyncio
import re
from collections.abc import Mapping

from pkgsense.engines.analyzers.common import log_lookup_failure
from pkgsense.engines.orchestrator.models import (
    AnalysisContext,
    Finding,
    FindingTag,
    error_finding,
    info_finding,
    warning_finding,
)
from pkgsense.engines.registry.client import NpmRegistryClient
from pkgsense.engines.registry.errors import RegistryError

UNKNOWN = "UNKNOWN"
UNLICENSED = "UNLICENSED"

COPYLEFT_MARKERS = ("GPL", "AGPL", "LGPL")

# Checked in both directions.
INCOMPATIBLE_LICENSE_PAIRS: tuple[tuple[str, str], ...] = (
    ("MIT", "GPL-3.0"),
    ("MIT", "GPL-2.0"),
    ("MIT", "AGPL-3.0"),
    ("ISC", "GPL-3.0"),
    ("ISC", "AGPL-3.0"),
    ("BSD-3-Clause", "GPL-3.0"),
    ("BSD-2-Clause", "GPL-3.0"),
    ("Apache-2.0", "GPL-2.0"),
    ("Apache-2.0", "AGPL-3.0"),
)

_SEPARATORS = re.compile(r"[-._ ]")


def normalize_license(license_: str) -> str:
    return _SEPARATORS.sub("", license_.upper())


_INCOMPATIBLE = frozenset(
    frozenset((normalize_license(a), normalize_license(b))) for a, b in INCOMPATIBLE_LICENSE_PAIRS
)


def is_copyleft(license_: str) -> bool:
    normalized = normalize_license(license_)
    return any(marker in normalized for marker in COPYLEFT_MARKERS)


def are_incompatible(first: str, second: str) -> bool:
    return frozenset((normalize_license(first), normalize_license(second))) in _INCOMPATIBLE


class LicenseAnalyzer:
    """Look up every dependency's license and report risky combinations.

    A dependency whose license cannot be fetched is treated as ``UNKNOWN``
    rather than failing the analyzer.
    """

    name = "license"

    def __init__(self, registry: NpmRegistryClient) -> None:
        self._registry = registry

    async def analyze(self, context: AnalysisContext) -> list[Finding]:
        if not context.dependencies:
            return []
        licenses = await self._fetch_licenses(context.dependencies)
        package_license = context.manifest.get("license")
        if not isinstance(package_license, str):
            package_license = None
        return check_licenses(licenses, package_license)

    async def _fetch_licenses(self, dependencies: Mapping[str, str]) -> dict[str, str]:
        names = list(dependencies)
        results = await asyncio.gather(
            *(self._registry.fetch_license(n, dependencies[n]) for n in names),
            return_exceptions=True,
        )
        licenses: dict[str, str] = {}
        for name, result in zip(names, results, strict=True):
            if isinstance(result, RegistryError):
                log_lookup_failure(self.name, name, result)
                licenses[name] = UNKNOWN
            elif isinstance(result, BaseException):
                raise result
            else:
                licenses[name] = result
        return licenses


def check_licenses(licenses: Mapping[str, str], package_license: str | None) -> list[Finding]:
    findings: list[Finding] = []
    copyleft: list[str] = []
    unlicensed: list[str] = []

    for dep, license_ in licenses.items():
        if license_ == UNKNOWN:
            findings.append(
                info_finding(
                    f'Could not determine license for "{dep}". Manual verification recommended.',
                    dependency=dep,
                    tags=(FindingTag.LICENSE,),
                )
            )
        elif license_ == UNLICENSED:
            unlicensed.append(dep)
        elif is_copyleft(license_):
            copyleft.append(dep)

    if copyleft:
        findings.append(
            warning_finding(
                f"Copyleft licenses detected (GPL/AGPL): {', '.join(copyleft)}. "
                "These may require you to open-source your code.",
                tags=(FindingTag.LICENSE, FindingTag.SECURITY),
                meta={"copyleftDependencies": copyleft},
            )
        )
        if package_license:
            for dep in copyleft:
                if are_incompatible(package_license, licenses[dep]):
                    findings.append(
                        error_finding(
                            f"License conflict: your package license ({package_license}) is "
                            f'incompatible with dependency "{dep}" ({licenses[dep]}).',
                            dependency=dep,
                            tags=(FindingTag.LICENSE, FindingTag.SECURITY),
                            meta={"packageLicense": package_license, "dependencyLicense": licenses[dep]},
                        )
                    )

    if unlicensed:
        findings.append(
            warning_finding(
                f"Dependencies without license: {', '.join(unlicensed)}. Use with caution.",
                tags=(FindingTag.LICENSE, FindingTag.SECURITY),
                meta={"unlicensedDependencies": unlicensed},
            )
        )
    return findings
