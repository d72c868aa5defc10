"""Metadata analyzer: completeness of the package.json descriptive fields."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pkgsense.engines.orchestrator.models import (
    AnalysisContext,
    Finding,
    FindingTag,
    info_finding,
    warning_finding,
)

MIN_DESCRIPTION_LENGTH = 20

_TAGS = (FindingTag.PACKAGING, FindingTag.QUALITY)


class MetadataAnalyzer:
    name = "metadata"

    async def analyze(self, context: AnalysisContext) -> list[Finding]:
        pkg = context.manifest
        findings: list[Finding] = []
        findings += _check_url_field(pkg, "repository", "Add repository URL for better discoverability.")
        findings += _check_url_field(pkg, "bugs", "Add bugs URL to help users report issues.")
        findings += _check_homepage(pkg)
        findings += _check_description(pkg)
        findings += _check_keywords(pkg)
        findings += _check_author(pkg)
        findings += _check_license(pkg)
        return findings


def _check_url_field(pkg: Mapping[str, Any], field: str, hint: str) -> list[Finding]:
    value = pkg.get(field)
    if not value:
        return [info_finding(f'Missing "{field}" field. {hint}', tags=_TAGS)]
    url = value if isinstance(value, str) else value.get("url") if isinstance(value, dict) else None
    if not isinstance(url, str) or not url.strip():
        label = field.capitalize()
        return [info_finding(f"{label} URL is empty. Provide a valid {field} URL.", tags=_TAGS)]
    return []


def _check_homepage(pkg: Mapping[str, Any]) -> list[Finding]:
    if pkg.get("homepage"):
        return []
    return [
        info_finding(
            'Missing "homepage" field. Add homepage URL for package landing page.', tags=_TAGS
        )
    ]


def _check_description(pkg: Mapping[str, Any]) -> list[Finding]:
    description = pkg.get("description")
    if description is None:
        return [
            warning_finding(
                'Missing "description" field. Add a description to help users '
                "understand your package.",
                tags=_TAGS,
            )
        ]
    text = str(description).strip()
    if not text:
        return [warning_finding("Description is empty. Provide a meaningful description.", tags=_TAGS)]
    if len(text) < MIN_DESCRIPTION_LENGTH:
        return [info_finding("Description is very short. Consider adding more details.", tags=_TAGS)]
    return []


def _check_keywords(pkg: Mapping[str, Any]) -> list[Finding]:
    keywords = pkg.get("keywords")
    if keywords is None:
        return [
            info_finding(
                'Missing "keywords" field. Add keywords to improve package discoverability.',
                tags=_TAGS,
            )
        ]
    if not keywords:
        return [info_finding("Keywords array is empty. Add relevant keywords.", tags=_TAGS)]
    return []


def _check_author(pkg: Mapping[str, Any]) -> list[Finding]:
    author = pkg.get("author")
    if not author:
        return [
            info_finding(
                'Missing "author" field. Add author information for proper attribution.',
                tags=_TAGS,
            )
        ]
    if isinstance(author, dict) and not author.get("name"):
        return [info_finding("Author name is missing. Provide author name.", tags=_TAGS)]
    return []


def _check_license(pkg: Mapping[str, Any]) -> list[Finding]:
    tags = (FindingTag.PACKAGING, FindingTag.LICENSE)
    license_ = pkg.get("license")
    if not license_:
        return [
            warning_finding(
                'Missing "license" field. Specify a license for legal clarity (e.g., MIT, ISC).',
                tags=tags,
            )
        ]
    if license_ == "UNLICENSED":
        return [
            warning_finding(
                "Package is unlicensed. Consider using a standard open-source license.",
                tags=tags,
            )
        ]
    return []
