"""CLI entry point: pkgsense.

Usage:
    pkgsense ./package.json                  # Human-readable report
    pkgsense . --json                        # Findings as a JSON list
    pkgsense . --only heuristics --only script
    pkgsense . --skip vulnerability --fail-on warning
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import click

from pkgsense.core.config import Settings, load_settings
from pkgsense.core.logging import setup_logging
from pkgsense.engines.analyzers import ANALYZER_NAMES
from pkgsense.engines.manifest import MANIFEST_FILENAME, ManifestError
from pkgsense.engines.orchestrator import SEVERITY_RANK, AnalysisReport, Finding
from pkgsense.runtime import Runtime

EXIT_FINDINGS = 1
EXIT_INVALID = 2

_SEVERITY_ORDER = ("error", "warning", "info")
_SEVERITY_ICON = {"error": "!", "warning": "~", "info": "-"}


@click.command()
@click.argument("path", type=click.Path(exists=True, path_type=Path), default=".")
@click.option("--json", "as_json", is_flag=True, help="Print findings as JSON")
@click.option(
    "--only",
    multiple=True,
    type=click.Choice(ANALYZER_NAMES),
    help="Run only this analyzer (repeatable)",
)
@click.option(
    "--skip",
    multiple=True,
    type=click.Choice(ANALYZER_NAMES),
    help="Skip this analyzer (repeatable)",
)
@click.option(
    "--fail-on",
    type=click.Choice(["info", "warning", "error"]),
    default=None,
    help="Exit 1 if a finding at or above this severity exists",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
def main(
    path: Path,
    as_json: bool,
    only: tuple[str, ...],
    skip: tuple[str, ...],
    fail_on: str | None,
    verbose: bool,
) -> None:
    """Analyze a package.json (or a directory containing one)."""
    try:
        setup_logging("DEBUG" if verbose else None)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_INVALID)

    manifest_path = path / MANIFEST_FILENAME if path.is_dir() else path
    if not manifest_path.is_file():
        click.echo(f"Error: {manifest_path} not found", err=True)
        sys.exit(EXIT_INVALID)

    try:
        settings = load_settings()
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_INVALID)

    try:
        report = asyncio.run(_analyze(manifest_path, settings, only, skip))
    except ManifestError as e:
        click.echo(f"Error: {manifest_path}: [{e.code}] {e}", err=True)
        sys.exit(EXIT_INVALID)

    if as_json:
        click.echo(json.dumps([f.to_dict() for f in report.findings], indent=2))
    else:
        _print_report(manifest_path, report)

    for message in report.errors:
        click.echo(f"Analyzer failed: {message}", err=True)

    if fail_on and _exceeds(report.findings, fail_on):
        sys.exit(EXIT_FINDINGS)


async def _analyze(
    manifest_path: Path,
    settings: Settings,
    only: tuple[str, ...],
    skip: tuple[str, ...],
) -> AnalysisReport:
    text = manifest_path.read_text(encoding="utf-8")
    async with Runtime(settings, only=only or None, skip=skip) as runtime:
        return await runtime.analyze_manifest(text, manifest_path.parent.resolve())


def _exceeds(findings: list[Finding], threshold: str) -> bool:
    floor = SEVERITY_RANK[threshold]
    return any(SEVERITY_RANK[f.severity] >= floor for f in findings)


def _print_report(manifest_path: Path, report: AnalysisReport) -> None:
    click.echo(f"{manifest_path}: {len(report.findings)} finding(s)")
    for severity in _SEVERITY_ORDER:
        group = [f for f in report.findings if f.severity == severity]
        if not group:
            continue
        click.echo(f"\n{severity.upper()} ({len(group)}):")
        for f in group:
            subject = f" [{f.dependency}]" if f.dependency else ""
            click.echo(f"  [{_SEVERITY_ICON[severity]}]{subject} {f.message}")
