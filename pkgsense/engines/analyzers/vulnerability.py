"""Vulnerability analyzer: ``npm audit --json`` in the workspace."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import structlog

from pkgsense.engines.orchestrator.models import (
    AnalysisContext,
    AnalyzerError,
    AnalyzerErrorCode,
    Finding,
    FindingTag,
    Severity,
)

log = structlog.get_logger("pkgsense.engine")

AUDIT_COMMAND = ("npm", "audit", "--json")
DEFAULT_AUDIT_TIMEOUT = 60.0

SEVERITY_MAP: dict[str, Severity] = {
    "critical": "error",
    "high": "error",
    "moderate": "warning",
    "low": "info",
    "info": "info",
}

# (returncode, stdout, stderr)
CommandRunner = Callable[[list[str], Path], Awaitable[tuple[int, bytes, bytes]]]


async def run_command(cmd: list[str], cwd: Path) -> tuple[int, bytes, bytes]:
    proc = await asyncio.create_subprocess_exec(
        *cmd,
        cwd=str(cwd),
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await proc.communicate()
    except asyncio.CancelledError:
        proc.kill()
        await proc.wait()
        raise
    return proc.returncode or 0, stdout, stderr


class VulnerabilityAnalyzer:
    """Report advisories found by ``npm audit``.

    ``npm audit`` exits non-zero whenever it finds something, so the exit
    code is ignored and the JSON report on stdout is authoritative.
    """

    name = "vulnerability"

    def __init__(
        self,
        *,
        runner: CommandRunner = run_command,
        timeout: float = DEFAULT_AUDIT_TIMEOUT,
    ) -> None:
        self._runner = runner
        self._timeout = timeout

    async def analyze(self, context: AnalysisContext) -> list[Finding]:
        cwd = context.workspace_path
        try:
            _, stdout, stderr = await asyncio.wait_for(
                self._runner(list(AUDIT_COMMAND), cwd), timeout=self._timeout
            )
        except FileNotFoundError as exc:
            raise AnalyzerError(
                AnalyzerErrorCode.VALIDATION,
                "npm is not installed or not on PATH",
                cause=exc,
            ) from exc
        except asyncio.TimeoutError as exc:
            raise AnalyzerError(
                AnalyzerErrorCode.TIMEOUT,
                f"npm audit did not finish within {self._timeout:g}s",
                cause=exc,
            ) from exc

        report = _parse_report(stdout, stderr)
        findings = audit_findings(report)
        log.debug("vulnerability.audit_complete", cwd=str(cwd), advisories=len(findings))
        return findings


def _parse_report(stdout: bytes, stderr: bytes) -> dict[str, Any]:
    try:
        report = json.loads(stdout.decode() or "null")
    except ValueError as exc:
        raise AnalyzerError(
            AnalyzerErrorCode.PARSE, "npm audit produced invalid JSON", cause=exc
        ) from exc
    if not isinstance(report, dict):
        detail = stderr.decode().strip() or "empty output"
        raise AnalyzerError(AnalyzerErrorCode.PARSE, f"unexpected npm audit output: {detail}")

    error = report.get("error")
    if error:
        summary = error.get("summary") if isinstance(error, dict) else str(error)
        raise AnalyzerError(AnalyzerErrorCode.UNKNOWN, f"npm audit failed: {summary or error}")
    return report


def audit_findings(report: dict[str, Any]) -> list[Finding]:
    """Translate an npm (v7+) audit report into findings, one per package."""
    vulnerabilities = report.get("vulnerabilities") or {}
    findings: list[Finding] = []
    for name, vuln in sorted(vulnerabilities.items()):
        if not isinstance(vuln, dict):
            continue
        raw_severity = str(vuln.get("severity", "info")).lower()
        severity = SEVERITY_MAP.get(raw_severity, "info")
        titles = [v["title"] for v in vuln.get("via", []) if isinstance(v, dict) and v.get("title")]
        message = f'{raw_severity.capitalize()} severity vulnerability in "{name}"'
        if vuln.get("range"):
            message += f" ({vuln['range']})"
        if titles:
            message += f": {'; '.join(titles)}"
        if vuln.get("fixAvailable"):
            message += ". Fix available via `npm audit fix`."
        findings.append(
            Finding(
                severity=severity,
                message=message,
                dependency=name,
                tags=frozenset((FindingTag.SECURITY,)),
                meta={
                    "severity": raw_severity,
                    "range": vuln.get("range"),
                    "fixAvailable": bool(vuln.get("fixAvailable")),
                },
            )
        )
    return findings
