"""AnalysisOrchestrator: concurrent fan-out over independent analyzers."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable

import structlog

from pkgsense.engines.orchestrator.base import Analyzer
from pkgsense.engines.orchestrator.models import (
    AnalysisContext,
    AnalysisReport,
    AnalyzerError,
    Finding,
)

log = structlog.get_logger("pkgsense.engine")


class AnalysisOrchestrator:
    """Run every registered analyzer against one context and merge the results.

    Analyzers run concurrently and all of them settle before the run
    completes; a failing analyzer never cancels its siblings and
    contributes no findings at all.
    """

    def __init__(self, analyzers: Iterable[Analyzer] = ()) -> None:
        self._analyzers: list[Analyzer] = []
        self.register(*analyzers)

    @property
    def analyzers(self) -> tuple[Analyzer, ...]:
        return tuple(self._analyzers)

    def register(self, *analyzers: Analyzer) -> None:
        known = {a.name for a in self._analyzers}
        for analyzer in analyzers:
            if analyzer.name in known:
                raise ValueError(f"analyzer {analyzer.name!r} is already registered")
            known.add(analyzer.name)
            self._analyzers.append(analyzer)

    async def run(self, context: AnalysisContext) -> list[Finding]:
        report = await self.run_detailed(context)
        return report.findings

    async def run_detailed(self, context: AnalysisContext) -> AnalysisReport:
        """Run all analyzers and return findings plus per-analyzer status.

        ``detail`` maps each analyzer name to ``"ok"`` or an error string;
        ``errors`` holds one message per failed analyzer.
        """
        analyzers = list(self._analyzers)
        started = time.monotonic()
        results = await asyncio.gather(
            *(_invoke(a, context) for a in analyzers),
            return_exceptions=True,
        )

        report = AnalysisReport()
        for analyzer, result in zip(analyzers, results, strict=True):
            if isinstance(result, BaseException):
                if isinstance(result, AnalyzerError):
                    err_msg = f"{result.code.value}: {result.message}"
                else:
                    err_msg = f"{type(result).__name__}: {result}"
                log.error(
                    "orchestrator.analyzer_failed",
                    analyzer=analyzer.name,
                    error=err_msg,
                )
                report.errors.append(f"analyzer {analyzer.name} failed: {err_msg}")
                report.detail[analyzer.name] = err_msg
                continue
            report.findings.extend(result)
            report.detail[analyzer.name] = "ok"

        log.info(
            "orchestrator.run_complete",
            analyzers=len(analyzers),
            failed=len(report.errors),
            findings=len(report.findings),
            elapsed_ms=round((time.monotonic() - started) * 1000),
        )
        return report


async def _invoke(analyzer: Analyzer, context: AnalysisContext) -> list[Finding]:
    # A synchronous raise in analyze() stays inside the gathered task.
    result = await analyzer.analyze(context)
    if not isinstance(result, list) or not all(isinstance(f, Finding) for f in result):
        raise TypeError(
            f"analyzer {analyzer.name!r} returned {type(result).__name__}, expected list[Finding]"
        )
    return result
