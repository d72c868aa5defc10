"""Analyzer interface."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pkgsense.engines.orchestrator.models import AnalysisContext, Finding


@runtime_checkable
class Analyzer(Protocol):
    """Interface every analyzer must satisfy.

    ``analyze`` returns the analyzer's findings, raises
    :class:`~pkgsense.engines.orchestrator.models.AnalyzerError` for an
    expected failure, and must not depend on any other analyzer's output.
    """

    name: str

    async def analyze(self, context: AnalysisContext) -> list[Finding]: ...
