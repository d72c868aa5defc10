"""Orchestrator engine: run independent analyzers concurrently."""

from pkgsense.engines.orchestrator.base import Analyzer
from pkgsense.engines.orchestrator.models import (
    SEVERITY_RANK,
    AnalysisContext,
    AnalysisReport,
    AnalyzerError,
    AnalyzerErrorCode,
    Finding,
    FindingTag,
    LineRange,
    Severity,
    error_finding,
    info_finding,
    warning_finding,
)
from pkgsense.engines.orchestrator.orchestrator import AnalysisOrchestrator

__all__ = [
    "SEVERITY_RANK",
    "AnalysisContext",
    "AnalysisOrchestrator",
    "AnalysisReport",
    "Analyzer",
    "AnalyzerError",
    "AnalyzerErrorCode",
    "Finding",
    "FindingTag",
    "LineRange",
    "Severity",
    "error_finding",
    "info_finding",
    "warning_finding",
]
