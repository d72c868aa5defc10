"""Analyzers: each inspects one aspect of a package.json."""

from pkgsense.engines.analyzers.dependency_graph import DependencyGraphAnalyzer
from pkgsense.engines.analyzers.engine import EngineAnalyzer, detect_node_version
from pkgsense.engines.analyzers.heuristics import HeuristicsAnalyzer
from pkgsense.engines.analyzers.license import LicenseAnalyzer
from pkgsense.engines.analyzers.metadata import MetadataAnalyzer
from pkgsense.engines.analyzers.script import ScriptAnalyzer
from pkgsense.engines.analyzers.update import UpdateAnalyzer
from pkgsense.engines.analyzers.vulnerability import VulnerabilityAnalyzer
from pkgsense.engines.analyzers.weight import WeightAnalyzer

# Canonical run order; also the set of names accepted by configuration.
ANALYZER_NAMES: tuple[str, ...] = (
    "heuristics",
    "weight",
    "vulnerability",
    "metadata",
    "script",
    "license",
    "update",
    "engine",
    "dependency-graph",
)

__all__ = [
    "ANALYZER_NAMES",
    "DependencyGraphAnalyzer",
    "EngineAnalyzer",
    "HeuristicsAnalyzer",
    "LicenseAnalyzer",
    "MetadataAnalyzer",
    "ScriptAnalyzer",
    "UpdateAnalyzer",
    "VulnerabilityAnalyzer",
    "WeightAnalyzer",
    "detect_node_version",
]
