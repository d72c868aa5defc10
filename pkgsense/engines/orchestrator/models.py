"""Data models shared by the orchestrator and the analyzers."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Literal

Severity = Literal["info", "warning", "error"]

SEVERITY_RANK: dict[str, int] = {"info": 0, "warning": 1, "error": 2}


class FindingTag(str, enum.Enum):
    MAINTENANCE = "maintenance"
    REPLACEMENT = "replacement"
    DUPLICATION = "duplication"
    QUALITY = "quality"
    PACKAGING = "packaging"
    CONFIG = "config"
    PERFORMANCE = "performance"
    SECURITY = "security"
    LICENSE = "license"
    UPDATES = "updates"
    ENGINES = "engines"
    SCRIPTS = "scripts"
    DEPENDENCIES = "dependencies"


@dataclass(frozen=True)
class Finding:
    """A single diagnostic produced by an analyzer."""

    severity: Severity
    message: str
    dependency: str | None = None
    tags: frozenset[FindingTag] = frozenset()
    meta: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity,
            "message": self.message,
            "dependency": self.dependency,
            "tags": sorted(t.value for t in self.tags),
            "meta": self.meta,
        }


def _finding(
    severity: Severity,
    message: str,
    dependency: str | None,
    tags: Iterable[FindingTag],
    meta: Any,
) -> Finding:
    return Finding(severity, message, dependency, frozenset(tags), meta)


def info_finding(
    message: str, *, dependency: str | None = None, tags: Iterable[FindingTag] = (), meta: Any = None
) -> Finding:
    return _finding("info", message, dependency, tags, meta)


def warning_finding(
    message: str, *, dependency: str | None = None, tags: Iterable[FindingTag] = (), meta: Any = None
) -> Finding:
    return _finding("warning", message, dependency, tags, meta)


def error_finding(
    message: str, *, dependency: str | None = None, tags: Iterable[FindingTag] = (), meta: Any = None
) -> Finding:
    return _finding("error", message, dependency, tags, meta)


@dataclass(frozen=True)
class LineRange:
    """Position of a dependency name inside the manifest text (0-based)."""

    start_line: int
    start_character: int
    end_line: int
    end_character: int


@dataclass(frozen=True)
class AnalysisContext:
    """Immutable per-run snapshot handed to every analyzer.

    *dependencies* merges ``dependencies`` and ``devDependencies``; when a
    name appears in both, the development range wins.  The raw sections
    stay available on *manifest* for analyzers that need to tell them
    apart.
    """

    manifest: Mapping[str, Any]
    dependencies: Mapping[str, str]
    dependency_locations: Mapping[str, LineRange] = field(default_factory=dict)
    workspace_path: Path = Path(".")

    def __post_init__(self) -> None:
        for name in ("manifest", "dependencies", "dependency_locations"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))
        object.__setattr__(self, "workspace_path", Path(self.workspace_path))

    @property
    def production_dependencies(self) -> Mapping[str, str]:
        return _string_section(self.manifest.get("dependencies"))

    @property
    def development_dependencies(self) -> Mapping[str, str]:
        return _string_section(self.manifest.get("devDependencies"))


def _string_section(value: Any) -> dict[str, str]:
    if not isinstance(value, Mapping):
        return {}
    return {k: v for k, v in value.items() if isinstance(v, str)}


class AnalyzerErrorCode(str, enum.Enum):
    NETWORK = "network"
    PARSE = "parse"
    TIMEOUT = "timeout"
    VALIDATION = "validation"
    UNKNOWN = "unknown"


class AnalyzerError(Exception):
    """Recoverable failure of one analyzer; the orchestrator drops its findings.

    The underlying exception, if any, is available as ``cause`` (and as
    ``__cause__`` when raised with ``raise ... from``).
    """

    def __init__(
        self,
        code: AnalyzerErrorCode,
        message: str,
        *,
        cause: BaseException | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.cause = cause
        super().__init__(f"[{code.value}] {message}")


@dataclass
class AnalysisReport:
    """Outcome of one orchestrator run."""

    findings: list[Finding] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    detail: dict[str, str] = field(default_factory=dict)

    @property
    def failed(self) -> list[str]:
        return [name for name, status in self.detail.items() if status != "ok"]
