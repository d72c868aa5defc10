"""Engine analyzer: engines.node / engines.npm and peer-dependency constraints."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping

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
from pkgsense.engines.versioning import parse_version, sanitize, satisfies_range

NodeVersionProvider = Callable[[], Awaitable[str | None]]


async def detect_node_version() -> str | None:
    """Return the local ``node --version`` without the ``v`` prefix, or None."""
    try:
        proc = await asyncio.create_subprocess_exec(
            "node",
            "--version",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError:
        return None
    stdout, _ = await proc.communicate()
    if proc.returncode != 0:
        return None
    return stdout.decode().strip().lstrip("v") or None


class EngineAnalyzer:
    """Check engine requirements and, given a registry client, peer ranges.

    For each declared dependency the registry tells us which peers the
    resolved version expects; a peer declared in the manifest with an
    incompatible range is reported.
    """

    name = "engine"

    def __init__(
        self,
        registry: NpmRegistryClient | None = None,
        *,
        node_version: NodeVersionProvider = detect_node_version,
    ) -> None:
        self._registry = registry
        self._node_version = node_version

    async def analyze(self, context: AnalysisContext) -> list[Finding]:
        findings: list[Finding] = []
        engines = context.manifest.get("engines") or {}

        node_range = engines.get("node")
        if node_range:
            findings += await self._check_node(node_range)

        npm_range = engines.get("npm")
        if npm_range:
            findings.append(
                info_finding(
                    f"npm version {npm_range} is required. Verify your npm version "
                    "with 'npm --version'.",
                    tags=(FindingTag.ENGINES, FindingTag.CONFIG),
                    meta={"required": npm_range, "engine": "npm"},
                )
            )

        peers = context.manifest.get("peerDependencies") or {}
        if peers:
            findings.append(_declared_peers_finding(peers))

        if self._registry is not None and context.dependencies:
            findings += await self._check_dependency_peers(context.dependencies)
        return findings

    async def _check_node(self, required: str) -> list[Finding]:
        current = await self._node_version()
        if current is None:
            return [
                info_finding(
                    f"Node.js {required} is required but no local Node.js installation was found.",
                    tags=(FindingTag.ENGINES, FindingTag.CONFIG),
                    meta={"required": required, "engine": "node"},
                )
            ]
        if satisfies_range(current, required):
            return []
        return [
            error_finding(
                f"Node.js version mismatch: required {required}, found v{current}. "
                "This package may not work correctly.",
                tags=(FindingTag.ENGINES, FindingTag.CONFIG),
                meta={"required": required, "current": current, "engine": "node"},
            )
        ]

    async def _check_dependency_peers(self, dependencies: Mapping[str, str]) -> list[Finding]:
        names = list(dependencies)
        results = await asyncio.gather(
            *(self._registry.fetch_metadata(n) for n in names),  # type: ignore[union-attr]
            return_exceptions=True,
        )
        findings: list[Finding] = []
        for name, result in zip(names, results, strict=True):
            if isinstance(result, RegistryError):
                log_lookup_failure(self.name, name, result)
                continue
            if isinstance(result, BaseException):
                raise result
            resolved = result.resolve_version(dependencies[name])
            if resolved is None:
                continue
            version, info = resolved
            for peer, peer_range in sorted(info.peer_dependencies.items()):
                declared = dependencies.get(peer)
                if declared is None:
                    continue
                # "*", "latest", git URLs: nothing concrete to test.
                lowest = sanitize(declared)
                if parse_version(lowest) is None or satisfies_range(lowest, peer_range):
                    continue
                findings.append(
                    warning_finding(
                        f"{name}@{version} expects peer {peer}@{peer_range}, "
                        f"but {declared} is declared.",
                        dependency=name,
                        tags=(FindingTag.ENGINES, FindingTag.DEPENDENCIES),
                        meta={"peer": peer, "required": peer_range, "declared": declared},
                    )
                )
        return findings


def _declared_peers_finding(peers: Mapping[str, str]) -> Finding:
    names = list(peers)
    plural = len(names) != 1
    return info_finding(
        f"This package has {len(names)} peer {'dependencies' if plural else 'dependency'}: "
        f"{', '.join(names)}. Ensure {'they are' if plural else 'it is'} installed.",
        tags=(FindingTag.ENGINES, FindingTag.DEPENDENCIES),
        meta={"peerDependencies": dict(peers)},
    )
