"""Manifest engine: turn package.json text into an AnalysisContext."""

from pkgsense.engines.manifest.parser import (
    MANIFEST_FILENAME,
    ManifestError,
    build_context,
    load_context,
    locate_dependencies,
    merge_dependencies,
    parse_manifest,
)

__all__ = [
    "MANIFEST_FILENAME",
    "ManifestError",
    "build_context",
    "load_context",
    "locate_dependencies",
    "merge_dependencies",
    "parse_manifest",
]
