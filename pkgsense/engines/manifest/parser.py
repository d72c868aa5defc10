"""package.json parsing and AnalysisContext construction."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from pkgsense.engines.orchestrator.models import AnalysisContext, LineRange

MANIFEST_FILENAME = "package.json"

_STRING_MAP_FIELDS = ("dependencies", "devDependencies", "peerDependencies", "scripts", "engines")
_STRING_FIELDS = ("name", "version", "description", "homepage")
_MODULE_TYPES = ("module", "commonjs")


class ManifestError(Exception):
    """The manifest cannot be analyzed at all."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        super().__init__(message)


def parse_manifest(text: str) -> dict[str, Any]:
    """Decode and validate package.json text.

    Raises :class:`ManifestError` with code ``json-parse-error`` for
    invalid JSON and ``invalid-package-json`` for a document whose known
    fields have the wrong types.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ManifestError("json-parse-error", f"invalid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise ManifestError("invalid-package-json", "package.json must be a JSON object")

    for key in _STRING_FIELDS:
        if key in data and data[key] is not None and not isinstance(data[key], str):
            raise ManifestError("invalid-package-json", f'"{key}" must be a string')
    for key in _STRING_MAP_FIELDS:
        value = data.get(key)
        if value is None:
            continue
        if not isinstance(value, dict) or not all(isinstance(v, str) for v in value.values()):
            raise ManifestError("invalid-package-json", f'"{key}" must map names to strings')
    files = data.get("files")
    if files is not None and (
        not isinstance(files, list) or not all(isinstance(f, str) for f in files)
    ):
        raise ManifestError("invalid-package-json", '"files" must be an array of strings')
    module_type = data.get("type")
    if module_type is not None and module_type not in _MODULE_TYPES:
        raise ManifestError("invalid-package-json", '"type" must be "module" or "commonjs"')
    return data


def merge_dependencies(manifest: dict[str, Any]) -> dict[str, str]:
    """Production and development dependencies; the dev range wins on overlap."""
    merged: dict[str, str] = {}
    merged.update(manifest.get("dependencies") or {})
    merged.update(manifest.get("devDependencies") or {})
    return merged


def locate_dependencies(text: str, names: list[str]) -> dict[str, LineRange]:
    """Map each name to the last line where it appears as a JSON key."""
    patterns = {name: re.compile(rf'"{re.escape(name)}"\s*:') for name in names}
    locations: dict[str, LineRange] = {}
    for line_no, line in enumerate(text.splitlines()):
        for name, pattern in patterns.items():
            m = pattern.search(line)
            if m:
                start = m.start() + 1
                locations[name] = LineRange(line_no, start, line_no, start + len(name))
    return locations


def build_context(text: str, workspace_path: Path | str = ".") -> AnalysisContext:
    manifest = parse_manifest(text)
    dependencies = merge_dependencies(manifest)
    return AnalysisContext(
        manifest=manifest,
        dependencies=dependencies,
        dependency_locations=locate_dependencies(text, list(dependencies)),
        workspace_path=Path(workspace_path),
    )


def load_context(path: Path) -> AnalysisContext:
    """Read a package.json (or a directory containing one) into a context."""
    manifest_path = path / MANIFEST_FILENAME if path.is_dir() else path
    text = manifest_path.read_text(encoding="utf-8")
    return build_context(text, manifest_path.parent.resolve())
