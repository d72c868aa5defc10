"""Tests for package.json parsing and context construction."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from pkgsense.engines.manifest import (
    ManifestError,
    build_context,
    load_context,
    locate_dependencies,
    merge_dependencies,
    parse_manifest,
)

MANIFEST_TEXT = """{
  "name": "demo",
  "version": "1.0.0",
  "dependencies": {
    "react": "^18.2.0",
    "lodash": "^4.17.21"
  },
  "devDependencies": {
    "lodash": "^4.17.0",
    "jest": "^29.0.0"
  }
}
"""

# ── TestParseManifest ─────────────────────────────────────────────────────


class TestParseManifest:
    def test_valid(self):
        data = parse_manifest(MANIFEST_TEXT)
        assert data["name"] == "demo"

    def test_invalid_json(self):
        with pytest.raises(ManifestError) as exc_info:
            parse_manifest("{not json")
        assert exc_info.value.code == "json-parse-error"

    @pytest.mark.parametrize(
        "doc",
        [
            [],
            "a string",
            {"name": 42},
            {"dependencies": ["react"]},
            {"dependencies": {"react": 18}},
            {"scripts": {"test": None}},
            {"files": "dist"},
            {"files": ["dist", 3]},
            {"type": "esm"},
        ],
    )
    def test_invalid_shapes(self, doc):
        with pytest.raises(ManifestError) as exc_info:
            parse_manifest(json.dumps(doc))
        assert exc_info.value.code == "invalid-package-json"

    def test_legacy_license_object_accepted(self):
        data = parse_manifest(json.dumps({"license": {"type": "MIT"}}))
        assert data["license"] == {"type": "MIT"}


# ── TestMergeAndLocate ────────────────────────────────────────────────────


class TestMergeAndLocate:
    def test_dev_range_wins(self):
        merged = merge_dependencies(parse_manifest(MANIFEST_TEXT))
        assert merged == {"react": "^18.2.0", "lodash": "^4.17.0", "jest": "^29.0.0"}

    def test_empty_sections(self):
        assert merge_dependencies({}) == {}

    def test_locations_point_at_name(self):
        locations = locate_dependencies(MANIFEST_TEXT, ["react", "jest"])
        lines = MANIFEST_TEXT.splitlines()
        react = locations["react"]
        assert lines[react.start_line][react.start_character : react.end_character] == "react"
        assert react.start_line == 4

    def test_location_follows_dev_entry(self):
        locations = locate_dependencies(MANIFEST_TEXT, ["lodash"])
        assert locations["lodash"].start_line == 8

    def test_missing_name_has_no_location(self):
        assert locate_dependencies(MANIFEST_TEXT, ["vue"]) == {}


# ── TestBuildContext ──────────────────────────────────────────────────────


class TestBuildContext:
    def test_build(self, tmp_path):
        ctx = build_context(MANIFEST_TEXT, tmp_path)
        assert ctx.workspace_path == tmp_path
        assert ctx.dependencies["lodash"] == "^4.17.0"
        assert ctx.production_dependencies["lodash"] == "^4.17.21"
        assert ctx.development_dependencies["jest"] == "^29.0.0"
        assert set(ctx.dependency_locations) == {"react", "lodash", "jest"}

    def test_load_from_directory(self, tmp_path: Path):
        (tmp_path / "package.json").write_text(MANIFEST_TEXT, encoding="utf-8")
        ctx = load_context(tmp_path)
        assert ctx.manifest["name"] == "demo"
        assert ctx.workspace_path == tmp_path.resolve()

    def test_load_from_file(self, tmp_path: Path):
        path = tmp_path / "package.json"
        path.write_text(MANIFEST_TEXT, encoding="utf-8")
        assert load_context(path).manifest["version"] == "1.0.0"

    def test_invalid_manifest_raises(self):
        with pytest.raises(ManifestError):
            build_context('{"dependencies": 1}')
