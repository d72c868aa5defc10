"""Tests for the version helpers."""

from __future__ import annotations

import pytest

from pkgsense.engines.versioning import (
    LATEST,
    Comparison,
    UpdateType,
    classify_update,
    compare,
    is_prerelease,
    major_of,
    parse_version,
    sanitize,
    satisfies_range,
)

# ── TestParseVersion ──────────────────────────────────────────────────────


class TestParseVersion:
    def test_full_version(self):
        v = parse_version("1.2.3-beta.1+build.5")
        assert (v.major, v.minor, v.patch) == (1, 2, 3)
        assert v.prerelease == ("beta", "1")
        assert v.build == ("build", "5")
        assert str(v) == "1.2.3-beta.1+build.5"

    def test_leading_v(self):
        assert str(parse_version("v2.0.0")) == "2.0.0"

    @pytest.mark.parametrize("text", ["1.2", "01.2.3", "1.2.3.4", "abc", "", None, 123])
    def test_rejects(self, text):
        assert parse_version(text) is None

    def test_build_metadata_ignored_in_ordering(self):
        assert compare("1.0.0+a", "1.0.0+b") is Comparison.EQUAL
        assert classify_update("1.0.0+a", "1.0.0+b") is UpdateType.NONE

    def test_prerelease_precedence(self):
        ordered = [
            "1.0.0-alpha",
            "1.0.0-alpha.1",
            "1.0.0-alpha.beta",
            "1.0.0-beta",
            "1.0.0-beta.2",
            "1.0.0-beta.11",
            "1.0.0-rc.1",
            "1.0.0",
        ]
        parsed = [parse_version(v) for v in ordered]
        assert parsed == sorted(parsed)
        assert len(set(parsed)) == len(parsed)


# ── TestSanitize ──────────────────────────────────────────────────────────


class TestSanitize:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("^1.2.3", "1.2.3"),
            ("~1.2.3", "1.2.3"),
            (">=1.0.0", "1.0.0"),
            ("v1.2.3", "1.2.3"),
            ("~2", "2.0.0"),
            ("^4.17", "4.17.0"),
            ("^2.0.0-beta.1", "2.0.0-beta.1"),
            (">=1.0.0 <2.0.0", "1.0.0"),
            ("  1.0.0  ", "1.0.0"),
        ],
    )
    def test_strips_operators(self, raw, expected):
        assert sanitize(raw) == expected

    @pytest.mark.parametrize("raw", ["", "latest", "next", "   "])
    def test_keywords(self, raw):
        assert sanitize(raw) == LATEST

    def test_unparseable_returned_as_is(self):
        assert sanitize("*") == "*"
        assert sanitize("github:user/repo") == "github:user/repo"

    def test_non_string(self):
        assert sanitize(None) == LATEST


# ── TestCompare ───────────────────────────────────────────────────────────


class TestCompare:
    @pytest.mark.parametrize(
        ("a", "b", "expected"),
        [
            ("1.0.0", "2.0.0", Comparison.LESS),
            ("2.0.0", "1.9.9", Comparison.GREATER),
            ("^1.2.3", "1.2.3", Comparison.EQUAL),
            ("1.0.0-alpha", "1.0.0", Comparison.LESS),
            ("1.10.0", "1.9.0", Comparison.GREATER),
            ("garbage", "1.0.0", Comparison.INVALID),
            ("1.0.0", "latest", Comparison.INVALID),
        ],
    )
    def test_compare(self, a, b, expected):
        assert compare(a, b) is expected


# ── TestPrerelease ────────────────────────────────────────────────────────


class TestPrerelease:
    @pytest.mark.parametrize(
        ("version", "expected"),
        [
            ("2.0.0-alpha.1", True),
            ("^2.0.0-beta.1", True),
            ("1.0.0-rc.1", True),
            ("1.0.0", False),
            ("1.0.0+build", False),
            ("garbage", False),
        ],
    )
    def test_is_prerelease(self, version, expected):
        assert is_prerelease(version) is expected

    def test_major_of(self):
        assert major_of("^3.1.0") == 3
        assert major_of("0.4.0") == 0
        assert major_of("nope") is None


# ── TestClassifyUpdate ────────────────────────────────────────────────────


class TestClassifyUpdate:
    @pytest.mark.parametrize(
        ("current", "latest", "expected"),
        [
            ("1.0.0", "2.0.0", UpdateType.MAJOR),
            ("1.0.0", "1.1.0", UpdateType.MINOR),
            ("1.0.0", "1.0.1", UpdateType.PATCH),
            ("1.0.0", "1.0.0", UpdateType.NONE),
            ("2.0.0", "1.0.0", UpdateType.NONE),
            ("1.0.0", "2.0.0-alpha.1", UpdateType.NONE),
            ("1.2.3", "2.0.1", UpdateType.MAJOR),
            ("1.2.3", "1.3.9", UpdateType.MINOR),
            ("^1.2.3", "1.3.0", UpdateType.MINOR),
            ("1.0.0-beta.1", "1.0.0", UpdateType.NONE),
            ("garbage", "1.0.0", UpdateType.NONE),
            ("1.0.0", "garbage", UpdateType.NONE),
            ("latest", "1.0.0", UpdateType.NONE),
        ],
    )
    def test_classify(self, current, latest, expected):
        assert classify_update(current, latest) is expected

    def test_values(self):
        assert UpdateType.MAJOR.value == "major"
        assert UpdateType.NONE.value == "none"


# ── TestSatisfiesRange ────────────────────────────────────────────────────


class TestSatisfiesRange:
    @pytest.mark.parametrize(
        ("version", "range_", "expected"),
        [
            # caret
            ("1.2.3", "^1.0.0", True),
            ("2.0.0", "^1.0.0", False),
            ("0.2.5", "^0.2.3", True),
            ("0.3.0", "^0.2.3", False),
            ("0.0.4", "^0.0.3", False),
            # tilde
            ("1.2.9", "~1.2.3", True),
            ("1.3.0", "~1.2.3", False),
            ("1.9.0", "~1", True),
            # x-ranges
            ("1.5.0", "1.x", True),
            ("2.0.0", "1.x", False),
            ("3.0.0", "*", True),
            ("1.0.0", "", True),
            # primitives
            ("16.0.0", ">=14", True),
            ("12.22.0", ">=14", False),
            ("18.17.0", ">=14.0.0 <19", True),
            ("19.0.0", ">=14.0.0 <19", False),
            ("1.2.3", ">= 1.2.3", True),
            ("1.2.3", "1.2.3", True),
            ("1.2.4", "=1.2.3", False),
            # hyphen
            ("1.5.0", "1.0.0 - 2.0.0", True),
            ("2.0.1", "1.0.0 - 2.0.0", False),
            ("2.9.9", "1.0.0 - 2", True),
            # unions
            ("1.0.0", "^2.0.0 || ^1.0.0", True),
            ("3.0.0", "^2.0.0 || ^1.0.0", False),
            # leading v on the version
            ("v16.14.0", ">=16", True),
        ],
    )
    def test_ranges(self, version, range_, expected):
        assert satisfies_range(version, range_) is expected

    @pytest.mark.parametrize(
        ("version", "range_", "expected"),
        [
            ("1.2.3-beta.2", "^1.2.3-beta.1", True),
            ("1.3.0-beta.1", "^1.2.3-beta.1", False),
            ("2.0.0-rc.1", ">=1.0.0", False),
            ("1.3.0", "^1.2.3-beta.1", True),
        ],
    )
    def test_prerelease_rule(self, version, range_, expected):
        assert satisfies_range(version, range_) is expected

    @pytest.mark.parametrize(
        ("version", "range_"),
        [("1.0.0", "not a range"), ("garbage", "^1.0.0"), (None, "^1"), ("1.0.0", None)],
    )
    def test_invalid_input_is_false(self, version, range_):
        assert satisfies_range(version, range_) is False
