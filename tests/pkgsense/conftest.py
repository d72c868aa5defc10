"""Shared fixtures for pkgsense tests (no network, no npm required)."""

from __future__ import annotations

import json

import pytest

from pkgsense.engines.manifest import build_context


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


class FakeClock:
    """Manually advanced replacement for ``time.monotonic``."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_context():
    """Build an AnalysisContext from a manifest dict."""

    def _make(manifest: dict, workspace_path: str = "."):
        return build_context(json.dumps(manifest, indent=2), workspace_path)

    return _make
