"""Bundle-size lookups (bundlephobia-compatible API)."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from pkgsense.engines.registry.errors import MalformedResponseError
from pkgsense.engines.registry.http import JsonApiClient
from pkgsense.engines.registry.models import BundleSize
from pkgsense.engines.registry.names import validate_package_name
from pkgsense.engines.versioning import LATEST, sanitize

DEFAULT_BUNDLE_URL = "https://bundlephobia.com/api/size"


class BundleSizeClient(JsonApiClient):
    service = "bundle"

    def __init__(self, *, bundle_url: str = DEFAULT_BUNDLE_URL, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._bundle_url = bundle_url

    async def fetch_size(self, name: str, version: str) -> BundleSize:
        package = validate_package_name(name)
        resolved = sanitize(version)
        pinned = f"{package}@{resolved if resolved != LATEST else 'latest'}"
        url = f"{self._bundle_url}?package={quote(pinned, safe='')}"
        return await self._get_cached(
            f"size:{pinned}",
            url,
            package=package,
            validate=lambda payload: _validate_size(payload, pinned),
        )


def _validate_size(payload: Any, pinned: str) -> BundleSize:
    if not isinstance(payload, dict) or not ("size" in payload or "gzip" in payload):
        raise MalformedResponseError(f"invalid response format for {pinned}", package=pinned)
    values: dict[str, int] = {}
    for key in ("size", "gzip"):
        raw = payload.get(key)
        if raw is None:
            continue
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise MalformedResponseError(f"non-numeric {key} for {pinned}", package=pinned)
        values[key] = int(raw)
    return BundleSize(**values)
