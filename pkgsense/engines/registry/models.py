"""Registry payload schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from pkgsense.engines.versioning import LATEST, parse_version, sanitize, satisfies_range


def _string_map(value: Any) -> dict[str, str]:
    # Old packages carry odd shapes (engines as a list, numeric ranges); keep the strings.
    if not isinstance(value, dict):
        return {}
    return {str(k): v for k, v in value.items() if isinstance(v, str)}


def _required_string_map(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        raise ValueError("expected an object")
    return _string_map(value)


StringMap = Annotated[dict[str, str], BeforeValidator(_string_map)]
RequiredStringMap = Annotated[dict[str, str], BeforeValidator(_required_string_map)]


class VersionInfo(BaseModel):
    """Per-version manifest fields published to the registry."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    version: str | None = None
    license: Any = None
    licenses: Any = None
    engines: StringMap = Field(default_factory=dict)
    peer_dependencies: StringMap = Field(default_factory=dict, alias="peerDependencies")
    dependencies: StringMap = Field(default_factory=dict)

    @property
    def license_name(self) -> str | None:
        """SPDX expression from ``license``, or the legacy ``licenses`` list."""
        lic = self.license
        if isinstance(lic, str) and lic.strip():
            return lic.strip()
        if isinstance(lic, dict) and isinstance(lic.get("type"), str):
            return lic["type"]
        if isinstance(self.licenses, list):
            names = [
                item["type"] if isinstance(item, dict) else item
                for item in self.licenses
                if isinstance(item, str) or (isinstance(item, dict) and isinstance(item.get("type"), str))
            ]
            if names:
                return names[0] if len(names) == 1 else "(" + " OR ".join(names) + ")"
        return None


class RegistryMetadata(BaseModel):
    """Package document returned by ``GET {registry}/{name}``."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    name: str
    versions: dict[str, VersionInfo]
    dist_tags: RequiredStringMap = Field(alias="dist-tags")
    time: StringMap = Field(default_factory=dict)

    @property
    def latest(self) -> str | None:
        return self.dist_tags.get("latest")

    def published_at(self, version: str) -> datetime | None:
        raw = self.time.get(version)
        if not raw:
            return None
        try:
            return datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            return None

    def resolve_version(
        self, declared: str, *, fall_back_to_latest: bool = True
    ) -> tuple[str, VersionInfo] | None:
        """Pick the published version a declared range most likely installs.

        The sanitized version is used when it was published; otherwise the
        highest non-pre-release version satisfying the range, then
        ``latest`` unless *fall_back_to_latest* is false.
        """
        target = sanitize(declared)
        if target == LATEST:
            target = self.latest or ""
        info = self.versions.get(target)
        if info is not None:
            return target, info

        candidates = [
            (parsed, raw)
            for raw in self.versions
            if (parsed := parse_version(raw)) is not None
            and not parsed.prerelease
            and satisfies_range(raw, declared)
        ]
        if candidates:
            _, best = max(candidates, key=lambda c: c[0])
            return best, self.versions[best]

        latest = self.latest
        if fall_back_to_latest and latest and latest in self.versions:
            return latest, self.versions[latest]
        return None


class BundleSize(BaseModel):
    """Minified and gzipped size, in bytes, from the bundle-size service."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    size: int = 0
    gzip: int = 0
