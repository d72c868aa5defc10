"""npm registry client: cached, rate-limited, retrying metadata fetches."""

from __future__ import annotations

from typing import Any

import pydantic
import structlog

from pkgsense.engines.registry.errors import LicenseNotFoundError, MalformedResponseError
from pkgsense.engines.registry.http import JsonApiClient
from pkgsense.engines.registry.models import RegistryMetadata
from pkgsense.engines.registry.names import encode_package_name, validate_package_name
from pkgsense.engines.versioning import LATEST

log = structlog.get_logger("pkgsense.engine")

DEFAULT_REGISTRY_URL = "https://registry.npmjs.org"


class NpmRegistryClient(JsonApiClient):
    """Read package documents from an npm-compatible registry.

    Share one instance (and therefore one cache and one rate limiter)
    across every analyzer that needs registry data.
    """

    service = "registry"

    def __init__(self, *, registry_url: str = DEFAULT_REGISTRY_URL, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._registry_url = registry_url.rstrip("/")

    @property
    def registry_url(self) -> str:
        return self._registry_url

    async def fetch_metadata(self, name: str) -> RegistryMetadata:
        """Return the full registry document for *name*.

        Raises a :class:`~pkgsense.engines.registry.errors.RegistryError`
        subclass on failure; invalid names fail before any cache or
        network access.
        """
        package = validate_package_name(name)
        url = f"{self._registry_url}/{encode_package_name(package)}"
        return await self._get_cached(
            f"metadata:{package}",
            url,
            package=package,
            validate=lambda payload: _validate_metadata(payload, package),
        )

    async def fetch_latest_version(self, name: str) -> str:
        metadata = await self.fetch_metadata(name)
        latest = metadata.latest
        if not latest:
            raise MalformedResponseError(
                f"no latest version found for package {metadata.name}", package=metadata.name
            )
        return latest

    async def fetch_license(self, name: str, version: str | None = None) -> str:
        """License of *version* (a concrete version or a range), default latest."""
        metadata = await self.fetch_metadata(name)
        resolved = metadata.resolve_version(version or LATEST, fall_back_to_latest=False)
        if resolved is None:
            raise LicenseNotFoundError(
                f"no published version of {metadata.name} matches {version or LATEST}",
                package=metadata.name,
            )
        target, info = resolved
        license_name = info.license_name
        if license_name is None:
            raise LicenseNotFoundError(
                f"no license information found for {metadata.name}@{target}",
                package=metadata.name,
            )
        return license_name


def _validate_metadata(payload: Any, package: str) -> RegistryMetadata:
    try:
        return RegistryMetadata.model_validate(payload)
    except pydantic.ValidationError as exc:
        log.warning("registry.malformed", package=package, errors=exc.error_count())
        raise MalformedResponseError(
            f"invalid metadata format for package {package}", package=package
        ) from exc
