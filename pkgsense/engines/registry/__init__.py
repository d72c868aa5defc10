"""Registry engine: cached, rate-limited access to package metadata."""

from pkgsense.engines.registry.bundle import BundleSizeClient
from pkgsense.engines.registry.cache import TTLCache
from pkgsense.engines.registry.client import NpmRegistryClient
from pkgsense.engines.registry.errors import (
    InvalidPackageNameError,
    LicenseNotFoundError,
    MalformedResponseError,
    PackageNotFoundError,
    RegistryError,
    RegistryNetworkError,
    RegistryTimeoutError,
    RetriesExhaustedError,
)
from pkgsense.engines.registry.models import BundleSize, RegistryMetadata, VersionInfo
from pkgsense.engines.registry.rate_limiter import TokenBucketRateLimiter

__all__ = [
    "BundleSize",
    "BundleSizeClient",
    "InvalidPackageNameError",
    "LicenseNotFoundError",
    "MalformedResponseError",
    "NpmRegistryClient",
    "PackageNotFoundError",
    "RegistryError",
    "RegistryMetadata",
    "RegistryNetworkError",
    "RegistryTimeoutError",
    "RetriesExhaustedError",
    "TTLCache",
    "TokenBucketRateLimiter",
    "VersionInfo",
]
