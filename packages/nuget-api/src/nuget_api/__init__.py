# SPDX-License-Identifier: MIT
"""Hosted NuGet feed: package publishing, content and version listings."""

__version__ = "0.1.0"

from .app import create_app
from .checksum import compute_sha512, verify_checksum
from .config import APIConfig, DatabaseConfig, StorageConfig
from .headers import Headers
from .identity import PackageId, PackageIdentity, Version
from .middleware.errors import (
    APIError,
    ErrorCode,
    InvalidPackageError,
    MethodNotAllowedError,
    NotFoundError,
    PackageExistsError,
    StorageError,
)
from .routing import Route, RoutePattern, Router, Subtree
from .slice import NuGet
from .storage import (
    DatabaseStorage,
    FileStorage,
    InMemoryStorage,
    Key,
    KeyNotFoundError,
    Storage,
)

__all__ = [
    # App factory
    "create_app",
    # Feed
    "NuGet",
    "Route",
    "RoutePattern",
    "Router",
    "Subtree",
    "Headers",
    # Package identity
    "PackageId",
    "PackageIdentity",
    "Version",
    # Storage
    "DatabaseStorage",
    "FileStorage",
    "InMemoryStorage",
    "Key",
    "KeyNotFoundError",
    "Storage",
    # Configuration
    "APIConfig",
    "DatabaseConfig",
    "StorageConfig",
    # Checksum utilities
    "compute_sha512",
    "verify_checksum",
    # Errors
    "APIError",
    "ErrorCode",
    "InvalidPackageError",
    "MethodNotAllowedError",
    "NotFoundError",
    "PackageExistsError",
    "StorageError",
]
