# SPDX-License-Identifier: MIT
"""Feed server configuration, loaded from NUGET_* environment variables."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class DatabaseConfig:
    """Database connection configuration for the database storage backend."""

    url: str = "sqlite:///./nuget_repository.db"
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10


@dataclass
class StorageConfig:
    """Package storage configuration."""

    backend: str = "local"  # "memory", "local" or "database"
    local_path: str = "./packages"


@dataclass
class APIConfig:
    """Main API server configuration."""

    # Server settings
    title: str = "NuGet Package Feed"
    description: str = "Hosted NuGet feed for publishing and serving packages"
    version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Sub-configurations
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)

    # Feed settings
    base_path: str = "/base"
    public_url: Optional[str] = None
    docs_url: Optional[str] = "/docs"
    openapi_url: Optional[str] = "/openapi.json"

    @classmethod
    def from_env(cls) -> "APIConfig":
        """Create configuration from environment variables."""
        import os

        config = cls()

        # Feed
        if base_path := os.getenv("NUGET_BASE_PATH"):
            config.base_path = base_path
        if public_url := os.getenv("NUGET_PUBLIC_URL"):
            config.public_url = public_url

        # Database
        if db_url := os.getenv("NUGET_DATABASE_URL"):
            config.database.url = db_url
        config.database.echo = os.getenv("NUGET_DATABASE_ECHO", "").lower() == "true"

        # Storage
        if storage_backend := os.getenv("NUGET_STORAGE_BACKEND"):
            config.storage.backend = storage_backend
        if local_path := os.getenv("NUGET_STORAGE_LOCAL_PATH"):
            config.storage.local_path = local_path

        # Logging
        if log_level := os.getenv("NUGET_LOG_LEVEL"):
            config.log_level = log_level.upper()

        # Debug
        config.debug = os.getenv("NUGET_DEBUG", "").lower() == "true"

        return config
