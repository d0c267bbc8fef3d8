"""Configuration management for Mosaic Gallery.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the MOSAIC_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (MOSAIC_* prefix)
2. .env file in the project root
3. Default values defined in MosaicConfig

Example .env file:
    MOSAIC_SERVER_PORT=8080
    MOSAIC_STORAGE_BACKEND=json
    MOSAIC_DATA_FILE=data/gallery.json
    MOSAIC_SIMULATED_LATENCY_MS=300

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time and
is used by the CLI entry point.  The API application factory accepts an
explicit config so tests can build isolated applications.

Usage Example
-------------
    from mosaic.core.config import config

    print(config.storage_backend)
    print(config.default_page_size)

Storage Backends
----------------
- ``memory``: items live only for the lifetime of the process (default)
- ``json``: items are read from and written to ``data_file``

Setting ``likes_db`` switches the like ledger from an in-memory set to a
SQLite table so liked state survives restarts.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MosaicConfig(BaseSettings):
    """Main configuration for Mosaic Gallery.

    Values are loaded from environment variables with the MOSAIC_ prefix,
    with fallback to the defaults defined here.

    Attributes
    ----------
    Server Settings:
        server_host : str
            Server bind address (0.0.0.0 for local network)
        server_port : int
            Server port (1024-65535)
        log_level : str
            Root logging level used by the CLI
        cors_origins : list[str]
            Origins allowed by the CORS middleware

    Storage Settings:
        storage_backend : Literal["memory", "json"]
            Item repository backing store
        data_file : Path
            JSON file used by the ``json`` backend
        likes_db : Path | None
            SQLite file for liked state (None keeps it in memory)
        seed_sample_data : bool
            Seed the sample catalogue when the store starts empty

    Listing Settings:
        default_page_size : int
            Page size used when a listing request omits ``limit``
        max_page_size : int
            Upper bound applied to ``limit``
        simulated_latency_ms : int
            Artificial delay added to read endpoints (0 disables it)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="MOSAIC_",
        case_sensitive=False,
    )

    # Server settings
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for local network)",
    )
    server_port: int = Field(
        default=8000,
        description="Server port",
        ge=1024,
        le=65535,
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level for the CLI entry point",
    )
    cors_origins: list[str] = Field(
        default=["*"],
        description="Origins allowed to call the API from a browser",
    )

    # Storage settings
    storage_backend: Literal["memory", "json"] = Field(
        default="memory",
        description="Item repository backing store",
    )
    data_file: Path = Field(
        default=Path("data/gallery.json"),
        description="JSON file used by the json storage backend",
    )
    likes_db: Path | None = Field(
        default=None,
        description="SQLite file for liked state; unset keeps likes in memory",
    )
    seed_sample_data: bool = Field(
        default=True,
        description="Seed the sample catalogue when the store starts empty",
    )

    # Listing settings
    default_page_size: int = Field(default=12, ge=1, le=100)
    max_page_size: int = Field(default=100, ge=1, le=1000)
    simulated_latency_ms: int = Field(
        default=0,
        description="Artificial delay for read endpoints, for exercising loading states",
        ge=0,
        le=10_000,
    )

    def __init__(self, **kwargs):
        """Initialize configuration and create required directories.

        Only the json backend touches the file system, so the data directory
        is created only when that backend is selected.

        Args:
            **kwargs: Configuration overrides (typically from environment variables)
        """
        super().__init__(**kwargs)

        if self.storage_backend == "json":
            self.data_file.parent.mkdir(parents=True, exist_ok=True)
        if self.likes_db is not None:
            self.likes_db.parent.mkdir(parents=True, exist_ok=True)


# Global configuration instance
# Loaded from environment variables (MOSAIC_* prefix) and .env file.
config = MosaicConfig()
