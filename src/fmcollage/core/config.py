"""Configuration management for the fmcollage collage generator.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the FMCOLLAGE_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (FMCOLLAGE_* prefix)
2. .env file in the project root
3. Default values defined in CollageConfig

Example .env file:
    FMCOLLAGE_API_KEY=0123456789abcdef0123456789abcdef
    FMCOLLAGE_REQUEST_TIMEOUT=15
    FMCOLLAGE_FETCH_WORKERS=8
    FMCOLLAGE_OUTPUTS_DIR=outputs

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
This ensures a single source of truth for all configuration values across
the application.

Usage Example
-------------
    from fmcollage.core.config import config

    print(config.api_url)
    print(config.fetch_workers)

Directory Management
--------------------
The configuration automatically creates required directories on initialization:
- data_dir: For the persisted options file
- outputs_dir: For collages written by the ``render`` command
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Shared demo key.  Override it with FMCOLLAGE_API_KEY for anything
# beyond local experiments.
DEFAULT_API_KEY = "183cf3f543bbc099bf108c6f8560bdcd"


class CollageConfig(BaseSettings):
    """Main configuration for the collage generator.

    Values are loaded from environment variables with the FMCOLLAGE_ prefix,
    with fallback to defaults defined here.

    Attributes
    ----------
    Provider Settings:
        api_url : str
            Base URL of the Last.fm web service
        api_key : str
            Last.fm API key sent with every request
        user_agent : str
            User-Agent header for API and artwork requests

    Network Settings:
        request_timeout : float
            Timeout in seconds for the top-albums API call
        image_timeout : float
            Timeout in seconds for each artwork download
        fetch_workers : int
            Size of the artwork download pool (1 = sequential)

    Composition:
        collage_background : str
            Fill colour for grid cells left empty (any Pillow colour string)
        default_username : str
            Username offered when no options have been saved yet

    Paths:
        data_dir : Path
            Directory holding the persisted options file
        outputs_dir : Path
            Directory for collages written by the CLI

    Server Settings:
        server_host : str
            Bind address for the REST service
        server_port : int
            Port for the REST service (1024-65535)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FMCOLLAGE_",
        case_sensitive=False,
    )

    # Provider settings
    api_url: str = Field(
        default="http://ws.audioscrobbler.com/2.0/",
        description="Base URL of the Last.fm web service",
    )
    api_key: str = Field(
        default=DEFAULT_API_KEY,
        description="Last.fm API key",
    )
    user_agent: str = Field(
        default="fmcollage/0.1",
        description="User-Agent header sent with every request",
    )

    # Network settings
    request_timeout: float = Field(
        default=10.0,
        description="Timeout in seconds for the top-albums API call",
        gt=0,
    )
    image_timeout: float = Field(
        default=10.0,
        description="Timeout in seconds for each artwork download",
        gt=0,
    )
    fetch_workers: int = Field(
        default=4,
        description="Number of concurrent artwork downloads (1 = sequential)",
        ge=1,
        le=16,
    )

    # Composition settings
    collage_background: str = Field(
        default="black",
        description="Fill colour for empty grid cells",
    )
    default_username: str = Field(
        default="Username",
        description="Username offered when no options have been saved",
    )

    # Paths
    data_dir: Path = Field(
        default=Path("data"),
        description="Directory for the persisted options file",
    )
    outputs_dir: Path = Field(
        default=Path("outputs"),
        description="Directory for rendered collages",
    )

    # Server settings
    server_host: str = Field(
        default="127.0.0.1",
        description="Server bind address",
    )
    server_port: int = Field(
        default=7860,
        description="Server port",
        ge=1024,
        le=65535,
    )

    def __init__(self, **kwargs):
        """Initialize configuration and create required directories.

        Args:
            **kwargs: Configuration overrides (typically from environment variables)
        """
        super().__init__(**kwargs)

        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.outputs_dir.mkdir(parents=True, exist_ok=True)

    @property
    def options_file(self) -> Path:
        """Path of the JSON file holding the last-used collage options."""
        return self.data_dir / "options.json"


# Global configuration instance
config = CollageConfig()
