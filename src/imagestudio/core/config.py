"""Configuration management for the Image Studio service.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the IMAGESTUDIO_
prefix, allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (IMAGESTUDIO_* prefix)
2. .env file in the project root
3. Default values defined in StudioConfig

Example .env file:
    IMAGESTUDIO_OPENAI_API_KEY=sk-...
    IMAGESTUDIO_DEFAULT_QUALITY=low
    IMAGESTUDIO_DISPATCH_WORKERS=2
    IMAGESTUDIO_SERVER_PORT=8787

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.

Usage Example
-------------
    from imagestudio.core.config import config

    print(config.image_model)
    print(config.dispatch_workers)

Dispatch Settings
-----------------
- dispatch_workers: 1 sends one request at a time; higher
  values run per-image requests in a bounded thread pool.  Results are
  always returned in image order.
- max_outputs: hard cap on images per request, applied after the user's
  output count is clamped to at least 1.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StudioConfig(BaseSettings):
    """Main configuration for the Image Studio service.

    Values are loaded from environment variables with the IMAGESTUDIO_
    prefix, with fallback to defaults defined here.

    Attributes
    ----------
    Image API Settings:
        openai_api_key : str | None
            API key for the image API.  Required only for generation routes.
        openai_base_url : str
            Base URL of the image API (override for proxies/gateways)
        image_model : str
            Model name sent with every request
        default_quality : Literal["low", "medium", "high", "auto"]
            Quality tier used when a request does not specify one
        input_fidelity : Literal["low", "high"]
            Reference fidelity for edit requests
        request_timeout : float
            Per-request HTTP timeout in seconds

    Dispatch Settings:
        max_outputs : int
            Upper bound on images per request (1-10)
        dispatch_workers : int
            Concurrent per-image requests (1-8)

    Server Settings:
        server_host : str
            Server bind address
        server_port : int
            Server port (1024-65535)
        log_level : str
            Root log level for the CLI entry point
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="IMAGESTUDIO_",
        case_sensitive=False,
    )

    # Image API settings
    openai_api_key: str | None = Field(
        default=None,
        description="API key for the image API (required for generation routes)",
    )
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL of the image API",
    )
    image_model: str = Field(
        default="gpt-image-1",
        description="Image model name sent with every request",
    )
    default_quality: Literal["low", "medium", "high", "auto"] = Field(
        default="low",
        description="Quality tier when the request does not specify one (low = cheapest)",
    )
    input_fidelity: Literal["low", "high"] = Field(
        default="high",
        description="Reference image fidelity for edit requests",
    )
    request_timeout: float = Field(default=300.0, gt=0)

    # Dispatch settings
    max_outputs: int = Field(
        default=10,
        description="Maximum images generated per request",
        ge=1,
        le=10,
    )
    dispatch_workers: int = Field(
        default=1,
        description="Concurrent per-image requests (1 = sequential)",
        ge=1,
        le=8,
    )

    # Server settings
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for local network)",
    )
    server_port: int = Field(
        default=8787,
        description="Server port",
        ge=1024,
        le=65535,
    )
    log_level: str = Field(default="INFO")


# Global configuration instance, loaded from IMAGESTUDIO_* variables and .env.
config = StudioConfig()
