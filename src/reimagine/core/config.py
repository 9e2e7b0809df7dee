"""Configuration management for Reimagine.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the REIMAGINE_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (REIMAGINE_* prefix)
2. .env file in the project root
3. Default values defined in ReimagineConfig

Example .env file:
    REIMAGINE_ACCOUNT_ID=0123456789abcdef0123456789abcdef
    REIMAGINE_API_TOKEN=your-workers-ai-token
    REIMAGINE_REQUEST_TIMEOUT=60
    REIMAGINE_SERVER_PORT=8787

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
This ensures a single source of truth for all configuration values across
the application.

Usage Example
-------------
    from reimagine.core.config import config

    print(config.image_model)
    print(config.request_timeout)

Inference Models
----------------
Three fixed remote models are used, one per role:
- classifier_model: image classification (label + score list)
- text_model: bounded-length text completion
- image_model: text-to-image synthesis with a fixed diffusion step count

See Also
--------
- .env.example: Template with all available configuration options
- InferenceGateway: Consumer of the inference settings
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Packaged front-end templates live alongside the ``reimagine`` package.
_PACKAGE_DIR = Path(__file__).resolve().parents[1]


class ReimagineConfig(BaseSettings):
    """Main configuration for Reimagine.

    Values are loaded from environment variables with the REIMAGINE_ prefix,
    with fallback to defaults defined here.

    Attributes
    ----------
    Inference Gateway:
        account_id : str
            Account identifier used in the Workers AI REST path
        api_token : str
            Bearer token for the Workers AI REST API
        api_base_url : str
            Base URL of the REST API (without the ``/accounts`` suffix)
        request_timeout : float
            Upper bound, in seconds, for a single gateway call

    Models:
        classifier_model : str
            Image classification model identifier
        text_model : str
            Text generation model identifier
        image_model : str
            Text-to-image model identifier

    Generation Settings:
        analysis_max_tokens : int
            Completion budget for the analyze description
        transform_max_tokens : int
            Completion budget for the transform description
        num_steps : int
            Diffusion step count sent to the image model

    Server:
        templates_dir : Path
            Directory holding ``index.html``
        server_host : str
            Bind address for uvicorn
        server_port : int
            Port for uvicorn (1024-65535)
        log_level : str
            Log level passed to uvicorn

    Notes
    -----
    - Missing credentials do not fail at startup; the gateway reports them
      on the first call so the front end can still be served.
    - Configuration is immutable after initialization. To change values,
      set environment variables and restart.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="REIMAGINE_",
        case_sensitive=False,
    )

    # Inference gateway settings
    account_id: str = Field(
        default="",
        description="Account identifier for the Workers AI REST API",
    )
    api_token: str = Field(
        default="",
        description="Bearer token for the Workers AI REST API",
    )
    api_base_url: str = Field(
        default="https://api.cloudflare.com/client/v4",
        description="Base URL of the inference REST API",
    )
    request_timeout: float = Field(
        default=120.0,
        description="Timeout in seconds for a single gateway call",
        gt=0,
    )

    # Model identifiers
    classifier_model: str = Field(
        default="@cf/microsoft/resnet-50",
        description="Image classification model",
    )
    text_model: str = Field(
        default="@cf/microsoft/phi-2",
        description="Text generation model",
    )
    image_model: str = Field(
        default="@cf/stabilityai/stable-diffusion-xl-base-1.0",
        description="Text-to-image synthesis model",
    )

    # Generation settings
    analysis_max_tokens: int = Field(default=200, ge=1, le=2048)
    transform_max_tokens: int = Field(default=150, ge=1, le=2048)
    num_steps: int = Field(
        default=20,
        description="Diffusion steps for the image model",
        ge=1,
        le=50,
    )

    # Paths
    templates_dir: Path = Field(
        default=_PACKAGE_DIR / "templates",
        description="Directory containing index.html",
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
    log_level: Literal["critical", "error", "warning", "info", "debug"] = Field(
        default="info",
        description="uvicorn log level",
    )

    @property
    def has_credentials(self) -> bool:
        """Whether both the account id and API token are set."""
        return bool(self.account_id and self.api_token)


# Global configuration instance
# Loads values from environment variables (REIMAGINE_* prefix) and .env file.
config = ReimagineConfig()
