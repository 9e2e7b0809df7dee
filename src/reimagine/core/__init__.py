"""Core functionality for Reimagine.

- **ReimagineConfig**: Configuration management using Pydantic Settings
- **config**: Global configuration instance (loads from environment variables)
- **InferenceGateway**: Async client for the hosted inference models
- **GatewayError**: Raised for any failure surfaced by the gateway
"""

from reimagine.core.config import ReimagineConfig, config
from reimagine.core.gateway import GatewayError, InferenceGateway

__all__ = [
    "GatewayError",
    "InferenceGateway",
    "ReimagineConfig",
    "config",
]
