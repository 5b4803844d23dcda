"""Configuration management for Pressroom."""

from .loader import Config, load_config, save_config
from .models import (
    ConfigModel,
    ImageConfig,
    LLMConfig,
    NarrationConfig,
    PostgresConfig,
    ScrapingConfig,
    SearchConfig,
    ServerConfig,
)

__all__ = [
    "Config",
    "ConfigModel",
    "ImageConfig",
    "LLMConfig",
    "NarrationConfig",
    "PostgresConfig",
    "ScrapingConfig",
    "SearchConfig",
    "ServerConfig",
    "load_config",
    "save_config",
]
