"""Configuration models."""

from typing import List, Optional

from pydantic import BaseModel, Field


class PostgresConfig(BaseModel):
    """Postgres configuration."""

    host: str = Field("localhost", description="Database host")
    port: int = Field(5432, description="Database port")
    database: str = Field("pressroom", description="Database name")
    user: str = Field("pressroom_user", description="Database user")
    password: Optional[str] = Field(None, description="Database password")
    password_env: Optional[str] = Field(None, description="Environment variable for password")


class LLMConfig(BaseModel):
    """Language model provider configuration."""

    provider: str = Field("openai", description="LLM provider (openai, mock)")
    model: str = Field("gpt-4o", description="Model name")
    api_key_env: Optional[str] = Field("OPENAI_API_KEY", description="Environment variable for API key")
    api_key: Optional[str] = Field(None, description="API key (prefer api_key_env)")
    base_url: Optional[str] = Field(None, description="Base URL for API")
    temperature: float = Field(0.7, ge=0.0, le=2.0)


class SearchConfig(BaseModel):
    """Web search configuration."""

    api_key_env: str = Field("GOOGLE_API_KEY", description="Environment variable for search API key")
    engine_id_env: str = Field("GOOGLE_CSE_ID", description="Environment variable for search engine ID")
    num_results: int = Field(5, description="Results requested per topic", ge=1, le=10)
    fallback_when_unconfigured: bool = Field(
        True,
        description="Use curated fallback sources when search credentials are missing",
    )


class ScrapingConfig(BaseModel):
    """Source page fetching configuration."""

    timeout: float = Field(10.0, description="Per-page timeout in seconds", gt=0)
    stagger_delay: float = Field(1.0, description="Extra delay per result index in seconds", ge=0)
    max_chars_per_source: int = Field(4000, description="Source text passed to the model", ge=100)
    user_agent: str = Field("Pressroom/1.0 (Article Generator)")


class ImageConfig(BaseModel):
    """Image generation configuration."""

    model: str = Field("dall-e-3")
    size: str = Field("1024x1024")
    download_retries: int = Field(3, ge=1, le=10)
    retry_backoff: float = Field(2.0, description="Fixed delay between download attempts", ge=0)
    download_timeout: float = Field(30.0, gt=0)


class NarrationConfig(BaseModel):
    """Text-to-speech configuration."""

    enabled: bool = Field(True)
    model: str = Field("tts-1")
    voice: str = Field("alloy")
    max_chars: int = Field(4000, description="Upstream input limit", ge=100, le=4096)
    timeout_seconds: float = Field(60.0, gt=0)


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = Field("0.0.0.0")
    port: int = Field(5000)
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])


class ConfigModel(BaseModel):
    """Main configuration model."""

    media_root: str = Field("~/Pressroom/public", description="Root directory for stored media")
    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    scraping: ScrapingConfig = Field(default_factory=ScrapingConfig)
    images: ImageConfig = Field(default_factory=ImageConfig)
    narration: NarrationConfig = Field(default_factory=NarrationConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
