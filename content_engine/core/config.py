"""
Application Configuration

Settings class using pydantic-settings for environment variable loading.
Also builds the explicit RenderPipelineConfig handed to the render pipeline.
"""

from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For example, RENDER_WORKER_URL overrides render_worker_url.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Content Engine API", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")
    version: str = Field(default="0.1.0", description="API version")

    # Security
    secret_key: str = Field(
        default="change-me-in-production-min-32-chars",
        description="Secret key for JWT verification (min 32 characters)",
    )

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./content_engine.db",
        description="Database connection URL",
    )
    sql_echo: bool = Field(default=False, description="Log emitted SQL statements")

    # Storage
    storage_path: str = Field(
        default="/data",
        alias="STORAGE_PATH",
        description="Root path for file storage (synthesized audio)",
    )
    public_base_url: str = Field(
        default="http://localhost:8000",
        description="Externally reachable base URL of this service (used in audio URLs)",
    )

    # Render worker
    render_worker_url: str = Field(
        default="http://localhost:3001",
        description="Base URL of the isolated render worker",
    )
    render_dispatch_timeout: float = Field(
        default=30.0,
        description="Timeout for the render dispatch call in seconds",
    )
    render_status_timeout: float = Field(
        default=10.0,
        description="Timeout for each render status poll in seconds",
    )
    render_poll_interval_ms: int = Field(
        default=30_000,
        ge=0,
        description="Interval between render status polls in milliseconds",
    )
    render_max_poll_attempts: int = Field(
        default=30,
        ge=1,
        description="Maximum number of render status polls (30 x 30s = 15 minutes)",
    )

    # Renderer bounds and output defaults
    render_min_duration: int = Field(default=180, description="Minimum target duration in seconds")
    render_max_duration: int = Field(default=600, description="Maximum target duration in seconds")
    render_fps: int = Field(default=30, description="Output frames per second")
    render_width: int = Field(default=1080, description="Output width in pixels")
    render_height: int = Field(default=1920, description="Output height in pixels (9:16 portrait)")

    # Generative code model (OpenAI-compatible chat completions)
    codegen_api_key: str = Field(default="", description="Credential for the code model")
    codegen_base_url: Optional[str] = Field(
        default=None,
        description="Endpoint of the code model (None uses the SDK default)",
    )
    codegen_model: str = Field(default="gpt-4o", description="Code model name")
    codegen_timeout: float = Field(default=120.0, description="Code generation timeout in seconds")
    codegen_max_tokens: int = Field(default=8000, description="Maximum tokens in generated code")

    # Speech synthesis (ElevenLabs)
    elevenlabs_api_key: str = Field(default="", description="ElevenLabs API key")
    elevenlabs_base_url: str = Field(default="https://api.elevenlabs.io/v1")
    elevenlabs_voice_id: str = Field(
        default="21m00Tcm4TlvDq8ikWAM",
        description="Narration voice (Rachel)",
    )

    # Stock footage (Pexels)
    pexels_api_key: str = Field(default="", description="Pexels API key")
    pexels_base_url: str = Field(default="https://api.pexels.com/videos")
    footage_per_scene: int = Field(default=1, ge=1, description="Stock clips requested per scene")
    fallback_video_urls: str = Field(
        default="",
        description="Comma-separated footage URLs used when a scene has no stock footage",
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string to list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def fallback_video_urls_list(self) -> list[str]:
        """Parse fallback footage URLs from comma-separated string to list."""
        return [url.strip() for url in self.fallback_video_urls.split(",") if url.strip()]

    def pipeline_config(self) -> "RenderPipelineConfig":
        """Build the explicit render pipeline configuration from these settings."""
        return RenderPipelineConfig(
            worker_base_url=self.render_worker_url,
            model_endpoint=self.codegen_base_url,
            model_credential=self.codegen_api_key,
            model_name=self.codegen_model,
            poll_interval_ms=self.render_poll_interval_ms,
            max_poll_attempts=self.render_max_poll_attempts,
            min_duration_sec=self.render_min_duration,
            max_duration_sec=self.render_max_duration,
            fps=self.render_fps,
            width=self.render_width,
            height=self.render_height,
        )


class RenderPipelineConfig(BaseModel):
    """
    Configuration consumed by the render pipeline.

    Passed into the orchestrator at construction time.
    """

    model_config = ConfigDict(frozen=True)

    worker_base_url: str
    model_endpoint: Optional[str] = None
    model_credential: str = ""
    model_name: str = "gpt-4o"
    poll_interval_ms: int = Field(default=30_000, ge=0)
    max_poll_attempts: int = Field(default=30, ge=1)
    min_duration_sec: int = 180
    max_duration_sec: int = 600
    fps: int = Field(default=30, gt=0)
    width: int = Field(default=1080, gt=0)
    height: int = Field(default=1920, gt=0)

    @property
    def poll_interval_seconds(self) -> float:
        return self.poll_interval_ms / 1000

    @property
    def max_wait_seconds(self) -> float:
        """Hard wall-clock ceiling on a render job's polling lifetime."""
        return self.poll_interval_seconds * self.max_poll_attempts


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings instance.

    Uses lru_cache to ensure settings are only loaded once per process.

    Returns:
        Settings: Application settings instance

    Example:
        >>> settings = get_settings()
        >>> print(settings.render_max_poll_attempts)
        30
    """
    return Settings()


# Convenience function for direct access
settings = get_settings()
