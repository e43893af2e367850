"""Configuration management."""

import logging
import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


def _env_optional_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    return int(value) if value else None


class Config(BaseModel):
    """Application configuration."""

    # API Keys
    anthropic_api_key: str = Field(
        default_factory=lambda: os.getenv("ANTHROPIC_API_KEY", ""),
        description="Anthropic API key"
    )
    google_application_credentials: str = Field(
        default_factory=lambda: os.getenv("GOOGLE_APPLICATION_CREDENTIALS", ""),
        description="Path to Google Cloud service account JSON"
    )
    google_cloud_project: str = Field(
        default_factory=lambda: os.getenv("GOOGLE_CLOUD_PROJECT", ""),
        description="Google Cloud project ID"
    )
    google_cloud_location: str = Field(
        default_factory=lambda: os.getenv("GOOGLE_CLOUD_LOCATION", "us-central1"),
        description="Vertex AI region"
    )

    # Operator toggles for a custom text endpoint
    use_custom_api: bool = Field(
        default=False,
        description="Route text generation through the custom endpoint"
    )
    custom_api_endpoint: str = Field(
        default_factory=lambda: os.getenv("STORYFRAME_CUSTOM_API_ENDPOINT", ""),
        description="Base URL of an Anthropic-compatible endpoint"
    )
    custom_api_key: str = Field(
        default_factory=lambda: os.getenv("STORYFRAME_CUSTOM_API_KEY", ""),
        description="API key for the custom endpoint"
    )

    # Paths
    workspace: Path = Field(
        default_factory=lambda: Path(os.getenv("STORYFRAME_WORKSPACE", ".")),
        description="Workspace directory"
    )

    # Model settings
    default_model: str = Field(
        default_factory=lambda: os.getenv("STORYFRAME_MODEL", "claude-sonnet-4-20250514"),
        description="Default Claude model"
    )
    imagen_model: str = Field(
        default="imagen-3.0-generate-002",
        description="Imagen model for standard-resolution images"
    )
    imagen_fast_model: str = Field(
        default="imagen-3.0-fast-generate-001",
        description="Imagen model for fast preview images"
    )
    imagen_capability_model: str = Field(
        default="imagen-3.0-capability-001",
        description="Imagen model used when a reference image is supplied"
    )

    # Fan-out pacing
    batch_size: int = Field(default=3, ge=1, description="Concurrent calls per batch")
    batch_cooldown: float = Field(
        default_factory=lambda: _env_float("STORYFRAME_BATCH_COOLDOWN", 1.0),
        ge=0,
        description="Seconds to wait between batches"
    )
    max_batch_cooldown: float = Field(
        default=8.0,
        ge=0,
        description="Upper bound for the adaptive cooldown"
    )
    keyframe_batch_size: Optional[int] = Field(
        default_factory=lambda: _env_optional_int("STORYFRAME_KEYFRAME_BATCH_SIZE"),
        description="Keyframe fan-out width; None launches every scene at once"
    )
    storyboard_timeout: float = Field(
        default_factory=lambda: _env_float("STORYFRAME_STORYBOARD_TIMEOUT", 60.0),
        gt=0,
        description="Wall-clock budget for the storyboard call in seconds"
    )

    class Config:
        """Pydantic config."""
        frozen = True

    @property
    def text_api_key(self) -> str:
        """Return the key the text client should use."""
        if self.use_custom_api and self.custom_api_key:
            return self.custom_api_key
        return self.anthropic_api_key

    @property
    def text_base_url(self) -> Optional[str]:
        """Return the custom endpoint when it is switched on."""
        if self.use_custom_api and self.custom_api_endpoint:
            return self.custom_api_endpoint
        return None

    def validate_required(self) -> None:
        """Validate that required credentials are set."""
        if not self.text_api_key:
            raise ValueError("ANTHROPIC_API_KEY not set")

    def validate_image_required(self) -> None:
        """Validate that Imagen / Google Cloud settings are present.

        Raises:
            ValueError: If any required image configuration is missing.
        """
        if not self.google_cloud_project:
            raise ValueError(
                "Missing required image configuration: GOOGLE_CLOUD_PROJECT. "
                "Set the corresponding environment variable."
            )


def load_config(env_file: Optional[Path] = None) -> Config:
    """Load configuration from the environment (and an optional .env file)."""
    load_dotenv(dotenv_path=env_file, override=env_file is not None)
    return Config()


class ConfigStore:
    """Holds the current configuration value with an explicit lifecycle.

    The config is loaded once when the store is created. Later changes go
    through ``reload``, ``update`` or ``reset``, each of which swaps in a new
    immutable ``Config``; callers that already hold the old value keep it.
    """

    def __init__(self, env_file: Optional[Path] = None) -> None:
        self._env_file = env_file
        self._config = load_config(env_file)

    @property
    def current(self) -> Config:
        return self._config

    def reload(self) -> Config:
        """Re-read the environment and replace the current config."""
        self._config = load_config(self._env_file)
        logger.info("Configuration reloaded")
        return self._config

    def update(self, **changes: Any) -> Config:
        """Apply operator toggles such as a custom endpoint or key."""
        data = self._config.model_dump()
        data.update({k: v for k, v in changes.items() if v is not None})
        self._config = Config(**data)
        logger.info(f"Configuration updated: {', '.join(sorted(changes))}")
        return self._config

    def reset(self) -> Config:
        """Drop the custom endpoint toggles and return to environment defaults."""
        self._config = Config()
        logger.info("Configuration reset to defaults")
        return self._config
