# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Only the outermost layer (CLI) builds Settings. Components receive the
explicit RetryConfig / BatchConfig structures derived from it.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from fusextractor.batch.models import BatchConfig
    from fusextractor.retry.executor import RetryConfig


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Retry (Backoff Executor) ===
    retry_max_attempts: int = 5
    retry_base_delay: float = 1.0
    retry_max_delay: float = 60.0

    # === Batch scheduler ===
    batch_id_field: str = "id"
    batch_group_size: int = 10
    batch_inter_group_delay: float = 60.0
    batch_checkpoint_every: int = 50
    batch_checkpoint_path: Path = Path("data/checkpoints/checkpoint.json")
    batch_consult_cache: bool = True

    # === Content cache ===
    cache_backend: Literal["json"] = "json"
    cache_root: Path = Path("data/cache")

    # === LLM (Gemini) ===
    google_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash-lite"
    gemini_temperature: float = 0.0
    gemini_max_output_tokens: int = 1024

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate numeric ranges and cross-field rules."""
        errors: list[str] = []

        if self.retry_max_attempts < 1:
            errors.append("RETRY_MAX_ATTEMPTS must be >= 1")
        if self.retry_base_delay <= 0:
            errors.append("RETRY_BASE_DELAY must be > 0")
        if self.retry_max_delay < self.retry_base_delay:
            errors.append("RETRY_MAX_DELAY must be >= RETRY_BASE_DELAY")
        if self.batch_group_size < 1:
            errors.append("BATCH_GROUP_SIZE must be >= 1")
        if self.batch_inter_group_delay < 0:
            errors.append("BATCH_INTER_GROUP_DELAY must be >= 0")
        if self.batch_checkpoint_every < 1:
            errors.append("BATCH_CHECKPOINT_EVERY must be >= 1")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Component configs ---

    def retry_config(self) -> RetryConfig:
        from fusextractor.retry.executor import RetryConfig

        return RetryConfig(
            max_attempts=self.retry_max_attempts,
            base_delay=self.retry_base_delay,
            max_delay=self.retry_max_delay,
        )

    def batch_config(self) -> BatchConfig:
        from fusextractor.batch.models import BatchConfig

        return BatchConfig(
            id_field=self.batch_id_field,
            group_size=self.batch_group_size,
            inter_group_delay=self.batch_inter_group_delay,
            checkpoint_every=self.batch_checkpoint_every,
            checkpoint_path=self.batch_checkpoint_path,
            consult_cache=self.batch_consult_cache,
        )


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or CLI flags).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
