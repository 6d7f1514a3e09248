"""Centralized configuration management for the call aggregator.

This module provides a single source of truth for configuration including
environment variables, chain parameters of the in-memory environment and
logging/metrics settings.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings

from ..models import ZERO_ADDRESS
from ..models import normalize_address


class Settings(BaseSettings):
    """Centralized settings for the call aggregator."""

    # === Chain Configuration ===
    chain_id: int = Field(default=1, description="Chain identifier reported by the environment")
    block_gas_limit: int = Field(default=30_000_000, description="Gas limit of produced blocks")
    block_hash_history: int = Field(
        default=256, ge=1, description="Number of past block hashes the environment retains"
    )
    genesis_timestamp: int | None = Field(
        default=None, description="Timestamp of the genesis block (defaults to now)"
    )
    coinbase: str = Field(default=ZERO_ADDRESS, description="Operator address of produced blocks")
    difficulty: int = Field(default=0, description="Difficulty reported for produced blocks")
    base_fee: int = Field(default=0, description="Base fee reported for produced blocks")

    # === Test Environment Detection ===
    pytest_current_test: str | None = Field(default=None, description="Test mode indicator")

    # === Logging Configuration ===
    log_level: str = Field(default="INFO", description="Logging level")
    log_dir: str | None = Field(default=None, description="Directory for log files")
    structured_logging: bool = Field(default=True, description="Enable structured JSON logging")

    # === Performance Configuration ===
    enable_metrics: bool = Field(default=True, description="Enable metrics collection")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",  # Ignore extra environment variables
    }

    @field_validator("coinbase", mode="before")
    @classmethod
    def validate_coinbase(cls, value):
        return normalize_address(value)

    @property
    def is_test_environment(self) -> bool:
        """Check if running in test environment."""
        return "PYTEST_CURRENT_TEST" in os.environ or self.pytest_current_test is not None

    @property
    def log_path(self) -> Path:
        """Get the log directory as a Path object, creating it if needed."""
        if self.log_dir:
            path = Path(self.log_dir).resolve()
        else:
            path = Path(__file__).resolve().parent.parent
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def metrics_enabled(self) -> bool:
        """Metrics are off in test environments unless explicitly forced."""
        return self.enable_metrics and not self.is_test_environment


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance (singleton pattern)."""
    global _settings
    if _settings is None:
        load_dotenv()  # Load .env file
        _settings = Settings()
    return _settings


def reset_settings():
    """Reset the global settings instance (primarily for testing)."""
    global _settings
    _settings = None
