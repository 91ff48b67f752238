"""Runtime configuration, read from ``ORDERCORE_*`` environment variables and ``.env``."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ordercore.domain.model.inventory import DEFAULT_LOW_STOCK_THRESHOLD


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ORDERCORE_",
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    # --- Store ---
    data_dir: Path = Path("data")
    lock_timeout_seconds: float = Field(default=5.0, gt=0)

    # --- Inventory ---
    default_low_stock_threshold: int = Field(default=DEFAULT_LOW_STOCK_THRESHOLD, ge=0)

    # --- Logging ---
    log_level: str = "INFO"
    log_json: bool = False
