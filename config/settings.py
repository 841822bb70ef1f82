from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    VERSION: str = "0.1.0"

    # ─── Kernel counters ──────────────────────────────────────────────────────
    PROC_ROOT: str = "/proc"
    UPTIME_PATH: str = "/proc/uptime"

    # ─── External tools ───────────────────────────────────────────────────────
    PS_BINARY: str = "ps"
    WMIC_BINARY: str = "wmic"
    GETCONF_BINARY: str = "getconf"

    # ─── Sampling ─────────────────────────────────────────────────────────────
    # Substituted for an elapsed time of exactly zero between two samples.
    ZERO_ELAPSED_SECONDS: float = 0.1
    INCLUDE_CHILDREN: bool = False

    # ─── Logging ──────────────────────────────────────────────────────────────
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    LOG_JSON: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
