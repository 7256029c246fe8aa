from __future__ import annotations

import logging
import os
from dataclasses import dataclass

_TRUTHY = {"1", "true", "yes"}


@dataclass(frozen=True)
class Settings:
    database_url: str
    log_level: str
    persist_snapshots: bool
    service_name: str


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in _TRUTHY


def get_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./pahm_progress.db"),
        log_level=os.getenv("PROGRESS_LOG_LEVEL", "INFO").strip().upper(),
        persist_snapshots=_env_flag("PROGRESS_PERSIST_SNAPSHOTS", "true"),
        service_name=os.getenv("PROGRESS_SERVICE_NAME", "pahm-progress-api"),
    )


def configure_logging(settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
