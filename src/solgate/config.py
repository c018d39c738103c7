from __future__ import annotations

import logging
import os
from dataclasses import dataclass


@dataclass
class Settings:
    domain: str
    log_level: str


def parse_log_level(name: str, *, source: str = "log level") -> int:
    level = logging.getLevelName(name.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"{source} must be a logging level name, got '{name}'")
    return level


def get_settings() -> Settings:
    log_level = os.getenv("SOLGATE_LOG_LEVEL", "info").strip().lower()
    parse_log_level(log_level, source="SOLGATE_LOG_LEVEL")

    domain = os.getenv("SOLGATE_DOMAIN", "localhost").strip()
    if not domain:
        raise ValueError("SOLGATE_DOMAIN must not be empty")

    return Settings(domain=domain, log_level=log_level)
