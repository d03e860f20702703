from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List


def _split_csv(value: str) -> List[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"])
    page_title: str = "Maldives Tuna — Industry Dashboard"


def load_settings() -> Settings:
    defaults = Settings()
    origins = os.environ.get("TUNA_CORS_ORIGINS")
    return Settings(
        log_level=os.environ.get("TUNA_LOG_LEVEL", defaults.log_level),
        cors_origins=_split_csv(origins) if origins else defaults.cors_origins,
        page_title=os.environ.get("TUNA_PAGE_TITLE", defaults.page_title),
    )
