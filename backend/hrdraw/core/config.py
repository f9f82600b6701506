from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parents[2]
load_dotenv(BASE_DIR / ".env.local")


def _split_csv(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")
    transcribe_language: str | None = os.getenv("AUDIO_TRANSCRIBE_LANGUAGE") or None
    cors_origins: list[str] = field(default_factory=lambda: _split_csv(
        os.getenv("CORS_ORIGINS"),
        ["http://localhost:3000", "http://127.0.0.1:3000"],
    ))
    draw_cycle_ticks: int = max(0, _int_env("DRAW_CYCLE_TICKS", 20))
    draw_cycle_duration_ms: int = max(0, _int_env("DRAW_CYCLE_DURATION_MS", 2000))
    confirm_timeout_seconds: float = _float_env("CONFIRM_TIMEOUT_SECONDS", 3.0)
    default_group_size: int = max(1, _int_env("DEFAULT_GROUP_SIZE", 4))

    @property
    def draw_tick_interval_ms(self) -> int:
        if not self.draw_cycle_ticks:
            return 0
        return self.draw_cycle_duration_ms // self.draw_cycle_ticks


settings = Settings()
