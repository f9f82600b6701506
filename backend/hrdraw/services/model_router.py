"""Model selection for the name assistant tasks."""
from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class ModelChoice:
    model: str
    reason: str


class ModelRouter:
    """Route tasks to models with fallback when JSON output is unsupported."""

    DEFAULT_MODEL = "gpt-4o-mini"
    FAST_MODEL = "gpt-4o-mini"
    TRANSCRIBE_MODEL = "gpt-4o-mini-transcribe"

    @classmethod
    def select(cls, task: str, structured_output: bool = False) -> ModelChoice:
        if task == "fast":
            model = os.getenv("MODEL_FAST", cls.FAST_MODEL)
        elif task == "transcribe":
            model = os.getenv("AUDIO_TRANSCRIBE_MODEL", cls.TRANSCRIBE_MODEL)
        else:
            model = os.getenv("MODEL_DEFAULT", cls.DEFAULT_MODEL)

        if structured_output and not cls._supports_json_output(model):
            fallback = os.getenv("MODEL_FALLBACK_STRUCTURED", cls.DEFAULT_MODEL)
            return ModelChoice(
                model=fallback,
                reason=f"fallback: {model} lacks JSON output",
            )

        return ModelChoice(model=model, reason="selected")

    @staticmethod
    def _supports_json_output(model: str) -> bool:
        # Transcription-only models cannot answer chat completions.
        return not ("transcribe" in model or model.startswith("whisper"))
