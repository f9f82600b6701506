"""Structured-output validation for LLM responses."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

from openai import OpenAI, OpenAIError
from pydantic import BaseModel, ValidationError

from hrdraw.core.errors import ExternalServiceError, MalformedResponseError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


@dataclass
class ValidationResult:
    ok: bool
    error: str = ""


class LLMStructuredOutputRunner(Generic[T]):
    """Single-shot JSON completion parsed into ``schema``.

    1) chat completion in JSON mode 2) Pydantic parse 3) optional custom check.
    Failures raise instead of retrying; callers decide on a fallback.
    """

    def __init__(
        self,
        client: OpenAI,
        model: str,
        schema: type[T],
        custom_validator: Optional[Callable[[T], ValidationResult]] = None,
    ) -> None:
        self.client = client
        self.model = model
        self.schema = schema
        self.custom_validator = custom_validator

    def run(self, prompt: str) -> T:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                response_format={"type": "json_object"},
            )
        except OpenAIError as exc:
            raise ExternalServiceError(f"LLM request failed: {exc}") from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise MalformedResponseError("LLM returned an empty response")

        try:
            parsed = self.schema.model_validate_json(content)
        except ValidationError as exc:
            logger.warning(f"Unexpected LLM payload for {self.schema.__name__}: {content[:200]}")
            raise MalformedResponseError(str(exc)) from exc

        if self.custom_validator:
            check = self.custom_validator(parsed)
            if not check.ok:
                raise MalformedResponseError(check.error or "custom validation failed")
        return parsed
