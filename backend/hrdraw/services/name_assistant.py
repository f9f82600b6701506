"""AI-assisted name extraction and group naming."""
from __future__ import annotations

import io
import json
import logging
from typing import Optional, Protocol, Sequence

from openai import OpenAI, OpenAIError
from pydantic import BaseModel, Field

from hrdraw.core.config import settings
from hrdraw.core.errors import ExternalServiceError
from hrdraw.i18n import pick
from hrdraw.services.llm_validation import LLMStructuredOutputRunner, ValidationResult
from hrdraw.services.model_router import ModelRouter

logger = logging.getLogger(__name__)

_AUDIO_EXTENSIONS = {
    "audio/webm": "webm",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/mp4": "m4a",
    "audio/x-m4a": "m4a",
    "audio/ogg": "ogg",
    "audio/flac": "flac",
}


class NameListResponse(BaseModel):
    names: list[str] = Field(default_factory=list)


class NameAssistant(Protocol):
    """External collaborator. Every method may raise ExternalServiceError."""

    def clean_names(self, raw_text: str) -> list[str]:
        ...

    def transcribe_audio(self, audio: bytes, mime_type: str) -> list[str]:
        ...

    def name_groups(self, groups: Sequence[Sequence[str]]) -> list[str]:
        ...


def audio_filename(mime_type: str | None) -> str:
    base = (mime_type or "audio/webm").split(";", 1)[0].strip().lower()
    return f"audio.{_AUDIO_EXTENSIONS.get(base, 'webm')}"


def _clean(names: Sequence[str]) -> list[str]:
    return [name.strip() for name in names if name and name.strip()]


def _validate_names(response: NameListResponse) -> ValidationResult:
    if not any(name.strip() for name in response.names):
        return ValidationResult(ok=False, error="response contained no names")
    return ValidationResult(ok=True)


class OpenAINameAssistant:
    def __init__(self, client: Optional[OpenAI] = None) -> None:
        self.api_key = settings.openai_api_key
        self.client = client or (OpenAI(api_key=self.api_key) if self.api_key else None)
        self.runner: Optional[LLMStructuredOutputRunner[NameListResponse]] = None
        if self.client:
            choice = ModelRouter.select("fast", structured_output=True)
            self.runner = LLMStructuredOutputRunner(
                client=self.client,
                model=choice.model,
                schema=NameListResponse,
                custom_validator=_validate_names,
            )
        self.transcribe_model = ModelRouter.select("transcribe").model
        self.language = settings.transcribe_language

    def is_available(self) -> bool:
        return self.client is not None

    def _require_runner(self) -> LLMStructuredOutputRunner[NameListResponse]:
        if not self.runner:
            raise ExternalServiceError("OPENAI_API_KEY is not configured")
        return self.runner

    def clean_names(self, raw_text: str) -> list[str]:
        runner = self._require_runner()
        prompt = pick(
            f"""从以下文本中提取清晰的名字列表。文本可能包含 CSV 数据、带有换行符的纯文本或混合格式。
只保留人名，去掉表头、编号和其他字段。

文本：
{raw_text}

JSON 响应：
{{"names": ["名字1", "名字2"]}}
""",
            f"""Extract a clean list of person names from the text below. The text may be CSV data,
plain text with line breaks, or a mix. Keep only the names; drop headers, numbering and other fields.

Text:
{raw_text}

Respond as JSON:
{{"names": ["name 1", "name 2"]}}
""",
        )
        return _clean(runner.run(prompt).names)

    def transcribe_audio(self, audio: bytes, mime_type: str) -> list[str]:
        runner = self._require_runner()
        if not audio:
            return []

        audio_file = io.BytesIO(audio)
        audio_file.name = audio_filename(mime_type)
        params = {"model": self.transcribe_model, "file": audio_file}
        if self.language:
            params["language"] = self.language
        try:
            transcription = self.client.audio.transcriptions.create(**params)
        except OpenAIError as exc:
            raise ExternalServiceError(f"Audio transcription failed: {exc}") from exc

        text = (getattr(transcription, "text", None) or "").strip()
        if not text:
            return []
        logger.info(f"Transcribed {len(audio)} bytes of {mime_type} into {len(text)} chars")

        prompt = pick(
            f"""以下是朗读名字列表的语音转录。请提取其中的名字，忽略任何填充词，只保留名字。

转录：
{text}

JSON 响应：
{{"names": ["名字1", "名字2"]}}
""",
            f"""Below is a transcript of someone reading out a list of names. Extract the names,
ignoring filler words, and keep only the names.

Transcript:
{text}

Respond as JSON:
{{"names": ["name 1", "name 2"]}}
""",
        )
        return _clean(runner.run(prompt).names)

    def name_groups(self, groups: Sequence[Sequence[str]]) -> list[str]:
        runner = self._require_runner()
        members = json.dumps([list(group) for group in groups], ensure_ascii=False)
        prompt = pick(
            f"""这里有几组人员：{members}。
请为每组生成一个有创意、专业且有趣的中文队名。队名数量与组数相同，顺序与组的顺序一致。

JSON 响应：
{{"names": ["队名1", "队名2"]}}
""",
            f"""Here are several groups of people: {members}.
Create a creative, professional and fun team name for each group. Return exactly one name per
group, in the same order as the groups.

Respond as JSON:
{{"names": ["team name 1", "team name 2"]}}
""",
        )
        return [name.strip() for name in runner.run(prompt).names]
