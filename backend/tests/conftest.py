import random
from typing import Sequence

import pytest

from hrdraw.core.errors import ExternalServiceError, MalformedResponseError


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeAssistant:
    """Stands in for the OpenAI-backed assistant; records calls."""

    def __init__(
        self,
        cleaned: list[str] | None = None,
        transcribed: list[str] | None = None,
        group_names: list[str] | None = None,
        fail: bool = False,
    ) -> None:
        self.cleaned = cleaned or []
        self.transcribed = transcribed or []
        self.group_names = group_names or []
        self.fail = fail
        self.calls: list[tuple] = []

    def clean_names(self, raw_text: str) -> list[str]:
        self.calls.append(("clean_names", raw_text))
        if self.fail:
            raise ExternalServiceError("service unavailable")
        return list(self.cleaned)

    def transcribe_audio(self, audio: bytes, mime_type: str) -> list[str]:
        self.calls.append(("transcribe_audio", len(audio), mime_type))
        if self.fail:
            raise MalformedResponseError("not a list")
        return list(self.transcribed)

    def name_groups(self, groups: Sequence[Sequence[str]]) -> list[str]:
        self.calls.append(("name_groups", [list(g) for g in groups]))
        if self.fail:
            raise ExternalServiceError("service unavailable")
        return list(self.group_names)


@pytest.fixture()
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture()
def fake_assistant() -> FakeAssistant:
    return FakeAssistant()
