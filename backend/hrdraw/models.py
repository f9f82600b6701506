from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class CreateSessionRequest(BaseModel):
    text: str | None = None


class RosterUpdateRequest(BaseModel):
    text: str = ""


class DrawSettingsRequest(BaseModel):
    allowRepeats: bool = False


class GroupRequest(BaseModel):
    # Any JSON value; clamped to >= 1 server side, non-numeric values fall back to 1.
    groupSize: Any = None


class CandidateResponse(BaseModel):
    id: str
    name: str
    isDuplicate: bool = False


class AnalysisResponse(BaseModel):
    total: int
    uniqueCount: int
    duplicateCount: int
    duplicates: list[str]


class DrawStateResponse(BaseModel):
    allowRepeats: bool
    isDrawing: bool
    eligibleCount: int
    currentWinner: CandidateResponse | None
    history: list[CandidateResponse]
    resetArmed: bool


class GroupResponse(BaseModel):
    id: str
    name: str
    size: int
    members: list[CandidateResponse]


class SessionResponse(BaseModel):
    id: str
    rawText: str
    candidates: list[CandidateResponse]
    analysis: AnalysisResponse
    draw: DrawStateResponse
    groups: list[GroupResponse]
    clearArmed: bool
    busy: list[str] = Field(default_factory=list)


class RosterResponse(BaseModel):
    rawText: str
    candidates: list[CandidateResponse]
    analysis: AnalysisResponse


class CleanResponse(RosterResponse):
    fallback: bool = False
    message: str | None = None
    discarded: bool = False


class TranscribeResponse(RosterResponse):
    transcribed: list[str] = Field(default_factory=list)


class DedupeResponse(RosterResponse):
    removed: int


class ConfirmResponse(BaseModel):
    armed: bool
    done: bool


class DrawFrameResponse(BaseModel):
    tick: int
    delayMs: int
    id: str
    name: str


class DrawResponse(BaseModel):
    winner: CandidateResponse
    frames: list[DrawFrameResponse]
    draw: DrawStateResponse


class GroupsResponse(BaseModel):
    groups: list[GroupResponse]
    aiNamed: bool = False
