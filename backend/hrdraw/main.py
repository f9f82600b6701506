from __future__ import annotations

import asyncio
import logging
import uuid
from contextlib import suppress
from typing import Dict

from fastapi import Body, FastAPI, File, HTTPException, Request, Response, UploadFile, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hrdraw.core.config import settings
from hrdraw.core.errors import (
    ActionInProgressError,
    DrawInProgressError,
    EmptyPoolError,
    ExternalServiceError,
    HRDrawError,
)
from hrdraw.entities import Candidate, DrawFrame, Group
from hrdraw.i18n import label
from hrdraw.models import (
    AnalysisResponse,
    CandidateResponse,
    CleanResponse,
    ConfirmResponse,
    CreateSessionRequest,
    DedupeResponse,
    DrawFrameResponse,
    DrawResponse,
    DrawSettingsRequest,
    DrawStateResponse,
    GroupRequest,
    GroupResponse,
    GroupsResponse,
    RosterResponse,
    RosterUpdateRequest,
    SessionResponse,
    TranscribeResponse,
)
from hrdraw.services.csv_export import EXPORT_FILENAME
from hrdraw.services.group_partitioner import clamp_group_size
from hrdraw.services.name_assistant import NameAssistant, OpenAINameAssistant
from hrdraw.services.roster_session import RosterSession

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(title="HR Draw & Grouping API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# In-memory state store
SESSIONS: Dict[str, RosterSession] = {}

assistant: NameAssistant = OpenAINameAssistant()


@app.exception_handler(EmptyPoolError)
async def empty_pool_handler(request: Request, exc: EmptyPoolError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"detail": label("empty_pool") or str(exc)})


@app.exception_handler(DrawInProgressError)
@app.exception_handler(ActionInProgressError)
async def conflict_handler(request: Request, exc: HRDrawError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(ExternalServiceError)
async def external_service_handler(request: Request, exc: ExternalServiceError) -> JSONResponse:
    return JSONResponse(status_code=502, content={"detail": str(exc)})


def _get_session(session_id: str) -> RosterSession:
    session = SESSIONS.get(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _candidate(candidate: Candidate, duplicates: frozenset[str] = frozenset()) -> CandidateResponse:
    return CandidateResponse(
        id=candidate.id,
        name=candidate.name,
        isDuplicate=candidate.name in duplicates,
    )


def _group(group: Group) -> GroupResponse:
    return GroupResponse(
        id=group.id,
        name=group.name,
        size=len(group.members),
        members=[_candidate(m) for m in group.members],
    )


def _frame(frame: DrawFrame) -> DrawFrameResponse:
    return DrawFrameResponse(
        tick=frame.tick,
        delayMs=settings.draw_tick_interval_ms,
        id=frame.candidate.id,
        name=frame.candidate.name,
    )


def _analysis(session: RosterSession) -> AnalysisResponse:
    report = session.report
    return AnalysisResponse(
        total=report.total,
        uniqueCount=report.unique_count,
        duplicateCount=report.duplicate_count,
        duplicates=sorted(report.duplicates),
    )


def _roster_fields(session: RosterSession) -> dict:
    duplicates = session.report.duplicates
    return {
        "rawText": session.raw_text,
        "candidates": [_candidate(c, duplicates) for c in session.candidates],
        "analysis": _analysis(session),
    }


def _draw_state(session: RosterSession) -> DrawStateResponse:
    engine = session.draw
    return DrawStateResponse(
        allowRepeats=engine.allow_repeats,
        isDrawing=engine.is_drawing,
        eligibleCount=len(engine.eligible),
        currentWinner=_candidate(engine.current_winner) if engine.current_winner else None,
        history=[_candidate(w) for w in engine.history],
        resetArmed=engine.reset_gate.armed,
    )


def _session_to_response(session: RosterSession) -> SessionResponse:
    return SessionResponse(
        id=session.session_id,
        draw=_draw_state(session),
        groups=[_group(g) for g in session.groups],
        clearArmed=session.clear_gate.armed,
        busy=session.busy_actions,
        **_roster_fields(session),
    )


@app.get("/api/v1/health")
async def health_check():
    return {"status": "ok"}


@app.post("/api/v1/sessions", response_model=SessionResponse, status_code=201)
async def create_session(request: CreateSessionRequest | None = Body(default=None)):
    session_id = uuid.uuid4().hex
    session = RosterSession(session_id, assistant)
    if request and request.text:
        session.set_text(request.text)
    SESSIONS[session_id] = session
    logger.info(f"[{session_id}] Session created with {len(session.candidates)} candidates")
    return _session_to_response(session)


@app.get("/api/v1/sessions/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str):
    return _session_to_response(_get_session(session_id))


@app.delete("/api/v1/sessions/{session_id}", status_code=204)
async def delete_session(session_id: str):
    _get_session(session_id)
    del SESSIONS[session_id]
    return Response(status_code=204)


@app.put("/api/v1/sessions/{session_id}/roster", response_model=RosterResponse)
async def update_roster(session_id: str, request: RosterUpdateRequest):
    session = _get_session(session_id)
    session.set_text(request.text)
    return RosterResponse(**_roster_fields(session))


@app.post("/api/v1/sessions/{session_id}/roster/file", response_model=RosterResponse)
async def upload_roster(session_id: str, file: UploadFile = File(...)):
    session = _get_session(session_id)
    data = await file.read()
    session.load_file(data)
    logger.info(f"[{session_id}] Loaded {file.filename} ({len(data)} bytes)")
    return RosterResponse(**_roster_fields(session))


@app.post("/api/v1/sessions/{session_id}/roster/mock", response_model=RosterResponse)
async def load_mock_roster(session_id: str):
    session = _get_session(session_id)
    session.load_mock()
    return RosterResponse(**_roster_fields(session))


@app.post("/api/v1/sessions/{session_id}/roster/dedupe", response_model=DedupeResponse)
async def dedupe_roster(session_id: str):
    session = _get_session(session_id)
    removed = session.remove_duplicates()
    return DedupeResponse(removed=removed, **_roster_fields(session))


@app.post("/api/v1/sessions/{session_id}/roster/clear", response_model=ConfirmResponse)
async def clear_roster(session_id: str):
    session = _get_session(session_id)
    done = session.clear()
    return ConfirmResponse(armed=session.clear_gate.armed, done=done)


@app.post("/api/v1/sessions/{session_id}/roster/ai-clean", response_model=CleanResponse)
async def ai_clean_roster(session_id: str):
    session = _get_session(session_id)
    result = await session.ai_clean()
    return CleanResponse(
        fallback=result.fallback,
        message=result.message,
        discarded=result.discarded,
        **_roster_fields(session),
    )


@app.post("/api/v1/sessions/{session_id}/roster/transcribe", response_model=TranscribeResponse)
async def transcribe_roster(session_id: str, file: UploadFile = File(...)):
    session = _get_session(session_id)
    audio = await file.read()
    try:
        names = await session.add_transcribed(audio, file.content_type or "audio/webm")
    except ExternalServiceError as exc:
        raise HTTPException(status_code=502, detail=f"{label('transcribe_failed')} ({exc})")
    return TranscribeResponse(transcribed=names, **_roster_fields(session))


@app.put("/api/v1/sessions/{session_id}/draw/settings", response_model=DrawStateResponse)
async def update_draw_settings(session_id: str, request: DrawSettingsRequest):
    session = _get_session(session_id)
    session.draw.allow_repeats = request.allowRepeats
    return _draw_state(session)


@app.post("/api/v1/sessions/{session_id}/draw", response_model=DrawResponse)
async def run_draw(session_id: str):
    """Commit a winner and return the cycling frames as a timeline to replay."""
    session = _get_session(session_id)
    frames: list[DrawFrameResponse] = []

    async def collect(frame: DrawFrame) -> None:
        frames.append(_frame(frame))

    winner = await session.draw.run_draw(collect, ticks=settings.draw_cycle_ticks, interval=0)
    return DrawResponse(winner=_candidate(winner), frames=frames, draw=_draw_state(session))


@app.post("/api/v1/sessions/{session_id}/draw/reset", response_model=ConfirmResponse)
async def reset_draw_history(session_id: str):
    session = _get_session(session_id)
    done = session.draw.reset_history()
    return ConfirmResponse(armed=session.draw.reset_gate.armed, done=done)


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


@app.websocket("/ws/sessions/{session_id}/draw")
async def draw_websocket(websocket: WebSocket, session_id: str):
    """Live draw: frames are sent as they tick; a disconnect abandons the draw."""
    await websocket.accept()
    session = SESSIONS.get(session_id)
    if not session:
        await websocket.send_json({"type": "error", "detail": "Session not found"})
        await websocket.close(code=4404)
        return

    async def send_frame(frame: DrawFrame) -> None:
        await websocket.send_json({"type": "frame", "data": _frame(frame).model_dump()})

    draw_task = asyncio.create_task(
        session.draw.run_draw(
            send_frame,
            ticks=settings.draw_cycle_ticks,
            interval=settings.draw_tick_interval_ms / 1000,
        )
    )
    disconnect_task = asyncio.create_task(_wait_for_disconnect(websocket))
    done, _ = await asyncio.wait({draw_task, disconnect_task}, return_when=asyncio.FIRST_COMPLETED)

    if draw_task not in done:
        draw_task.cancel()
        with suppress(asyncio.CancelledError):
            await draw_task
        logger.info(f"[{session_id}] Client left mid-draw, nothing committed")
        return

    disconnect_task.cancel()
    with suppress(asyncio.CancelledError):
        await disconnect_task

    try:
        winner = draw_task.result()
    except EmptyPoolError:
        await websocket.send_json({"type": "error", "detail": label("empty_pool")})
        await websocket.close()
        return
    except HRDrawError as exc:
        await websocket.send_json({"type": "error", "detail": str(exc)})
        await websocket.close()
        return

    await websocket.send_json({
        "type": "winner",
        "data": _candidate(winner).model_dump(),
        "draw": _draw_state(session).model_dump(),
    })
    await websocket.close()


@app.post("/api/v1/sessions/{session_id}/groups", response_model=GroupsResponse)
async def generate_groups(session_id: str, request: GroupRequest | None = Body(default=None)):
    session = _get_session(session_id)
    raw_size = request.groupSize if request and request.groupSize is not None else settings.default_group_size
    groups = session.generate_groups(clamp_group_size(raw_size))
    return GroupsResponse(groups=[_group(g) for g in groups])


@app.post("/api/v1/sessions/{session_id}/groups/ai-names", response_model=GroupsResponse)
async def name_groups(session_id: str):
    session = _get_session(session_id)
    groups, applied = await session.apply_ai_group_names()
    return GroupsResponse(groups=[_group(g) for g in groups], aiNamed=applied)


@app.get("/api/v1/sessions/{session_id}/groups/export")
async def export_groups(session_id: str):
    session = _get_session(session_id)
    return Response(
        content=session.export_csv(),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
