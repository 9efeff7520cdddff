from __future__ import annotations

from fastapi import APIRouter, status

from scorevoice.api.errors import api_error, invalid_session_state, session_not_found
from scorevoice.api.schemas import (
    ConfirmPendingRequest,
    CreateSessionRequest,
    IntentResponse,
    InterpretRequest,
    ProcessResponse,
    ResolveConflictRequest,
    SessionResponse,
    TranscriptRequest,
)
from scorevoice.domain import IntentValidationError, TeamId
from scorevoice.runtime import VoiceSession, registry
from scorevoice.services.control_orchestrator import OrchestratorError, ProcessResult
from scorevoice.services.intent_parser import IntentParser

router = APIRouter(prefix="/voice", tags=["voice"])

parser = IntentParser()


def _session_or_404(session_id: str) -> VoiceSession:
    session = registry.get(session_id)
    if session is None:
        raise session_not_found(session_id)
    return session


def _session_response(session: VoiceSession) -> SessionResponse:
    return SessionResponse(id=session.id, **session.orchestrator.snapshot())


def _process_response(session: VoiceSession, result: ProcessResult) -> ProcessResponse:
    return ProcessResponse(
        **result.to_dict(),
        actions=[action.to_dict() for action in session.recorder.drain()],
        state=session.orchestrator.state.value,
    )


@router.post("/interpret", response_model=IntentResponse, summary="Interpret one utterance")
def interpret(payload: InterpretRequest) -> IntentResponse:
    try:
        context = payload.context.to_domain()
    except IntentValidationError as exc:
        raise api_error(code="invalid_context", message=str(exc), status_code=422) from exc
    intent = parser.parse(payload.text, context, payload.language)
    return IntentResponse(**intent.to_dict())


@router.post(
    "/sessions",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open a voice control session",
)
def create_session(payload: CreateSessionRequest) -> SessionResponse:
    session = registry.create(language=payload.language, enable_cloud_fallback=payload.enable_cloud_fallback)
    if payload.context is not None:
        session.orchestrator.update_context(payload.context.to_domain())
    return _session_response(session)


@router.get("/sessions/{session_id}", response_model=SessionResponse)
def get_session(session_id: str) -> SessionResponse:
    return _session_response(_session_or_404(session_id))


@router.post("/sessions/{session_id}/transcripts", response_model=ProcessResponse)
async def submit_transcript(session_id: str, payload: TranscriptRequest) -> ProcessResponse:
    session = _session_or_404(session_id)
    if payload.context is not None:
        session.orchestrator.update_context(payload.context.to_domain())
    try:
        result = await session.orchestrator.process_transcript(payload.text, payload.is_final)
    except OrchestratorError as exc:
        raise invalid_session_state(str(exc)) from exc
    return _process_response(session, result)


@router.post("/sessions/{session_id}/pending/confirm", response_model=ProcessResponse)
def confirm_pending(session_id: str, payload: ConfirmPendingRequest) -> ProcessResponse:
    session = _session_or_404(session_id)
    team = TeamId(payload.team) if payload.team else None
    try:
        result = session.orchestrator.confirm_pending_intent(team)
    except OrchestratorError as exc:
        raise invalid_session_state(str(exc)) from exc
    return _process_response(session, result)


@router.post("/sessions/{session_id}/pending/cancel", response_model=SessionResponse)
def cancel_pending(session_id: str) -> SessionResponse:
    session = _session_or_404(session_id)
    session.orchestrator.cancel_pending_intent()
    return _session_response(session)


@router.post("/sessions/{session_id}/conflict/resolve", response_model=ProcessResponse)
def resolve_conflict(session_id: str, payload: ResolveConflictRequest) -> ProcessResponse:
    session = _session_or_404(session_id)
    try:
        result = session.orchestrator.resolve_domain_conflict(payload.use_detected_team)
    except OrchestratorError as exc:
        raise invalid_session_state(str(exc)) from exc
    return _process_response(session, result)


@router.post("/sessions/{session_id}/conflict/cancel", response_model=SessionResponse)
def cancel_conflict(session_id: str) -> SessionResponse:
    session = _session_or_404(session_id)
    session.orchestrator.cancel_domain_conflict()
    return _session_response(session)


@router.post("/sessions/{session_id}/listening/start", response_model=SessionResponse)
def start_listening(session_id: str) -> SessionResponse:
    session = _session_or_404(session_id)
    session.orchestrator.start_listening()
    return _session_response(session)


@router.post("/sessions/{session_id}/listening/stop", response_model=SessionResponse)
def stop_listening(session_id: str) -> SessionResponse:
    session = _session_or_404(session_id)
    session.orchestrator.stop_listening()
    return _session_response(session)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_session(session_id: str) -> None:
    if registry.delete(session_id) is None:
        raise session_not_found(session_id)
