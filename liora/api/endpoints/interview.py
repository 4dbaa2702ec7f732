"""
Interview API endpoints

Handles interview session lifecycle:
- Creating sessions
- Starting interviews
- Submitting responses
- Pausing, resuming, ending and resetting
- Queue control and status reporting
"""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field

from liora.api.dependencies import get_orchestrator, to_http_exception
from liora.core.errors import LioraError
from liora.models.interview import InterviewSetup
from liora.models.question import Priority

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class SetupResponse(BaseModel):
    """Response model for interview setup."""
    session_id: str
    status: str
    message: str


class StartResponse(BaseModel):
    """Response after starting interview."""
    session_id: str
    status: str
    first_question: dict[str, Any] | None = None


class SubmitResponseRequest(BaseModel):
    """Request model for submitting a founder's answer."""
    response: str = Field(..., min_length=1)


class SubmitResponseResponse(BaseModel):
    """Response after submitting an answer."""
    action: str  # "question", "complete"
    question_id: str | None = None
    question_text: str | None = None
    question_number: int | None = None
    total_questions: int | None = None
    topic: str | None = None
    context: dict[str, Any] = {}
    remaining_seconds: float | None = None
    assessment: dict[str, Any] | None = None
    message: str | None = None


class SkipRequest(BaseModel):
    """Request model for skipping the current question."""
    reason: str = "Skipped by interviewer"


class CustomQuestionRequest(BaseModel):
    """Request model for queueing a custom question."""
    text: str = Field(..., min_length=1)
    priority: Priority = Priority.MEDIUM


class SessionStatusResponse(BaseModel):
    """Response for session status."""
    session_id: str
    status: str
    company_name: str
    current_topic: str
    questions_asked: int
    duration_seconds: float
    remaining_seconds: float
    error_message: str | None = None


# ============================================================================
# REST ENDPOINTS
# ============================================================================

@router.post("/setup", response_model=SetupResponse)
async def setup_interview(setup: InterviewSetup) -> SetupResponse:
    """
    Create a new interview session.

    This initializes the interview with the founder's configuration
    but does not start the interview yet.
    """
    orchestrator = get_orchestrator()
    session = await orchestrator.create_session(setup)

    return SetupResponse(
        session_id=session.id,
        status=session.status.value,
        message="Interview session created. Call /start to begin.",
    )


@router.post("/{session_id}/start", response_model=StartResponse)
async def start_interview(session_id: str) -> StartResponse:
    """
    Start the interview.

    This activates the session and delivers the first question.
    """
    orchestrator = get_orchestrator()

    try:
        result = await orchestrator.start_interview(session_id)
    except Exception as e:
        raise to_http_exception(e)

    session = orchestrator.get_session(session_id)
    return StartResponse(
        session_id=session_id,
        status=session.status.value,
        first_question=result if result.get("action") == "question" else None,
    )


@router.post("/{session_id}/respond", response_model=SubmitResponseResponse)
async def submit_response(session_id: str, request: SubmitResponseRequest) -> SubmitResponseResponse:
    """
    Submit the founder's answer to the current question.

    The answer is assessed and the next question (or completion) returned.
    """
    orchestrator = get_orchestrator()

    try:
        result = await orchestrator.submit_response(session_id, request.response)
    except Exception as e:
        raise to_http_exception(e)

    return SubmitResponseResponse(**{
        key: value for key, value in result.items()
        if key in SubmitResponseResponse.model_fields
    })


@router.post("/{session_id}/pause")
async def pause_interview(session_id: str) -> dict[str, Any]:
    orchestrator = get_orchestrator()
    try:
        session = await orchestrator.pause_interview(session_id)
    except Exception as e:
        raise to_http_exception(e)
    return {"session_id": session_id, "status": session.status.value}


@router.post("/{session_id}/resume")
async def resume_interview(session_id: str) -> dict[str, Any]:
    orchestrator = get_orchestrator()
    try:
        session = await orchestrator.resume_interview(session_id)
    except Exception as e:
        raise to_http_exception(e)
    return {"session_id": session_id, "status": session.status.value}


@router.post("/{session_id}/end")
async def end_interview(session_id: str) -> dict[str, Any]:
    """
    End the interview early.

    The memo becomes available under /api/memo/{session_id}.
    """
    orchestrator = get_orchestrator()
    try:
        session = await orchestrator.complete_interview(session_id)
        stats = orchestrator.get_interview_stats(session_id)
    except Exception as e:
        raise to_http_exception(e)

    closing = None
    if orchestrator.ai_reasoning:
        closing = await orchestrator.ai_reasoning.closing_remarks(orchestrator.get_context(session_id))

    return {
        "session_id": session_id,
        "status": session.status.value,
        "stats": stats,
        "closing_remarks": closing,
    }


@router.post("/{session_id}/reset")
async def reset_interview(session_id: str) -> dict[str, Any]:
    orchestrator = get_orchestrator()
    try:
        session = await orchestrator.reset_interview(session_id)
    except Exception as e:
        raise to_http_exception(e)
    return {"session_id": session_id, "status": session.status.value}


@router.post("/{session_id}/skip", response_model=SubmitResponseResponse)
async def skip_question(session_id: str, request: SkipRequest | None = None) -> SubmitResponseResponse:
    """Skip the current question and get the next one."""
    orchestrator = get_orchestrator()
    reason = request.reason if request else SkipRequest().reason

    try:
        result = await orchestrator.skip_current_question(session_id, reason)
    except Exception as e:
        raise to_http_exception(e)

    return SubmitResponseResponse(**{
        key: value for key, value in result.items()
        if key in SubmitResponseResponse.model_fields
    })


@router.post("/{session_id}/questions")
async def add_custom_question(session_id: str, request: CustomQuestionRequest) -> dict[str, Any]:
    """Queue a custom question for this interview."""
    orchestrator = get_orchestrator()
    try:
        question = orchestrator.add_custom_question(session_id, request.text, request.priority)
    except Exception as e:
        raise to_http_exception(e)
    return {"session_id": session_id, "question": question.model_dump(mode="json")}


@router.get("/{session_id}/status", response_model=SessionStatusResponse)
async def get_session_status(session_id: str) -> SessionStatusResponse:
    """Get the current status of an interview session."""
    orchestrator = get_orchestrator()
    session = orchestrator.get_session(session_id)

    if not session:
        raise HTTPException(status_code=404, detail="Session not found")

    return SessionStatusResponse(
        session_id=session.id,
        status=session.status.value,
        company_name=session.setup.company_name,
        current_topic=session.current_topic,
        questions_asked=session.progress.current_question_index,
        duration_seconds=session.elapsed_seconds(),
        remaining_seconds=session.remaining_seconds(),
        error_message=session.error_message,
    )


@router.get("/{session_id}/progress")
async def get_progress(session_id: str) -> dict[str, Any]:
    try:
        return get_orchestrator().get_interview_progress(session_id)
    except Exception as e:
        raise to_http_exception(e)


@router.get("/{session_id}/stats")
async def get_stats(session_id: str) -> dict[str, Any]:
    try:
        return get_orchestrator().get_interview_stats(session_id)
    except Exception as e:
        raise to_http_exception(e)


@router.get("/{session_id}/workflow")
async def get_workflow(session_id: str) -> dict[str, Any]:
    """Current workflow step, agent statuses and agent thinking."""
    try:
        return get_orchestrator().get_workflow_status(session_id)
    except Exception as e:
        raise to_http_exception(e)


@router.get("/{session_id}/memory")
async def get_memory(session_id: str) -> dict[str, Any]:
    try:
        return get_orchestrator().get_memory(session_id)
    except Exception as e:
        raise to_http_exception(e)


@router.get("/{session_id}/export")
async def export_interview(session_id: str) -> dict[str, Any]:
    """Full interview data for offline analysis."""
    try:
        return get_orchestrator().export_interview_data(session_id)
    except Exception as e:
        raise to_http_exception(e)


# ============================================================================
# WEBSOCKET ENDPOINT
# ============================================================================

@router.websocket("/ws/{session_id}")
async def websocket_interview(websocket: WebSocket, session_id: str):
    """
    WebSocket endpoint for real-time interview interaction.

    Message types:
    - start: Start the interview
    - response: Submit the founder's answer ({"type": "response", "response": "..."})
    - pause / resume: Pause or resume the interview
    - end: End the interview
    - ping: Keepalive

    Server sends:
    - question: New question
    - assessment: Caliber assessment of the last answer
    - status: Interview status changed
    - complete: Interview finished
    - error: Error occurred
    """
    await websocket.accept()

    orchestrator = get_orchestrator()
    session = orchestrator.get_session(session_id)

    if not session:
        await websocket.close(code=4004, reason="Session not found")
        return

    async def send_result(result: dict[str, Any]) -> None:
        if result.get("assessment"):
            await websocket.send_json({"type": "assessment", "data": result["assessment"]})
        message_type = "complete" if result.get("action") == "complete" else "question"
        await websocket.send_json({"type": message_type, "data": result})

    try:
        while True:
            data = await websocket.receive_json()
            message_type = data.get("type")

            try:
                if message_type == "start":
                    await send_result(await orchestrator.start_interview(session_id))

                elif message_type == "response":
                    await send_result(
                        await orchestrator.submit_response(session_id, data.get("response", ""))
                    )

                elif message_type == "pause":
                    session = await orchestrator.pause_interview(session_id)
                    await websocket.send_json({"type": "status", "data": {"status": session.status.value}})

                elif message_type == "resume":
                    session = await orchestrator.resume_interview(session_id)
                    await websocket.send_json({"type": "status", "data": {"status": session.status.value}})

                elif message_type == "end":
                    await orchestrator.complete_interview(session_id)
                    await websocket.send_json({
                        "type": "complete",
                        "data": orchestrator.get_interview_stats(session_id),
                    })
                    break

                elif message_type == "ping":
                    await websocket.send_json({"type": "pong"})

                else:
                    await websocket.send_json({
                        "type": "error",
                        "message": f"Unknown message type: {message_type}",
                    })

            except LioraError as e:
                await websocket.send_json({"type": "error", "error": e.to_dict()})

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected for session {session_id}")
