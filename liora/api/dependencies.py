"""
API Dependencies

Provides dependency injection for API endpoints.
Manages singleton instances of core components.
"""

import logging

from fastapi import HTTPException

from liora.core.ai_reasoning import AIReasoningLayer
from liora.core.errors import (
    InvalidRequestError,
    LioraError,
    SessionNotFoundError,
    StateTransitionError,
    get_error_message,
)
from liora.core.interview_orchestrator import InterviewOrchestrator
from liora.core.memo_generator import MemoGenerator
from liora.core.workflow import InterviewWorkflow

logger = logging.getLogger(__name__)


# ============================================================================
# SINGLETON INSTANCES
# ============================================================================

_orchestrator: InterviewOrchestrator | None = None


def get_orchestrator() -> InterviewOrchestrator:
    """
    Get the interview orchestrator singleton.

    Lazily initializes all required components.
    """
    global _orchestrator

    if _orchestrator is None:
        ai_reasoning = AIReasoningLayer()
        workflow = InterviewWorkflow(ai_reasoning=ai_reasoning)

        _orchestrator = InterviewOrchestrator(
            workflow=workflow,
            ai_reasoning=ai_reasoning,
            memo_generator=MemoGenerator(ai_reasoning, analyst=workflow.analyst),
        )
        logger.info(f"Orchestrator initialized (LLM {'enabled' if ai_reasoning.enabled else 'disabled'})")

    return _orchestrator


def to_http_exception(error: Exception) -> HTTPException:
    """Map a core error onto an HTTP error response."""
    if isinstance(error, SessionNotFoundError):
        return HTTPException(status_code=404, detail=error.to_dict())
    if isinstance(error, (StateTransitionError, InvalidRequestError)):
        return HTTPException(status_code=400, detail=error.to_dict())
    if isinstance(error, LioraError):
        return HTTPException(status_code=500, detail=error.to_dict())

    logger.exception(f"Unhandled error: {error}")
    return HTTPException(status_code=500, detail={"message": get_error_message(error)})


async def cleanup():
    """Cleanup resources on shutdown."""
    global _orchestrator

    if _orchestrator:
        await _orchestrator.cleanup()
        if _orchestrator.ai_reasoning:
            await _orchestrator.ai_reasoning.close()

    _orchestrator = None
