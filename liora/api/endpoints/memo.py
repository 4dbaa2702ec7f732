"""
Memo API endpoints

Provides access to the investment memo and investment score
generated from an interview.
"""

import logging
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel

from liora.api.dependencies import get_orchestrator, to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# RESPONSE MODELS
# ============================================================================

class MemoSummaryResponse(BaseModel):
    """Condensed memo for dashboards."""
    session_id: str
    company_name: str
    score: float
    recommendation: str
    risk_level: str
    investment_thesis: str
    top_reasons: list[str]
    red_flags: list[str]


# ============================================================================
# ENDPOINTS
# ============================================================================

@router.get("/{session_id}")
async def get_memo(session_id: str) -> dict[str, Any]:
    """
    Get the full investment memo for a session.

    Generated on first request; cached once the interview is complete.
    """
    orchestrator = get_orchestrator()

    try:
        memo = await orchestrator.generate_memo(session_id)
    except Exception as e:
        raise to_http_exception(e)

    return memo.model_dump(mode="json")


@router.get("/{session_id}/summary", response_model=MemoSummaryResponse)
async def get_memo_summary(session_id: str) -> MemoSummaryResponse:
    """Get a condensed version of the memo."""
    orchestrator = get_orchestrator()

    try:
        memo = await orchestrator.generate_memo(session_id)
    except Exception as e:
        raise to_http_exception(e)

    return MemoSummaryResponse(
        session_id=session_id,
        company_name=memo.overview.name,
        score=memo.recommendation.score,
        recommendation=memo.recommendation.recommendation,
        risk_level=memo.risk_assessment.risk_level.value,
        investment_thesis=memo.recommendation.investment_thesis,
        top_reasons=memo.recommendation.reasoning[:3],
        red_flags=memo.risk_assessment.red_flags,
    )


@router.get("/{session_id}/score")
async def get_investment_score(session_id: str) -> dict[str, Any]:
    """Get the investment score behind the memo recommendation."""
    try:
        score = get_orchestrator().get_investment_score(session_id)
    except Exception as e:
        raise to_http_exception(e)

    return {
        **score.model_dump(mode="json"),
        "recommendation_label": score.recommendation.display_name,
    }
