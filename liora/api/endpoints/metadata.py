"""
Metadata API endpoints

Provides reference data for:
- The investor persona
- Interview topics
- Time limit presets
- The base question bank
"""

from fastapi import APIRouter
from pydantic import BaseModel

from liora.models.catalog import (
    DEFAULT_PERSONA,
    INTERVIEW_TOPICS,
    TOPIC_FLOW,
    InvestorPersona,
    TimeLimit,
    get_base_questions,
    get_topic_for_question,
)

router = APIRouter()


# ============================================================================
# RESPONSE MODELS
# ============================================================================

class TopicInfo(BaseModel):
    """Information about an interview topic."""
    id: str
    name: str
    description: str
    priority: str
    estimated_questions: int


class QuestionInfo(BaseModel):
    """Information about a question in the base bank."""
    id: str
    text: str
    type: str
    importance: str
    topic: str | None = None


# ============================================================================
# ENDPOINTS
# ============================================================================

@router.get("/persona")
async def get_persona() -> InvestorPersona:
    """Get the investor persona conducting interviews."""
    return DEFAULT_PERSONA


@router.get("/topics")
async def get_topics() -> list[TopicInfo]:
    """Get all interview topics."""
    return [
        TopicInfo(
            id=topic.id,
            name=topic.name,
            description=topic.description,
            priority=topic.priority.value,
            estimated_questions=topic.estimated_questions,
        )
        for topic in INTERVIEW_TOPICS.values()
    ]


@router.get("/topic-flow")
async def get_topic_flow() -> list[str]:
    """Get the order conversational topics are covered in."""
    return list(TOPIC_FLOW)


@router.get("/time-limits")
async def get_time_limits() -> list[dict]:
    """Get all interview length presets."""
    return [
        {"minutes": limit.value, "name": limit.display_name}
        for limit in TimeLimit
    ]


@router.get("/questions")
async def get_question_bank(company_name: str = "your company") -> list[QuestionInfo]:
    """Get the base question bank, filled in for a company."""
    questions = []

    for question in get_base_questions(company_name):
        topic = get_topic_for_question(question.id)
        questions.append(QuestionInfo(
            id=question.id,
            text=question.text,
            type=question.type.value,
            importance=question.importance.value,
            topic=topic.id if topic else None,
        ))

    return questions
