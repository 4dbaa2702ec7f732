"""
Interview session, conversation and shared-context models for Liora
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from liora.config.settings import get_settings
from liora.models.evaluation import CaliberMetrics, FounderInsight, InsightCollection, RedFlag
from liora.models.founder import CompanyData, FounderProfile, RetrievedData


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InterviewStatus(str, Enum):
    """Interview lifecycle states."""

    INITIALIZING = "initializing"  # Session created, agents warming up
    ACTIVE = "active"  # Questions being asked
    PAUSED = "paused"  # Temporarily paused
    COMPLETED = "completed"  # Finished (time, questions or manual)
    ERROR = "error"  # Error occurred


class InterviewSetup(BaseModel):
    """Founder's interview configuration."""

    founder_id: str = Field(default="current-founder", description="Founder identifier for RAG lookups")
    founder_name: str = Field(default="", description="Founder display name")
    company_name: str = Field(..., min_length=1, description="Company being interviewed")
    sector: str = Field(default="", description="Company sector, e.g. B2B SaaS")
    stage: str = Field(default="", description="Funding stage, e.g. Series A")

    time_limit_minutes: int = Field(
        default_factory=lambda: get_settings().default_time_limit_minutes, ge=1,
        description="Interview time budget in minutes"
    )
    total_estimated_questions: int = Field(
        default_factory=lambda: get_settings().total_estimated_questions, ge=1,
        description="Question count after which the interview completes"
    )

    @field_validator("time_limit_minutes")
    @classmethod
    def validate_time_limit(cls, v: int) -> int:
        limit = get_settings().max_session_minutes
        if v > limit:
            raise ValueError(f"Time limit cannot exceed {limit} minutes")
        return v

    @field_validator("total_estimated_questions")
    @classmethod
    def validate_question_count(cls, v: int) -> int:
        limit = get_settings().max_questions
        if v > limit:
            raise ValueError(f"Interviews are capped at {limit} questions")
        return v


class InterviewTopic(BaseModel):
    """A topic the interview covers."""

    id: str
    name: str
    description: str = ""
    priority: str = "medium"
    completed: bool = False
    insights: list[str] = Field(default_factory=list)


class InterviewProgress(BaseModel):
    """Where the interview stands."""

    completed_topics: list[str] = Field(default_factory=list)
    current_question_index: int = 0
    total_estimated_questions: int = 10
    elapsed_time: float = Field(default=0, description="Seconds")
    remaining_time: float = Field(default=0, description="Seconds")


class InterviewSession(BaseModel):
    """Complete interview session state."""

    # Identification
    id: str = Field(default_factory=lambda: str(uuid4()))

    # Setup
    setup: InterviewSetup

    # State
    status: InterviewStatus = Field(default=InterviewStatus.INITIALIZING)
    current_topic: str = "Introduction"
    progress: InterviewProgress = Field(default_factory=InterviewProgress)

    # Timing
    created_at: datetime = Field(default_factory=_utcnow)
    start_time: datetime | None = None
    end_time: datetime | None = None
    paused_at: datetime | None = None
    paused_seconds: float = 0.0

    # Metadata
    error_message: str | None = None

    @property
    def founder_id(self) -> str:
        return self.setup.founder_id

    @property
    def time_limit(self) -> int:
        """Time limit in minutes."""
        return self.setup.time_limit_minutes

    def elapsed_seconds(self, now: datetime | None = None) -> float:
        """Active interview time, excluding pauses."""
        if self.start_time is None:
            return 0.0
        end = self.end_time or self.paused_at or now or _utcnow()
        return max(0.0, (end - self.start_time).total_seconds() - self.paused_seconds)

    def remaining_seconds(self, now: datetime | None = None) -> float:
        return max(0.0, self.time_limit * 60 - self.elapsed_seconds(now))

    def is_time_up(self, now: datetime | None = None) -> bool:
        return self.start_time is not None and self.remaining_seconds(now) <= 0


class ConversationEntry(BaseModel):
    """A question-response pair."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    question_id: str | None = None
    question: str
    response: str
    timestamp: datetime = Field(default_factory=_utcnow)
    response_seconds: float | None = Field(default=None, description="Time from question to answer")
    caliber_metrics: CaliberMetrics | None = None
    insights: list[str] = Field(default_factory=list)


class ConversationContext(BaseModel):
    """Memory retrieved for the next question."""

    entries: list[ConversationEntry] = Field(default_factory=list)
    summary: str = ""
    key_insights: list[str] = Field(default_factory=list)
    total_entries: int = 0
    recent_exchanges: str = ""


class ContinuityBridge(BaseModel):
    """Transition from one topic to the next."""

    previous_topic: str
    new_topic: str
    connection_points: list[str] = Field(default_factory=list)
    transition_phrase: str


class ConversationMemory(BaseModel):
    """Per-session memory held by the memory manager."""

    entries: list[ConversationEntry] = Field(default_factory=list)
    compressed_summary: str = ""
    key_insights: list[str] = Field(default_factory=list)
    total_tokens: int = 0


class AgentThinking(BaseModel):
    """What an agent did during a workflow step."""

    current_task: str
    reasoning: str
    data_fetched: list[str] = Field(default_factory=list)
    next_action: str
    confidence: float = Field(..., ge=0, le=1)


class SharedContext(BaseModel):
    """State shared by all agents for one interview."""

    session: InterviewSession
    founder_profile: FounderProfile | None = None
    company_data: CompanyData | None = None
    conversation_history: list[ConversationEntry] = Field(default_factory=list)
    current_insights: InsightCollection = Field(default_factory=InsightCollection)
    founder_insights: list[FounderInsight] = Field(default_factory=list)
    caliber_metrics: CaliberMetrics | None = None
    red_flags: list[RedFlag] = Field(default_factory=list)
    rag_data: RetrievedData | None = None
    memory_context: ConversationContext | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def company_name(self) -> str:
        if self.company_data:
            return self.company_data.name
        return self.session.setup.company_name
