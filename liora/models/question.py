"""
Question and question-queue models for Liora
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class QuestionType(str, Enum):
    """How a question is meant to be answered."""

    OPEN_ENDED = "open-ended"
    SPECIFIC_METRIC = "specific-metric"
    CLARIFICATION = "clarification"
    FOLLOW_UP = "follow-up"


class ResponseType(str, Enum):
    """Expected shape of the founder's answer."""

    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    LIST = "list"


class Priority(str, Enum):
    """Question and topic priority."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def weight(self) -> int:
        return {"high": 3, "medium": 2, "low": 1}[self.value]


class InterviewQuestion(BaseModel):
    """A single question put to the founder."""

    id: str
    text: str
    type: QuestionType = QuestionType.OPEN_ENDED
    expected_response_type: ResponseType = ResponseType.TEXT
    importance: Priority = Priority.MEDIUM
    follow_up_triggers: list[str] = Field(default_factory=list)
    context_data: dict[str, Any] | None = Field(
        default=None,
        description="Extra context attached while the question was prepared"
    )


class SkipConditionType(str, Enum):
    """Reasons a queued question may be skipped."""

    TOPIC_COVERED = "topic_covered"
    TIME_CONSTRAINT = "time_constraint"
    LOW_RELEVANCE = "low_relevance"
    INFORMATION_PROVIDED = "information_provided"


class SkipCondition(BaseModel):
    """Rule that removes a question from the queue when it holds."""

    type: SkipConditionType
    condition: str
    keywords: list[str] = Field(default_factory=list)
    confidence: float = Field(default=0.5, ge=0, le=1)


class ModificationTrigger(str, Enum):
    """Conditions under which a question is rewritten."""

    PREVIOUS_ANSWER = "previous_answer"
    TIME_REMAINING = "time_remaining"
    CALIBER_SCORE = "caliber_score"
    TOPIC_TRANSITION = "topic_transition"


class ModificationType(str, Enum):
    """Ways a question can be rewritten."""

    ADD_CONTEXT = "add_context"
    SIMPLIFY = "simplify"
    ADD_FOLLOWUP = "add_followup"


class ModificationRule(BaseModel):
    """Rewrite applied to a question when its trigger fires."""

    trigger: ModificationTrigger
    condition: str
    modification: ModificationType
    template: str | None = None


class QuestionMetadata(BaseModel):
    """Scheduling metadata for a queued question."""

    priority: Priority = Priority.MEDIUM
    dependencies: list[str] = Field(default_factory=list)
    skip_conditions: list[SkipCondition] = Field(default_factory=list)
    modification_rules: list[ModificationRule] = Field(default_factory=list)
    time_estimate: int = Field(default=60, description="Seconds")


class QueueItemStatus(str, Enum):
    """Lifecycle of a queued question."""

    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    SKIPPED = "skipped"
    MODIFIED = "modified"


class QuestionQueueItem(BaseModel):
    """A question together with its scheduling state."""

    question: InterviewQuestion
    metadata: QuestionMetadata = Field(default_factory=QuestionMetadata)
    status: QueueItemStatus = QueueItemStatus.PENDING
    original_question: InterviewQuestion | None = None
    skip_reason: str | None = None
    modification_history: list[str] = Field(default_factory=list)

    @property
    def id(self) -> str:
        return self.question.id


class QueueStatus(BaseModel):
    """Summary of the question queue."""

    total: int
    completed: int
    remaining: int
    skipped: int
    estimated_time_remaining: int = Field(description="Seconds for the next few questions")
    next_priorities: list[str] = Field(default_factory=list)
