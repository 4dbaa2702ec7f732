"""
Data models and schemas for Liora

Contains Pydantic models for:
- Interview sessions and shared agent context
- Questions and the question queue
- Caliber assessments and investment scores
- Founder, company and market data
- Investment memos
"""

from liora.models.interview import (
    AgentThinking,
    ConversationContext,
    ConversationEntry,
    InterviewProgress,
    InterviewSession,
    InterviewSetup,
    InterviewStatus,
    SharedContext,
)
from liora.models.question import (
    InterviewQuestion,
    Priority,
    QuestionQueueItem,
    QuestionType,
    QueueStatus,
)
from liora.models.evaluation import (
    CaliberCategory,
    CaliberMetrics,
    Insight,
    InvestmentScore,
    RedFlag,
    ResponseEvaluation,
)
from liora.models.founder import FounderData, PublicData, RetrievedData
from liora.models.memo import InvestmentMemo
from liora.models.catalog import DEFAULT_PERSONA, INTERVIEW_TOPICS, InvestorPersona

__all__ = [
    # Interview
    "AgentThinking",
    "ConversationContext",
    "ConversationEntry",
    "InterviewProgress",
    "InterviewSession",
    "InterviewSetup",
    "InterviewStatus",
    "SharedContext",
    # Question
    "InterviewQuestion",
    "Priority",
    "QuestionQueueItem",
    "QuestionType",
    "QueueStatus",
    # Evaluation
    "CaliberCategory",
    "CaliberMetrics",
    "Insight",
    "InvestmentScore",
    "RedFlag",
    "ResponseEvaluation",
    # Founder
    "FounderData",
    "PublicData",
    "RetrievedData",
    # Memo
    "InvestmentMemo",
    # Catalog
    "DEFAULT_PERSONA",
    "INTERVIEW_TOPICS",
    "InvestorPersona",
]
