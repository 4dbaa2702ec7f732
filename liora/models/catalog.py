"""
Interview catalog for Liora

Defines the fixed reference data for:
- The investor persona
- Interview topics and the order topics flow in
- Time limit presets
- The base question bank and the interviewer's question bank
"""

from enum import Enum

from pydantic import BaseModel, Field

from liora.models.question import InterviewQuestion, Priority, QuestionType, ResponseType


class InvestorPersona(BaseModel):
    """The investor the founder is talking to."""

    name: str
    background: str
    investment_focus: list[str] = Field(default_factory=list)
    questioning_style: str = "conversational"
    experience_level: str = "partner"
    specialties: list[str] = Field(default_factory=list)


DEFAULT_PERSONA = InvestorPersona(
    name="Alex Chen",
    background="Former founder turned VC partner with 15 years experience in B2B SaaS and AI/ML investments",
    investment_focus=["B2B SaaS", "Fintech", "AI/ML", "Enterprise Software"],
    questioning_style="conversational",
    experience_level="partner",
    specialties=[
        "go-to-market strategy",
        "product-market fit",
        "scaling teams",
        "enterprise sales",
    ],
)


class TimeLimit(int, Enum):
    """Interview length presets, in minutes."""

    SHORT = 5
    STANDARD = 10
    EXTENDED = 20
    LONG = 30

    @property
    def display_name(self) -> str:
        return f"{self.name.title()} ({self.value} min)"


class TopicDefinition(BaseModel):
    """A topic the interview is expected to cover."""

    id: str
    name: str
    description: str
    priority: Priority
    estimated_questions: int


INTERVIEW_TOPICS: dict[str, TopicDefinition] = {
    "company-overview": TopicDefinition(
        id="company-overview",
        name="Company Overview",
        description="Understanding the business and its mission",
        priority=Priority.HIGH,
        estimated_questions=3,
    ),
    "market-opportunity": TopicDefinition(
        id="market-opportunity",
        name="Market Opportunity",
        description="Market size, competition, and positioning",
        priority=Priority.HIGH,
        estimated_questions=4,
    ),
    "traction-metrics": TopicDefinition(
        id="traction-metrics",
        name="Traction & Metrics",
        description="Revenue, customers, and growth metrics",
        priority=Priority.HIGH,
        estimated_questions=3,
    ),
    "team-leadership": TopicDefinition(
        id="team-leadership",
        name="Team & Leadership",
        description="Founder background and team composition",
        priority=Priority.MEDIUM,
        estimated_questions=2,
    ),
    "funding-strategy": TopicDefinition(
        id="funding-strategy",
        name="Funding Strategy",
        description="Capital needs and use of funds",
        priority=Priority.MEDIUM,
        estimated_questions=2,
    ),
    "challenges-risks": TopicDefinition(
        id="challenges-risks",
        name="Challenges & Risks",
        description="Key challenges and risk mitigation",
        priority=Priority.LOW,
        estimated_questions=1,
    ),
}


# Order the interviewer moves through conversational topics
TOPIC_FLOW: list[str] = [
    "company-overview",
    "market-analysis",
    "competitive-landscape",
    "business-model",
    "team-dynamics",
    "financial-metrics",
    "growth-strategy",
    "risk-assessment",
]


# Base question id -> interview topic id
QUESTION_TOPICS: dict[str, str] = {
    "company-overview": "company-overview",
    "product-roadmap": "company-overview",
    "market-size": "market-opportunity",
    "competitive-landscape": "market-opportunity",
    "go-to-market": "market-opportunity",
    "revenue-metrics": "traction-metrics",
    "customer-traction": "traction-metrics",
    "team-composition": "team-leadership",
    "funding-history": "funding-strategy",
    "challenges-risks": "challenges-risks",
}


def _question(
    id: str,
    text: str,
    type: QuestionType,
    importance: Priority,
    triggers: list[str],
    response_type: ResponseType = ResponseType.TEXT,
) -> InterviewQuestion:
    return InterviewQuestion(
        id=id,
        text=text,
        type=type,
        expected_response_type=response_type,
        importance=importance,
        follow_up_triggers=triggers,
    )


def get_base_questions(company_name: str) -> list[InterviewQuestion]:
    """The queue's starting questions, with the company name filled in."""
    return [
        _question(
            "company-overview",
            f"Tell me about {company_name} and the problem you're solving.",
            QuestionType.OPEN_ENDED, Priority.HIGH,
            ["problem", "solution", "market", "customers"],
        ),
        _question(
            "market-size",
            "What's your total addressable market and how did you calculate it?",
            QuestionType.SPECIFIC_METRIC, Priority.HIGH,
            ["tam", "market size", "calculation", "methodology"],
            ResponseType.NUMBER,
        ),
        _question(
            "competitive-landscape",
            "Who are your main competitors and what's your competitive advantage?",
            QuestionType.OPEN_ENDED, Priority.HIGH,
            ["competitors", "advantage", "differentiation", "moat"],
        ),
        _question(
            "revenue-metrics",
            "What are your current revenue numbers and growth trajectory?",
            QuestionType.SPECIFIC_METRIC, Priority.HIGH,
            ["revenue", "growth", "mrr", "arr"],
            ResponseType.NUMBER,
        ),
        _question(
            "team-composition",
            "Tell me about your team and key hires you need to make.",
            QuestionType.OPEN_ENDED, Priority.MEDIUM,
            ["team", "hiring", "roles", "experience"],
        ),
        _question(
            "funding-history",
            "What's your funding history and how much are you raising?",
            QuestionType.SPECIFIC_METRIC, Priority.HIGH,
            ["funding", "raise", "investors", "valuation"],
            ResponseType.NUMBER,
        ),
        _question(
            "customer-traction",
            "Tell me about your customer traction and key metrics.",
            QuestionType.OPEN_ENDED, Priority.HIGH,
            ["customers", "traction", "metrics", "growth"],
        ),
        _question(
            "product-roadmap",
            "What's your product roadmap for the next 12-18 months?",
            QuestionType.OPEN_ENDED, Priority.MEDIUM,
            ["roadmap", "features", "development", "timeline"],
        ),
        _question(
            "go-to-market",
            "Walk me through your go-to-market strategy.",
            QuestionType.OPEN_ENDED, Priority.HIGH,
            ["gtm", "sales", "marketing", "channels"],
        ),
        _question(
            "challenges-risks",
            "What are the biggest challenges and risks facing your business?",
            QuestionType.OPEN_ENDED, Priority.MEDIUM,
            ["challenges", "risks", "obstacles", "concerns"],
        ),
    ]


def get_interviewer_questions(company_name: str) -> list[InterviewQuestion]:
    """The interviewer's own rotation, used once the queue runs dry."""
    return [
        _question(
            "q1",
            f"Tell me about {company_name} and what problem you're solving.",
            QuestionType.OPEN_ENDED, Priority.HIGH,
            ["market size", "customer pain", "solution approach"],
        ),
        _question(
            "q2",
            "What's your total addressable market and how did you calculate it?",
            QuestionType.SPECIFIC_METRIC, Priority.HIGH,
            ["methodology", "assumptions", "market segments"],
            ResponseType.NUMBER,
        ),
        _question(
            "q3",
            "Who are your main competitors and what's your competitive advantage?",
            QuestionType.OPEN_ENDED, Priority.HIGH,
            ["differentiation", "moat", "competitive response"],
        ),
        _question(
            "q4",
            "What are your current revenue numbers and growth trajectory?",
            QuestionType.SPECIFIC_METRIC, Priority.HIGH,
            ["revenue model", "growth drivers", "unit economics"],
            ResponseType.NUMBER,
        ),
        _question(
            "q5",
            "Tell me about your team and key hires you need to make.",
            QuestionType.OPEN_ENDED, Priority.MEDIUM,
            ["team gaps", "hiring plan", "culture"],
        ),
    ]


def get_topic_for_question(question_id: str) -> TopicDefinition | None:
    """Get the interview topic a question (or its follow-up) belongs to."""
    base_id = question_id.split("-followup")[0]
    topic_id = QUESTION_TOPICS.get(base_id)
    return INTERVIEW_TOPICS.get(topic_id) if topic_id else None


def get_next_topic(current_topic: str) -> str:
    """Next topic in the conversational flow, or wrap-up at the end."""
    if current_topic in TOPIC_FLOW:
        index = TOPIC_FLOW.index(current_topic)
        if index + 1 < len(TOPIC_FLOW):
            return TOPIC_FLOW[index + 1]
    return "wrap-up"
