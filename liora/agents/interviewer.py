"""
Interviewer Agent - conducts the interview as the investor persona.

Generates questions from its own rotation, scores answers on quality,
completeness and credibility, and plans topic transitions.
"""

import logging
import random
import re

from liora.agents.base import AgentStatus, BaseAgent
from liora.agents.rag import MARKET_WORD
from liora.models.catalog import (
    DEFAULT_PERSONA,
    InvestorPersona,
    get_interviewer_questions,
    get_next_topic,
)
from liora.models.evaluation import Insight, InsightType, ResponseEvaluation
from liora.models.interview import ConversationEntry, SharedContext
from liora.models.question import InterviewQuestion, QuestionType

logger = logging.getLogger(__name__)


# Pattern-based scoring tables: (pattern, points)
SPECIFICITY_PATTERNS = [
    re.compile(r"\$[\d,]+"),  # Dollar amounts
    re.compile(r"\d+%"),  # Percentages
    re.compile(r"\d+\s*(months?|years?|weeks?)"),  # Time periods
    re.compile(r"\d+\s*(customers?|users?|clients?)"),  # Counts
]
CONFIDENCE_PHRASES = ["we have", "we've achieved", "our data shows", "we've proven"]

COMPLETENESS_PATTERNS = [
    (re.compile(r"because|since|due to"), 15),  # Reasoning
    (re.compile(r"for example|such as|like"), 10),  # Examples
    (re.compile(r"\d+"), 10),  # Numbers
    (re.compile(r"we plan|we will|next"), 10),  # Plans
    (re.compile(r"challenge|difficult|problem"), 5),  # Challenges
]

CREDIBILITY_PATTERNS = [
    (re.compile(r"data shows|metrics indicate"), 15),
    (re.compile(r"customer feedback|user research"), 10),
    (re.compile(r"we tested|we validated"), 10),
    (re.compile(r"according to|based on"), 5),
    (re.compile(r"i think|i believe|probably"), -10),
    (re.compile(r"everyone|nobody|always|never"), -15),
    (re.compile(r"huge|massive|incredible"), -5),
]

METRIC_MENTION = re.compile(r"\$[\d,]+|\d+%|\d+\s*(?:customers?|users?|months?)")
CHALLENGE_KEYWORDS = ["challenge", "difficult", "struggle", "problem", "issue"]
CONVICTION_KEYWORDS = ["confident", "proven", "validated", "successful"]


def _clamp(score: float) -> float:
    return min(100, max(0, score))


class InterviewerAgent(BaseAgent):
    """
    The investor conducting the interview.

    Question generation here is the fallback rotation; the question
    manager's queue is the primary source during a workflow run.
    """

    def __init__(
        self,
        agent_id: str = "interviewer-001",
        persona: InvestorPersona | None = None,
        rng: random.Random | None = None,
    ):
        super().__init__(agent_id, "interviewer")
        self.persona = persona or DEFAULT_PERSONA
        self._rng = rng or random.Random()

    # =========================================================================
    # QUESTION GENERATION
    # =========================================================================

    def generate_question(self, context: SharedContext) -> InterviewQuestion:
        """Pick the next question from the rotation and adapt it to context."""
        self.update_status(AgentStatus.THINKING, "Generating contextual question")
        self.log_activity(
            "Generating question",
            topic=context.session.current_topic,
            index=context.session.progress.current_question_index,
            company=context.company_name,
        )

        try:
            questions = get_interviewer_questions(context.company_name)
            index = context.session.progress.current_question_index
            question = questions[index % len(questions)]

            if self._topic_covered(question, context.conversation_history):
                question = self._follow_up_for(question, context)
            elif context.rag_data is not None and context.rag_data.public_data is not None:
                question = self._inject_public_context(question, context)

            self.update_status(AgentStatus.IDLE)
            return question
        except Exception as e:
            self.handle_error(e, "generate_question")
            raise

    def _topic_covered(self, question: InterviewQuestion, history: list[ConversationEntry]) -> bool:
        conversation = " ".join(entry.response for entry in history).lower()
        return any(trigger.lower() in conversation for trigger in question.follow_up_triggers)

    def _follow_up_for(self, question: InterviewQuestion, context: SharedContext) -> InterviewQuestion:
        texts = [
            f"You mentioned {context.company_name} earlier. Can you dive deeper into the specific metrics around that?",
            "That's interesting about your approach. What challenges have you faced implementing this?",
            "How do you see this evolving over the next 12-18 months?",
            "What would you do differently if you were starting over?",
        ]
        return question.model_copy(update={
            "id": f"{question.id}-followup",
            "text": self._rng.choice(texts),
            "type": QuestionType.FOLLOW_UP,
        })

    def _inject_public_context(self, question: InterviewQuestion, context: SharedContext) -> InterviewQuestion:
        public = context.rag_data.public_data
        market = f"{public.market_data.size} market that's growing at {public.market_data.growth}"
        text = MARKET_WORD.sub(market, question.text, count=1)
        if public.competitors:
            names = " and ".join(c.name for c in public.competitors[:2])
            text += f" I see companies like {names} in this space."

        return question.model_copy(update={
            "text": text,
            "context_data": {
                "rag_data_used": True,
                "market_data": public.market_data.model_dump(),
                "competitors": [c.name for c in public.competitors],
            },
        })

    # =========================================================================
    # RESPONSE EVALUATION
    # =========================================================================

    def evaluate_response(self, response: str) -> ResponseEvaluation:
        """Score an answer and decide whether it needs a follow-up."""
        self.update_status(AgentStatus.PROCESSING, "Evaluating response quality")
        self.log_activity("Evaluating response", response_length=len(response))

        try:
            quality = self.assess_quality(response)
            completeness = self.assess_completeness(response)
            credibility = self.assess_credibility(response)

            follow_up_needed = completeness < 70 or quality < 60
            evaluation = ResponseEvaluation(
                quality=quality,
                completeness=completeness,
                credibility=credibility,
                insights=self._extract_insights(response),
                follow_up_needed=follow_up_needed,
                suggested_follow_ups=self._suggest_follow_ups(response) if follow_up_needed else [],
            )

            self.update_status(AgentStatus.IDLE)
            return evaluation
        except Exception as e:
            self.handle_error(e, "evaluate_response")
            raise

    def assess_quality(self, response: str) -> float:
        score = 50

        if len(response) > 200:
            score += 20
        elif len(response) > 100:
            score += 10

        score += 5 * sum(1 for pattern in SPECIFICITY_PATTERNS if pattern.search(response))

        lowered = response.lower()
        score += 3 * sum(1 for phrase in CONFIDENCE_PHRASES if phrase in lowered)

        return _clamp(score)

    def assess_completeness(self, response: str) -> float:
        lowered = response.lower()
        score = 60 + sum(points for pattern, points in COMPLETENESS_PATTERNS if pattern.search(lowered))
        return _clamp(score)

    def assess_credibility(self, response: str) -> float:
        lowered = response.lower()
        score = 60 + sum(points for pattern, points in CREDIBILITY_PATTERNS if pattern.search(lowered))
        return _clamp(score)

    def _extract_insights(self, response: str) -> list[str]:
        insights = []
        lowered = response.lower()

        metrics = [match.group(0) for match in METRIC_MENTION.finditer(response)]
        if metrics:
            insights.append(f"Mentioned specific metrics: {', '.join(metrics)}")

        for keyword in CHALLENGE_KEYWORDS:
            if keyword in lowered:
                insights.append(f"Acknowledged challenges related to {keyword}")

        for keyword in CONVICTION_KEYWORDS:
            if keyword in lowered:
                insights.append(f"Shows confidence in {keyword} approach")

        return insights

    def _suggest_follow_ups(self, response: str) -> list[str]:
        follow_ups = []

        if re.search(r"\d+", response):
            follow_ups.append("Can you break down those numbers and how you calculated them?")

        if re.search(r"challenge|difficult|problem", response.lower()):
            follow_ups.append("What specific steps are you taking to address those challenges?")

        if len(response) < 100:
            follow_ups.append("Can you give me a specific example of that?")

        return follow_ups

    # =========================================================================
    # TOPIC TRANSITIONS
    # =========================================================================

    def transition_topic(self, current_topic: str, insights: list[Insight]) -> str:
        """Next conversational topic; concerns jump straight to risk."""
        self.update_status(AgentStatus.THINKING, "Planning topic transition")
        self.log_activity("Transitioning topic", current_topic=current_topic, insights=len(insights))

        if any(insight.type == InsightType.CONCERN for insight in insights):
            next_topic = "risk-assessment"
        else:
            next_topic = get_next_topic(current_topic)

        self.update_status(AgentStatus.IDLE)
        return next_topic
