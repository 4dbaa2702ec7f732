"""
Question Manager - the interview's question queue.

Orders questions by satisfied dependencies and priority, skips questions
whose information was already given or that no longer fit the time
budget, rewrites questions to tie them to earlier answers, and queues
follow-ups suggested by answer evaluations.
"""

import logging
import re
from datetime import datetime, timezone

from liora.models.catalog import get_base_questions
from liora.models.evaluation import ResponseEvaluation
from liora.models.interview import ConversationEntry, SharedContext
from liora.models.question import (
    InterviewQuestion,
    ModificationRule,
    ModificationTrigger,
    ModificationType,
    Priority,
    QuestionMetadata,
    QuestionQueueItem,
    QuestionType,
    QueueItemStatus,
    QueueStatus,
    SkipCondition,
    SkipConditionType,
)

logger = logging.getLogger(__name__)


# Time thresholds, in seconds
MIN_TIME_FOR_QUESTION = 30
TIME_CONSTRAINT_SECONDS = 120
SIMPLIFY_BELOW_SECONDS = 180
FOLLOW_UP_TIME_ESTIMATE = 45
CUSTOM_QUESTION_TIME_ESTIMATE = 60
TOPIC_COVERED_RATIO = 0.7

SKIP_REASON = "Topic already covered or not relevant"

DEPENDENCIES: dict[str, list[str]] = {
    "revenue-metrics": ["company-overview"],
    "competitive-landscape": ["market-size"],
    "team-composition": ["customer-traction"],
}

SKIP_CONDITIONS: dict[str, list[SkipCondition]] = {
    "revenue-metrics": [
        SkipCondition(
            type=SkipConditionType.INFORMATION_PROVIDED,
            condition="Revenue numbers already mentioned",
            keywords=["revenue", "$", "mrr", "arr", "sales"],
            confidence=0.8,
        )
    ],
    "team-composition": [
        SkipCondition(
            type=SkipConditionType.TIME_CONSTRAINT,
            condition="Less than 2 minutes remaining",
            confidence=0.9,
        )
    ],
}

MODIFICATION_RULES: list[ModificationRule] = [
    ModificationRule(
        trigger=ModificationTrigger.PREVIOUS_ANSWER,
        condition="Relevant context available",
        modification=ModificationType.ADD_CONTEXT,
        template="Building on what you mentioned about {previous_topic}, {original_question}",
    ),
    ModificationRule(
        trigger=ModificationTrigger.TIME_REMAINING,
        condition="Less than 3 minutes remaining",
        modification=ModificationType.SIMPLIFY,
        template="Quickly, {simplified_question}",
    ),
]

SIMPLIFICATIONS = [
    (re.compile(r"tell me about", re.IGNORECASE), "what is"),
    (re.compile(r"walk me through", re.IGNORECASE), "explain"),
    (re.compile(r"can you elaborate on", re.IGNORECASE), "what about"),
    (re.compile(r"i'd like to understand", re.IGNORECASE), "explain"),
]

# Answer keywords -> question whose priority is raised
PRIORITY_BOOSTS = [
    (("funding", "raise"), "funding-history"),
    (("team", "hire"), "team-composition"),
    (("customer", "traction"), "customer-traction"),
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QuestionManager:
    """
    Priority queue of interview questions with a time budget.

    Items leave the queue when answered or skipped and move to the
    history; the question being asked stays at its queue position
    with status ACTIVE until its answer is processed.
    """

    def __init__(self, time_limit_seconds: int = 600):
        self.time_limit = time_limit_seconds
        self.start_time = _utcnow()
        self._paused_at: datetime | None = None
        self._paused_seconds = 0.0

        self._queue: list[QuestionQueueItem] = []
        self._history: list[QuestionQueueItem] = []

    # =========================================================================
    # CLOCK
    # =========================================================================

    def start(self, now: datetime | None = None) -> None:
        """Restart the time budget."""
        self.start_time = now or _utcnow()
        self._paused_at = None
        self._paused_seconds = 0.0

    def pause(self, now: datetime | None = None) -> None:
        if self._paused_at is None:
            self._paused_at = now or _utcnow()

    def resume(self, now: datetime | None = None) -> None:
        if self._paused_at is not None:
            self._paused_seconds += ((now or _utcnow()) - self._paused_at).total_seconds()
            self._paused_at = None

    def get_remaining_time(self, now: datetime | None = None) -> float:
        """Remaining time in seconds."""
        end = self._paused_at or now or _utcnow()
        elapsed = (end - self.start_time).total_seconds() - self._paused_seconds
        return max(0.0, self.time_limit - elapsed)

    # =========================================================================
    # QUEUE SETUP
    # =========================================================================

    def initialize_questions(self, context: SharedContext) -> None:
        """Load the base questions for the company and order them."""
        self._queue = [
            QuestionQueueItem(
                question=question,
                metadata=self._generate_metadata(question),
                original_question=question,
            )
            for question in get_base_questions(context.company_name)
        ]
        self._history = []
        self._sort_queue()

        logger.info(f"Question queue initialized with {len(self._queue)} questions for {context.company_name}")

    def _generate_metadata(self, question: InterviewQuestion) -> QuestionMetadata:
        return QuestionMetadata(
            priority=question.importance,
            dependencies=list(DEPENDENCIES.get(question.id, [])),
            skip_conditions=[c.model_copy() for c in SKIP_CONDITIONS.get(question.id, [])],
            modification_rules=[r.model_copy() for r in MODIFICATION_RULES],
            time_estimate=self._estimate_time(question),
        )

    def _estimate_time(self, question: InterviewQuestion) -> int:
        base = 60
        if question.type == QuestionType.SPECIFIC_METRIC:
            return base
        if question.importance == Priority.HIGH:
            return int(base * 1.5)
        if question.type == QuestionType.OPEN_ENDED:
            return base * 2
        return base

    def _dependencies_completed(self, dependencies: list[str]) -> bool:
        completed = {item.id for item in self._history}
        return all(dep in completed for dep in dependencies)

    def _sort_queue(self) -> None:
        """Stable sort: satisfied dependencies first, then by priority."""
        self._queue.sort(key=lambda item: (
            not self._dependencies_completed(item.metadata.dependencies),
            -item.metadata.priority.weight,
        ))

    # =========================================================================
    # NEXT QUESTION
    # =========================================================================

    def get_next_question(self, context: SharedContext) -> InterviewQuestion | None:
        """
        Get the next question to ask, or None when nothing fits.

        Questions whose skip conditions hold are moved to the history
        as skipped on the way.
        """
        while True:
            remaining = self.get_remaining_time()
            if remaining <= MIN_TIME_FOR_QUESTION:
                return None

            item = self._find_next(remaining)
            if item is None:
                return None

            if self._should_skip(item, context):
                item.status = QueueItemStatus.SKIPPED
                item.skip_reason = SKIP_REASON
                self._move_to_history(item)
                logger.info(f"Skipped question {item.id}: {SKIP_REASON}")
                continue

            item.question = self._modify_if_needed(item, context)
            item.status = QueueItemStatus.ACTIVE
            return item.question

    def _find_next(self, remaining: float) -> QuestionQueueItem | None:
        for item in self._queue:
            if not self._dependencies_completed(item.metadata.dependencies):
                continue
            if item.metadata.time_estimate > remaining:
                continue
            return item
        return None

    def _should_skip(self, item: QuestionQueueItem, context: SharedContext) -> bool:
        return any(self._evaluate_skip_condition(c, context) for c in item.metadata.skip_conditions)

    def _evaluate_skip_condition(self, condition: SkipCondition, context: SharedContext) -> bool:
        if condition.type == SkipConditionType.INFORMATION_PROVIDED:
            text = " ".join(entry.response for entry in context.conversation_history).lower()
            return any(keyword.lower() in text for keyword in condition.keywords)

        if condition.type == SkipConditionType.TIME_CONSTRAINT:
            return self.get_remaining_time() < TIME_CONSTRAINT_SECONDS

        if condition.type == SkipConditionType.TOPIC_COVERED:
            text = " ".join(
                f"{entry.question} {entry.response}" for entry in context.conversation_history
            ).lower()
            matches = sum(1 for keyword in condition.keywords if keyword.lower() in text)
            return matches >= len(condition.keywords) * TOPIC_COVERED_RATIO

        return False

    # =========================================================================
    # MODIFICATION
    # =========================================================================

    def _modify_if_needed(self, item: QuestionQueueItem, context: SharedContext) -> InterviewQuestion:
        """Apply modification rules to the item's original wording."""
        question = item.original_question or item.question

        for rule in item.metadata.modification_rules:
            if self._should_modify(rule, context):
                question = self._apply_modification(question, rule, context.conversation_history)
                item.modification_history.append(f"Applied {rule.modification.value}: {rule.condition}")

        return question

    def _should_modify(self, rule: ModificationRule, context: SharedContext) -> bool:
        if rule.trigger == ModificationTrigger.TIME_REMAINING:
            return self.get_remaining_time() < SIMPLIFY_BELOW_SECONDS
        if rule.trigger == ModificationTrigger.PREVIOUS_ANSWER:
            return len(context.conversation_history) > 0
        if rule.trigger == ModificationTrigger.CALIBER_SCORE:
            return bool(context.caliber_metrics and context.caliber_metrics.overall < 60)
        return False

    def _apply_modification(
        self,
        question: InterviewQuestion,
        rule: ModificationRule,
        history: list[ConversationEntry],
    ) -> InterviewQuestion:
        text = question.text

        if rule.modification == ModificationType.ADD_CONTEXT:
            if history:
                text = (
                    rule.template
                    .replace("{previous_topic}", self._topic_of_last_question(history))
                    .replace("{original_question}", question.text.lower())
                )
        elif rule.modification == ModificationType.SIMPLIFY:
            text = rule.template.replace("{simplified_question}", simplify_question(question.text))
        elif rule.modification == ModificationType.ADD_FOLLOWUP:
            text += " Can you give me a specific example?"

        return question.model_copy(update={
            "text": text,
            "context_data": {
                **(question.context_data or {}),
                "modified": True,
                "modification_applied": rule.modification.value,
            },
        })

    def _topic_of_last_question(self, history: list[ConversationEntry]) -> str:
        if not history:
            return "your background"

        last = history[-1].question.lower()
        if "market" in last:
            return "market opportunity"
        if "team" in last:
            return "team dynamics"
        if "revenue" in last:
            return "financial metrics"
        if "product" in last:
            return "product development"
        return "what you shared"

    # =========================================================================
    # ANSWERS
    # =========================================================================

    def process_answer(
        self,
        question_id: str,
        answer: str,
        evaluation: ResponseEvaluation,
        context: SharedContext | None = None,
    ) -> None:
        """Complete the answered question, queue follow-ups and re-prioritize."""
        item = self._find(question_id)
        if item is None:
            return

        item.status = QueueItemStatus.COMPLETED
        self._move_to_history(item)

        if evaluation.follow_up_needed and evaluation.suggested_follow_ups:
            for index, text in enumerate(evaluation.suggested_follow_ups):
                self._queue.insert(0, QuestionQueueItem(
                    question=InterviewQuestion(
                        id=f"{question_id}-followup-{index}",
                        text=text,
                        type=QuestionType.FOLLOW_UP,
                        importance=Priority.MEDIUM,
                    ),
                    metadata=QuestionMetadata(
                        priority=Priority.MEDIUM,
                        dependencies=[question_id],
                        time_estimate=FOLLOW_UP_TIME_ESTIMATE,
                    ),
                ))

        lowered = answer.lower()
        for keywords, target in PRIORITY_BOOSTS:
            if any(keyword in lowered for keyword in keywords):
                self.boost_priority(target)

        self._sort_queue()

    def boost_priority(self, question_id: str) -> bool:
        """Raise a queued question to high priority. Returns True if it changed."""
        item = self._find(question_id)
        if item is None or item.metadata.priority == Priority.HIGH:
            return False
        item.metadata.priority = Priority.HIGH
        self._sort_queue()
        logger.debug(f"Boosted priority of {question_id}")
        return True

    # =========================================================================
    # QUEUE OPERATIONS
    # =========================================================================

    def _find(self, question_id: str) -> QuestionQueueItem | None:
        return next((item for item in self._queue if item.id == question_id), None)

    def _move_to_history(self, item: QuestionQueueItem) -> None:
        self._queue = [i for i in self._queue if i is not item]
        self._history.append(item)

    def get_active_question(self) -> InterviewQuestion | None:
        item = next((i for i in self._queue if i.status == QueueItemStatus.ACTIVE), None)
        return item.question if item else None

    def skip_question(self, question_id: str, reason: str) -> bool:
        """Force-skip a queued question. Returns False if it is not queued."""
        item = self._find(question_id)
        if item is None:
            return False

        item.status = QueueItemStatus.SKIPPED
        item.skip_reason = reason
        self._move_to_history(item)
        logger.info(f"Skipped question {question_id}: {reason}")
        return True

    def add_custom_question(self, question: InterviewQuestion, priority: Priority = Priority.MEDIUM) -> None:
        """Queue an interviewer-supplied question."""
        item = QuestionQueueItem(
            question=question,
            metadata=QuestionMetadata(priority=priority, time_estimate=CUSTOM_QUESTION_TIME_ESTIMATE),
            original_question=question,
        )
        if priority == Priority.HIGH:
            self._queue.insert(0, item)
        else:
            self._queue.append(item)
        self._sort_queue()

    def get_queue_status(self) -> QueueStatus:
        completed = sum(1 for item in self._history if item.status == QueueItemStatus.COMPLETED)
        skipped = sum(1 for item in self._history if item.status == QueueItemStatus.SKIPPED)
        remaining = len(self._queue)

        return QueueStatus(
            total=completed + skipped + remaining,
            completed=completed,
            remaining=remaining,
            skipped=skipped,
            estimated_time_remaining=sum(item.metadata.time_estimate for item in self._queue[:5]),
            next_priorities=[f"{item.id} ({item.metadata.priority.value})" for item in self._queue[:3]],
        )

    @property
    def queue(self) -> list[QuestionQueueItem]:
        return list(self._queue)

    @property
    def history(self) -> list[QuestionQueueItem]:
        return list(self._history)


def simplify_question(text: str) -> str:
    """Make a question more direct."""
    for pattern, replacement in SIMPLIFICATIONS:
        text = pattern.sub(replacement, text)
    return text
