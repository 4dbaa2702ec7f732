"""
Interview Orchestrator - State machine for managing interview lifecycle.

This is the central coordinator for the interview process. It owns the
session registry, enforces the lifecycle state machine, and drives the
agent workflow one turn at a time.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable
from uuid import uuid4

from liora.core.errors import (
    AgentError,
    InvalidRequestError,
    SessionNotFoundError,
    StateTransitionError,
)
from liora.core.memo_generator import MemoGenerator
from liora.core.workflow import InterviewState, InterviewWorkflow
from liora.models.evaluation import CaliberMetrics, InvestmentScore
from liora.models.interview import (
    InterviewSession,
    InterviewSetup,
    InterviewStatus,
    SharedContext,
)
from liora.models.memo import InvestmentMemo
from liora.models.question import InterviewQuestion, Priority, QuestionType

logger = logging.getLogger(__name__)


# Keyword in a question -> topic reported in interview stats
STATS_TOPICS = [
    ("market", "Market Analysis"),
    ("team", "Team Dynamics"),
    ("revenue", "Financial Metrics"),
    ("product", "Product Development"),
]


class InterviewOrchestrator:
    """
    Manages the interview lifecycle using a state machine pattern.

    States:
        INITIALIZING → ACTIVE ⇄ PAUSED
                          ↓        ↓
                      COMPLETED | ERROR

    The orchestrator coordinates between:
    - The agent workflow (questions, assessment, memory)
    - The memo generator
    - The AI reasoning layer (tracing)
    """

    VALID_TRANSITIONS: dict[InterviewStatus, list[InterviewStatus]] = {
        InterviewStatus.INITIALIZING: [InterviewStatus.ACTIVE, InterviewStatus.COMPLETED, InterviewStatus.ERROR],
        InterviewStatus.ACTIVE: [InterviewStatus.PAUSED, InterviewStatus.COMPLETED, InterviewStatus.ERROR],
        InterviewStatus.PAUSED: [InterviewStatus.ACTIVE, InterviewStatus.COMPLETED, InterviewStatus.ERROR],
        InterviewStatus.COMPLETED: [],  # Terminal state
        InterviewStatus.ERROR: [],  # Terminal state, leave via reset
    }

    def __init__(
        self,
        workflow: InterviewWorkflow | None = None,
        ai_reasoning: Any = None,  # AIReasoningLayer
        memo_generator: MemoGenerator | None = None,
    ):
        """
        Initialize the orchestrator with component dependencies.

        Args:
            workflow: Agent workflow; built with default agents if omitted
            ai_reasoning: AI reasoning layer for polish, prose and tracing
            memo_generator: Investment memo generator
        """
        self.ai_reasoning = ai_reasoning
        self.workflow = workflow or InterviewWorkflow(ai_reasoning=ai_reasoning)
        self.memo_generator = memo_generator or MemoGenerator(
            ai_reasoning=ai_reasoning,
            analyst=self.workflow.analyst,
        )

        # Session storage (in-memory)
        self._contexts: dict[str, SharedContext] = {}
        self._states: dict[str, InterviewState] = {}
        self._memos: dict[str, InvestmentMemo] = {}
        self._locks: dict[str, asyncio.Lock] = {}

        # Event callbacks
        self._state_change_callbacks: list[Callable[[str, InterviewStatus, InterviewStatus], Awaitable[None]]] = []
        self._question_callbacks: list[Callable[[str, InterviewQuestion], Awaitable[None]]] = []
        self._assessment_callbacks: list[Callable[[str, CaliberMetrics], Awaitable[None]]] = []

    # =========================================================================
    # SESSION MANAGEMENT
    # =========================================================================

    async def create_session(self, setup: InterviewSetup) -> InterviewSession:
        """
        Create a new interview session from setup configuration.

        Args:
            setup: Founder's interview configuration

        Returns:
            New InterviewSession instance
        """
        session = InterviewSession(setup=setup)
        session.progress.total_estimated_questions = setup.total_estimated_questions
        session.progress.remaining_time = setup.time_limit_minutes * 60

        self._contexts[session.id] = SharedContext(session=session)
        self._locks[session.id] = asyncio.Lock()

        logger.info(f"Created interview session: {session.id} ({setup.company_name})")
        return session

    def get_session(self, session_id: str) -> InterviewSession | None:
        """Get a session by ID."""
        context = self._contexts.get(session_id)
        return context.session if context else None

    def get_context(self, session_id: str) -> SharedContext:
        """
        Get a session's shared context.

        Raises:
            SessionNotFoundError: If the session does not exist
        """
        context = self._contexts.get(session_id)
        if context is None:
            raise SessionNotFoundError(session_id)
        return context

    def list_sessions(self) -> list[InterviewSession]:
        return [context.session for context in self._contexts.values()]

    def _store_state(self, session_id: str, state: InterviewState) -> None:
        """
        Keep a finished turn's state.

        Raises:
            StateTransitionError: If the session was reset or left ACTIVE
                while the turn was running
        """
        context = state["shared_context"]
        if self._contexts.get(session_id) is not context or context.session.status != InterviewStatus.ACTIVE:
            raise StateTransitionError(
                f"Session {session_id} changed while a turn was running; turn discarded"
            )
        self._states[session_id] = state

    def _require_status(self, session_id: str, status: InterviewStatus, action: str) -> SharedContext:
        context = self.get_context(session_id)
        if context.session.status != status:
            raise StateTransitionError(
                f"Cannot {action} while interview is {context.session.status.value}"
            )
        return context

    # =========================================================================
    # STATE MACHINE
    # =========================================================================

    async def transition_state(
        self,
        session_id: str,
        new_status: InterviewStatus,
        error_message: str | None = None,
    ) -> InterviewSession:
        """
        Transition a session to a new status.

        Args:
            session_id: Session ID
            new_status: Target status
            error_message: Error message if transitioning to ERROR

        Returns:
            Updated session

        Raises:
            SessionNotFoundError: If the session does not exist
            StateTransitionError: If transition is invalid
        """
        session = self.get_context(session_id).session
        old_status = session.status

        valid_next = self.VALID_TRANSITIONS.get(old_status, [])
        if new_status not in valid_next:
            raise StateTransitionError(
                f"Invalid transition from {old_status.value} to {new_status.value}. "
                f"Valid transitions: {[s.value for s in valid_next]}"
            )

        now = datetime.now(timezone.utc)
        manager = self.workflow.get_question_manager(session_id)
        session.status = new_status

        if new_status == InterviewStatus.ACTIVE and old_status == InterviewStatus.INITIALIZING:
            session.start_time = now
        elif new_status == InterviewStatus.ACTIVE and old_status == InterviewStatus.PAUSED:
            if session.paused_at is not None:
                session.paused_seconds += (now - session.paused_at).total_seconds()
            session.paused_at = None
            if manager:
                manager.resume(now)
        elif new_status == InterviewStatus.PAUSED:
            session.paused_at = now
            if manager:
                manager.pause(now)
        elif new_status == InterviewStatus.COMPLETED:
            if session.paused_at is not None:
                session.paused_seconds += (now - session.paused_at).total_seconds()
                session.paused_at = None
            session.end_time = now
            self._update_progress(session)
            if self.ai_reasoning:
                caliber = self._contexts[session_id].caliber_metrics
                self.ai_reasoning.end_interview_trace(
                    session_id,
                    status="completed",
                    caliber=caliber.overall if caliber else None,
                )
        elif new_status == InterviewStatus.ERROR:
            session.end_time = now
            session.error_message = error_message
            if self.ai_reasoning:
                self.ai_reasoning.end_interview_trace(session_id, status="error")

        for callback in self._state_change_callbacks:
            try:
                await callback(session_id, old_status, new_status)
            except Exception as e:
                logger.error(f"State change callback error: {e}")

        logger.info(f"Session {session_id}: {old_status.value} → {new_status.value}")
        return session

    def _update_progress(self, session: InterviewSession) -> None:
        session.progress.elapsed_time = round(session.elapsed_seconds(), 1)
        session.progress.remaining_time = round(session.remaining_seconds(), 1)

    # =========================================================================
    # INTERVIEW FLOW
    # =========================================================================

    async def start_interview(self, session_id: str) -> dict[str, Any]:
        """
        Start the interview and ask the first question.

        Returns:
            First question data
        """
        self.get_context(session_id)

        async with self._locks[session_id]:
            context = self.get_context(session_id)
            if context.session.status != InterviewStatus.INITIALIZING:
                raise StateTransitionError(
                    f"Interview already started (status: {context.session.status.value})"
                )

            if self.ai_reasoning:
                self.ai_reasoning.start_interview_trace(
                    session_id,
                    context.session.setup.company_name,
                    metadata={
                        "time_limit_minutes": context.session.time_limit,
                        "total_estimated_questions": context.session.progress.total_estimated_questions,
                    },
                )

            await self.transition_state(session_id, InterviewStatus.ACTIVE)

            state = await self._run_workflow(session_id, self.workflow.start(context))
            return await self._deliver(session_id, state)

    async def submit_response(self, session_id: str, response: str) -> dict[str, Any]:
        """
        Process the founder's answer and return the next question.

        The status is checked once the session lock is held, so answers
        queued behind the turn that completes the interview are rejected.

        Returns:
            Assessment of the answer plus the next question, or completion data

        Raises:
            InvalidRequestError: If the response is empty
            StateTransitionError: If the interview is not active
        """
        if not response or not response.strip():
            raise InvalidRequestError("Response cannot be empty", field="response")

        self.get_context(session_id)

        async with self._locks[session_id]:
            self._require_status(session_id, InterviewStatus.ACTIVE, "submit a response")

            state = await self._run_workflow(
                session_id,
                self.workflow.process_founder_response(response.strip(), self._states[session_id]),
            )

            assessment = self._assessment(state)
            caliber = state.get("caliber_metrics")
            if caliber is not None:
                if self.ai_reasoning:
                    self.ai_reasoning.score_caliber(session_id, caliber.overall)
                for callback in self._assessment_callbacks:
                    try:
                        await callback(session_id, caliber)
                    except Exception as e:
                        logger.error(f"Assessment callback error: {e}")

            result = await self._deliver(session_id, state)
            result["assessment"] = assessment
            return result

    async def _run_workflow(self, session_id: str, run: Awaitable[InterviewState]) -> InterviewState:
        try:
            state = await run
        except Exception as e:
            await self.handle_agent_error("workflow", e)
            await self.transition_state(session_id, InterviewStatus.ERROR, error_message=str(e))
            raise AgentError("workflow", f"Interview workflow failed: {e}") from e

        self._store_state(session_id, state)
        self._update_progress(state["shared_context"].session)
        return state

    async def _deliver(self, session_id: str, state: InterviewState) -> dict[str, Any]:
        """Turn a workflow result into a question or completion payload."""
        session = state["shared_context"].session
        question = state.get("current_question")

        if state.get("is_complete") or question is None:
            if session.status != InterviewStatus.COMPLETED:
                await self.transition_state(session_id, InterviewStatus.COMPLETED)
            return {
                "action": "complete",
                "message": "Interview complete",
                "session_id": session_id,
                "questions_asked": session.progress.current_question_index,
            }

        for callback in self._question_callbacks:
            try:
                await callback(session_id, question)
            except Exception as e:
                logger.error(f"Question callback error: {e}")

        return {
            "action": "question",
            "question_id": question.id,
            "question_text": question.text,
            "question_type": question.type.value,
            "question_number": session.progress.current_question_index,
            "total_questions": session.progress.total_estimated_questions,
            "topic": session.current_topic,
            "context": question.context_data or {},
            "remaining_seconds": session.progress.remaining_time,
        }

    def _assessment(self, state: InterviewState) -> dict[str, Any] | None:
        caliber = state.get("caliber_metrics")
        evaluation = state.get("response_evaluation")
        if caliber is None:
            return None
        return {
            "caliber_overall": caliber.overall,
            "categories": {name: category.score for name, category in caliber.categories.items()},
            "red_flags": [flag.description for flag in caliber.red_flags],
            "quality": evaluation.quality if evaluation else None,
            "follow_up_needed": evaluation.follow_up_needed if evaluation else False,
        }

    async def pause_interview(self, session_id: str) -> InterviewSession:
        self.get_context(session_id)
        async with self._locks[session_id]:
            return await self.transition_state(session_id, InterviewStatus.PAUSED)

    async def resume_interview(self, session_id: str) -> InterviewSession:
        self.get_context(session_id)
        async with self._locks[session_id]:
            return await self.transition_state(session_id, InterviewStatus.ACTIVE)

    async def complete_interview(self, session_id: str) -> InterviewSession:
        """End the interview. Completing twice is a no-op."""
        self.get_context(session_id)
        async with self._locks[session_id]:
            session = self.get_context(session_id).session
            if session.status == InterviewStatus.COMPLETED:
                return session
            return await self.transition_state(session_id, InterviewStatus.COMPLETED)

    async def reset_interview(self, session_id: str) -> InterviewSession:
        """
        Discard all progress and return the session to INITIALIZING.

        Waits for a running turn to finish so its result cannot overwrite
        the fresh session.
        """
        self.get_context(session_id)

        async with self._locks[session_id]:
            old = self.get_context(session_id).session

            self.workflow.release_session(session_id)
            self._states.pop(session_id, None)
            self._memos.pop(session_id, None)

            session = InterviewSession(id=old.id, setup=old.setup, created_at=old.created_at)
            session.progress.total_estimated_questions = old.setup.total_estimated_questions
            session.progress.remaining_time = old.setup.time_limit_minutes * 60
            self._contexts[session_id] = SharedContext(session=session)

        logger.info(f"Session {session_id}: reset")
        return session

    # =========================================================================
    # QUEUE CONTROL
    # =========================================================================

    async def skip_current_question(self, session_id: str, reason: str = "Skipped by interviewer") -> dict[str, Any]:
        """Skip the question on the table and ask the next one."""
        self.get_context(session_id)

        async with self._locks[session_id]:
            self._require_status(session_id, InterviewStatus.ACTIVE, "skip a question")

            manager = self.workflow.get_question_manager(session_id)
            active = manager.get_active_question() if manager else None
            if active is not None:
                manager.skip_question(active.id, reason)

            state = await self._run_workflow(
                session_id,
                self.workflow.execute_workflow({
                    **self._states[session_id],
                    "founder_response": None,
                    "next_action": "memory_retrieval",
                }),
            )
            return await self._deliver(session_id, state)

    def add_custom_question(
        self,
        session_id: str,
        text: str,
        priority: Priority = Priority.MEDIUM,
    ) -> InterviewQuestion:
        """Queue an interviewer-supplied question."""
        if not text or not text.strip():
            raise InvalidRequestError("Question text cannot be empty", field="text")

        context = self.get_context(session_id)
        manager = self.workflow.get_question_manager(session_id)
        if manager is None or context.session.status in (InterviewStatus.COMPLETED, InterviewStatus.ERROR):
            raise StateTransitionError(
                f"Cannot add questions while interview is {context.session.status.value}"
            )

        question = InterviewQuestion(
            id=f"custom-{uuid4().hex[:8]}",
            text=text.strip(),
            type=QuestionType.OPEN_ENDED,
            importance=priority,
        )
        manager.add_custom_question(question, priority)
        logger.info(f"Session {session_id}: custom question {question.id} queued ({priority.value})")
        return question

    # =========================================================================
    # STATUS & REPORTING
    # =========================================================================

    def get_interview_progress(self, session_id: str) -> dict[str, Any]:
        session = self.get_context(session_id).session
        self._update_progress(session)
        progress = session.progress

        return {
            "session_id": session_id,
            "status": session.status.value,
            "current_topic": session.current_topic,
            "question_number": progress.current_question_index,
            "total_questions": progress.total_estimated_questions,
            "completed_topics": list(progress.completed_topics),
            "elapsed_seconds": progress.elapsed_time,
            "remaining_seconds": progress.remaining_time,
            "progress_percent": round(
                min(100.0, progress.current_question_index / max(progress.total_estimated_questions, 1) * 100), 1
            ),
        }

    def get_workflow_status(self, session_id: str) -> dict[str, Any]:
        self.get_context(session_id)
        state = self._states.get(session_id)
        if state is None:
            return {
                "current_step": "not_started",
                "progress": 0.0,
                "is_complete": False,
                "agent_thinking": {},
                "queue": None,
            }

        manager = self.workflow.get_question_manager(session_id)
        return {
            **self.workflow.get_workflow_state(state),
            "agent_thinking": {
                key: thinking.model_dump(mode="json")
                for key, thinking in self.workflow.get_agent_thinking(state).items()
            },
            "queue": manager.get_queue_status().model_dump() if manager else None,
        }

    def get_interview_stats(self, session_id: str) -> dict[str, Any]:
        context = self.get_context(session_id)
        duration = context.session.elapsed_seconds()
        manager = self.workflow.get_question_manager(session_id)
        queue = manager.get_queue_status() if manager else None

        completed = queue.completed if queue else len(context.conversation_history)
        timings = [e.response_seconds for e in context.conversation_history if e.response_seconds is not None]
        if timings:
            average_response_time = sum(timings) / len(timings)
        else:
            average_response_time = duration / max(completed, 1)

        return {
            "duration": int(duration),
            "questions_asked": completed,
            "questions_remaining": queue.remaining if queue else 0,
            "average_response_time": round(average_response_time, 1),
            "caliber_trend": [
                entry.caliber_metrics.overall
                for entry in context.conversation_history
                if entry.caliber_metrics
            ],
            "topics_covered": list(dict.fromkeys(
                self._stats_topic(entry.question) for entry in context.conversation_history
            )),
        }

    def _stats_topic(self, question: str) -> str:
        lowered = question.lower()
        for keyword, topic in STATS_TOPICS:
            if keyword in lowered:
                return topic
        return "General Discussion"

    def get_memory(self, session_id: str) -> dict[str, Any]:
        context = self.get_context(session_id)
        memory_manager = self.workflow.memory_manager
        retrieved = memory_manager.retrieve_context(session_id, context.session.current_topic)
        return {
            "stats": memory_manager.get_memory_stats(session_id),
            "summary": retrieved.summary,
            "key_insights": retrieved.key_insights,
            "recent_exchanges": retrieved.recent_exchanges,
        }

    def export_interview_data(self, session_id: str) -> dict[str, Any]:
        context = self.get_context(session_id)
        self._update_progress(context.session)
        manager = self.workflow.get_question_manager(session_id)
        state = self._states.get(session_id)

        return {
            "session": context.session.model_dump(mode="json"),
            "conversation_history": [e.model_dump(mode="json") for e in context.conversation_history],
            "caliber_metrics": context.caliber_metrics.model_dump(mode="json") if context.caliber_metrics else None,
            "red_flags": [f.model_dump(mode="json") for f in context.red_flags],
            "insights": context.current_insights.model_dump(mode="json"),
            "founder_insights": [i.model_dump(mode="json") for i in context.founder_insights],
            "question_queue_status": manager.get_queue_status().model_dump() if manager else None,
            "agent_thinking": {
                key: thinking.model_dump(mode="json")
                for key, thinking in (self.workflow.get_agent_thinking(state) if state else {}).items()
            },
        }

    def get_investment_score(self, session_id: str) -> InvestmentScore:
        return self.workflow.analyst.calculate_investment_potential(self.get_context(session_id))

    async def generate_memo(self, session_id: str) -> InvestmentMemo:
        """
        Generate (or return the cached) investment memo.

        Memos are cached once the interview is complete; for a running
        interview a fresh memo reflects the answers so far.
        """
        if session_id in self._memos:
            return self._memos[session_id]

        context = self.get_context(session_id)
        if context.session.status == InterviewStatus.INITIALIZING:
            raise StateTransitionError("Interview has not started yet")

        memo = await self.memo_generator.generate(context, self.get_investment_score(session_id))
        if context.session.status == InterviewStatus.COMPLETED:
            self._memos[session_id] = memo
        return memo

    async def handle_agent_error(self, agent_id: str, error: Exception) -> None:
        """Mark the failing agent and log; the interview carries on."""
        for agent in (
            self.workflow.interviewer,
            self.workflow.analyst,
            self.workflow.memory_manager,
            self.workflow.rag_agent,
        ):
            if agent.id == agent_id:
                agent.handle_error(error, "orchestrator")
                return
        logger.error(f"Agent {agent_id} error: {error}")

    async def cleanup(self) -> None:
        """Close outbound clients."""
        await self.workflow.rag_agent.close()

    # =========================================================================
    # EVENT CALLBACKS
    # =========================================================================

    def on_state_change(
        self,
        callback: Callable[[str, InterviewStatus, InterviewStatus], Awaitable[None]]
    ) -> None:
        """Register a callback for state changes."""
        self._state_change_callbacks.append(callback)

    def on_question(
        self,
        callback: Callable[[str, InterviewQuestion], Awaitable[None]]
    ) -> None:
        """Register a callback for new questions."""
        self._question_callbacks.append(callback)

    def on_assessment(
        self,
        callback: Callable[[str, CaliberMetrics], Awaitable[None]]
    ) -> None:
        """Register a callback for caliber assessments."""
        self._assessment_callbacks.append(callback)
