"""
Interview Workflow for Liora

LangGraph state machine that coordinates the agents for one interview turn:

    founder response ─▶ response_processing ─▶ memory_storage ─▶ completion_check
                                                                   │
                              END ◀──(complete)────────────────────┤
                                                                   ▼
    (no response) ─▶ memory_retrieval ─▶ context_enrichment ─▶ question_generation ─▶ END

Each invocation asks at most one new question; the caller feeds the
returned state back in together with the founder's next answer.
"""

import logging
from datetime import datetime, timezone
from typing import Annotated, Any, TypedDict

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langgraph.graph import END, START, StateGraph
from langgraph.graph.message import add_messages

from liora.agents import AnalystAgent, InterviewerAgent, MemoryManager, RAGAgent
from liora.config.settings import get_settings
from liora.core.question_manager import MIN_TIME_FOR_QUESTION, QuestionManager
from liora.models.catalog import QUESTION_TOPICS, get_topic_for_question
from liora.models.evaluation import (
    CaliberMetrics,
    Insight,
    InsightType,
    RedFlag,
    ResponseEvaluation,
)
from liora.models.founder import RetrievedData
from liora.models.interview import (
    AgentThinking,
    ConversationEntry,
    InterviewStatus,
    SharedContext,
)
from liora.models.question import InterviewQuestion, QuestionType

logger = logging.getLogger(__name__)


FALLBACK_QUESTION_ID = "fallback"
FALLBACK_QUESTION_TEXT = "Can you tell me more about your company?"

# Agent keys under which each node records its thinking
THINKING_KEYS = (
    "memory_retriever",
    "context_enricher",
    "interviewer",
    "analyst",
    "memory",
    "coordinator",
)


def merge_thinking(
    left: dict[str, AgentThinking] | None,
    right: dict[str, AgentThinking] | None,
) -> dict[str, AgentThinking]:
    """Reducer: later thinking for an agent replaces the earlier one."""
    return {**(left or {}), **(right or {})}


class InterviewState(TypedDict, total=False):
    """State carried through the workflow graph."""

    messages: Annotated[list[BaseMessage], add_messages]
    shared_context: SharedContext
    current_question: InterviewQuestion | None
    founder_response: str | None
    caliber_metrics: CaliberMetrics | None
    response_evaluation: ResponseEvaluation | None
    agent_thinking: Annotated[dict[str, AgentThinking], merge_thinking]
    next_action: str
    is_complete: bool


def _thinking(
    task: str,
    reasoning: str,
    next_action: str,
    confidence: float,
    data_fetched: list[str] | None = None,
) -> AgentThinking:
    return AgentThinking(
        current_task=task,
        reasoning=reasoning,
        data_fetched=data_fetched or [],
        next_action=next_action,
        confidence=confidence,
    )


class InterviewWorkflow:
    """
    Multi-agent coordinator built on a LangGraph StateGraph.

    The workflow owns one QuestionManager per session; agents are shared
    between sessions and keep per-session data keyed by session id.
    """

    def __init__(
        self,
        interviewer: InterviewerAgent | None = None,
        analyst: AnalystAgent | None = None,
        memory_manager: MemoryManager | None = None,
        rag_agent: RAGAgent | None = None,
        ai_reasoning: Any = None,
    ):
        self.interviewer = interviewer or InterviewerAgent()
        self.analyst = analyst or AnalystAgent()
        self.memory_manager = memory_manager or MemoryManager()
        self.rag_agent = rag_agent or RAGAgent()
        self.ai_reasoning = ai_reasoning
        self.max_questions = get_settings().max_questions

        self._question_managers: dict[str, QuestionManager] = {}
        self.graph = self._build_graph()

    # =========================================================================
    # GRAPH
    # =========================================================================

    def _build_graph(self):
        workflow = StateGraph(InterviewState)

        workflow.add_node("memory_retrieval", self._memory_retrieval_node)
        workflow.add_node("context_enrichment", self._context_enrichment_node)
        workflow.add_node("question_generation", self._question_generation_node)
        workflow.add_node("response_processing", self._response_processing_node)
        workflow.add_node("memory_storage", self._memory_storage_node)
        workflow.add_node("completion_check", self._completion_check_node)

        workflow.add_conditional_edges(
            START,
            self._route_entry,
            {
                "response_processing": "response_processing",
                "memory_retrieval": "memory_retrieval",
            },
        )
        workflow.add_edge("response_processing", "memory_storage")
        workflow.add_edge("memory_storage", "completion_check")
        workflow.add_conditional_edges(
            "completion_check",
            self._route_completion,
            {
                "end": END,
                "continue": "memory_retrieval",
            },
        )
        workflow.add_edge("memory_retrieval", "context_enrichment")
        workflow.add_edge("context_enrichment", "question_generation")
        workflow.add_edge("question_generation", END)

        return workflow.compile()

    def _route_entry(self, state: InterviewState) -> str:
        if state.get("founder_response"):
            return "response_processing"
        return "memory_retrieval"

    def _route_completion(self, state: InterviewState) -> str:
        return "end" if state.get("is_complete") else "continue"

    # =========================================================================
    # NODES
    # =========================================================================

    async def _memory_retrieval_node(self, state: InterviewState) -> dict:
        context = state["shared_context"]
        query = context.session.current_topic

        try:
            memory_context = self.memory_manager.retrieve_context(context.session.id, query)
            context.memory_context = memory_context
            thinking = _thinking(
                "Retrieving conversation memory",
                f"Found {len(memory_context.entries)} relevant exchanges for '{query}'",
                "context_enrichment",
                0.9,
                [f"memory:{len(memory_context.entries)} entries"],
            )
        except Exception as e:
            logger.error(f"Memory retrieval failed: {e}")
            thinking = _thinking(
                "Retrieving conversation memory",
                f"Memory retrieval failed: {e}",
                "context_enrichment",
                0.3,
            )

        return {
            "shared_context": context,
            "agent_thinking": {"memory_retriever": thinking},
            "next_action": "context_enrichment",
        }

    async def _context_enrichment_node(self, state: InterviewState) -> dict:
        context = state["shared_context"]
        setup = context.session.setup

        try:
            if context.rag_data is None:
                founder_data = await self.rag_agent.retrieve_founder_data(
                    setup.founder_id,
                    founder_name=setup.founder_name or None,
                    company_name=setup.company_name,
                    sector=setup.sector or None,
                    stage=setup.stage or None,
                    session_id=context.session.id,
                )
                public_data = await self.rag_agent.retrieve_public_data(
                    founder_data.company.name,
                    founder_data.company.sector,
                    session_id=context.session.id,
                )
                context.rag_data = RetrievedData(
                    founder_data=founder_data,
                    public_data=public_data,
                    relevance_score=0.8,
                )
                context.founder_profile = context.founder_profile or founder_data.profile
                context.company_data = context.company_data or founder_data.company

            fetched = ["founder_data", "public_data"]
            if context.memory_context and context.memory_context.total_entries:
                fetched.append("memory_context")

            thinking = _thinking(
                "Enriching context with founder and market data",
                f"Context ready for {context.company_name} with {len(context.conversation_history)} prior exchanges",
                "question_generation",
                0.85,
                fetched,
            )
        except Exception as e:
            logger.error(f"Context enrichment failed: {e}")
            thinking = _thinking(
                "Enriching context with founder and market data",
                f"Context enrichment failed: {e}",
                "question_generation",
                0.4,
            )

        return {
            "shared_context": context,
            "agent_thinking": {"context_enricher": thinking},
            "next_action": "question_generation",
        }

    async def _question_generation_node(self, state: InterviewState) -> dict:
        context = state["shared_context"]
        session = context.session

        try:
            question = self._next_question(context)
            if question is None:
                logger.info(f"Session {session.id}: no question fits the remaining time")
                return {
                    "shared_context": context,
                    "current_question": None,
                    "is_complete": True,
                    "next_action": "end",
                    "agent_thinking": {"interviewer": _thinking(
                        "Generating next question",
                        "No question fits the remaining time",
                        "end",
                        0.9,
                    )},
                }

            question = self._contextualize(question, context)
            question = self._bridge_topic(question, context)

            if self.ai_reasoning is not None and self.ai_reasoning.enabled:
                polished = await self.ai_reasoning.polish_question(question.text, context)
                question = question.model_copy(update={"text": polished})

            session.progress.current_question_index += 1
            context.metadata["question_asked_at"] = datetime.now(timezone.utc).isoformat()
            context.metadata["paused_seconds_at_ask"] = session.paused_seconds

            thinking = _thinking(
                "Generating next question",
                f"Asking {question.id} on {session.current_topic}",
                "await_response",
                0.9,
                list((question.context_data or {}).keys()),
            )
        except Exception as e:
            logger.error(f"Question generation failed: {e}")
            question = InterviewQuestion(
                id=FALLBACK_QUESTION_ID,
                text=FALLBACK_QUESTION_TEXT,
                type=QuestionType.OPEN_ENDED,
            )
            session.progress.current_question_index += 1
            thinking = _thinking(
                "Generating next question",
                f"Question generation failed, using fallback: {e}",
                "await_response",
                0.2,
            )

        return {
            "shared_context": context,
            "current_question": question,
            "founder_response": None,
            "messages": [AIMessage(content=question.text)],
            "agent_thinking": {"interviewer": thinking},
            "next_action": "await_response",
        }

    def _next_question(self, context: SharedContext) -> InterviewQuestion | None:
        """Queue first, interviewer rotation while time remains."""
        manager = self._question_managers.get(context.session.id)
        if manager is not None:
            question = manager.get_next_question(context)
            if question is not None:
                return question
            if manager.get_remaining_time() <= MIN_TIME_FOR_QUESTION:
                return None
        elif context.session.remaining_seconds() <= MIN_TIME_FOR_QUESTION:
            return None

        return self.interviewer.generate_question(context)

    def _contextualize(self, question: InterviewQuestion, context: SharedContext) -> InterviewQuestion:
        """Splice retrieved data and memory into the question."""
        context_data = dict(question.context_data or {})
        text = question.text

        if context.rag_data is not None and not context_data.get("rag_data_used"):
            contextual = self.rag_agent.inject_context(text, context.rag_data)
            text = contextual.enhanced_question
            context_data["rag_data_used"] = bool(contextual.context_used)
            context_data["relevance_score"] = contextual.relevance_score

        memory = context.memory_context
        if memory is not None and memory.key_insights:
            context_data["memory_insights"] = memory.key_insights[-3:]
        if memory is not None and memory.summary:
            context_data["memory_summary"] = memory.summary[:200]

        return question.model_copy(update={"text": text, "context_data": context_data or None})

    def _bridge_topic(self, question: InterviewQuestion, context: SharedContext) -> InterviewQuestion:
        """Move the session to the question's topic, recording a transition."""
        session = context.session
        topic = get_topic_for_question(question.id)
        if topic is None or topic.name == session.current_topic:
            return question

        previous = session.current_topic
        if previous not in session.progress.completed_topics and context.conversation_history:
            session.progress.completed_topics.append(previous)
        session.current_topic = topic.name

        if not context.conversation_history:
            return question

        bridge = self.memory_manager.maintain_continuity(session.id, topic.name.lower())
        logger.info(f"Session {session.id}: topic {previous} → {topic.name}")
        return question.model_copy(update={
            "context_data": {
                **(question.context_data or {}),
                "transition": bridge.transition_phrase,
                "connection_points": bridge.connection_points,
            },
        })

    async def _response_processing_node(self, state: InterviewState) -> dict:
        context = state["shared_context"]
        response = state.get("founder_response") or ""
        question = state.get("current_question")

        try:
            caliber = self.analyst.assess_caliber_metrics(response, context)
            evaluation = self.interviewer.evaluate_response(response)

            manager = self._question_managers.get(context.session.id)
            if manager is not None and question is not None:
                manager.process_answer(question.id, response, evaluation, context)

            new_insights = self._insights_from(caliber)
            for insight in new_insights:
                context.current_insights.add(insight)
            self._merge_red_flags(context, caliber.red_flags)

            self._plan_next_topic(context, new_insights, manager)

            thinking = _thinking(
                "Assessing founder response",
                f"Caliber {caliber.overall:.1f}/100, quality {evaluation.quality:.0f}, "
                f"follow-up {'needed' if evaluation.follow_up_needed else 'not needed'}",
                "memory_storage",
                0.85,
                ["caliber_metrics", "response_evaluation"],
            )
        except Exception as e:
            logger.error(f"Response processing failed: {e}")
            caliber = None
            evaluation = None
            thinking = _thinking(
                "Assessing founder response",
                f"Response processing failed: {e}",
                "memory_storage",
                0.3,
            )

        return {
            "shared_context": context,
            "caliber_metrics": caliber,
            "response_evaluation": evaluation,
            "messages": [HumanMessage(content=response)],
            "agent_thinking": {"analyst": thinking},
            "next_action": "memory_storage",
        }

    def _insights_from(self, caliber: CaliberMetrics) -> list[Insight]:
        insights = [
            Insight(
                type=InsightType.STRENGTH,
                category=strength.category,
                description=strength.description,
                evidence=[strength.evidence],
                confidence=0.8,
            )
            for strength in caliber.strengths
        ]
        insights += [
            Insight(
                type=InsightType.CONCERN,
                category=concern.category,
                description=concern.description,
                evidence=[concern.evidence],
                confidence=0.7,
            )
            for concern in caliber.concerns
        ]
        insights += [
            Insight(
                type=InsightType.RISK,
                category=flag.type.value,
                description=flag.description,
                evidence=[flag.evidence],
                confidence=0.75,
            )
            for flag in caliber.red_flags
        ]
        return insights

    def _merge_red_flags(self, context: SharedContext, flags: list[RedFlag]) -> None:
        """Add flags not already recorded; repeats of the same flag are dropped."""
        known = {(flag.type, flag.description) for flag in context.red_flags}
        for flag in flags:
            if (flag.type, flag.description) not in known:
                context.red_flags.append(flag)
                known.add((flag.type, flag.description))

    def _plan_next_topic(
        self,
        context: SharedContext,
        insights: list[Insight],
        manager: QuestionManager | None,
    ) -> None:
        """Let the interviewer steer; concerns pull the risk questions forward."""
        current = context.metadata.get("conversation_topic", "company-overview")
        next_topic = self.interviewer.transition_topic(current, insights)
        context.metadata["conversation_topic"] = next_topic

        if next_topic == "risk-assessment" and manager is not None:
            for question_id, topic_id in QUESTION_TOPICS.items():
                if topic_id == "challenges-risks":
                    manager.boost_priority(question_id)

    async def _memory_storage_node(self, state: InterviewState) -> dict:
        context = state["shared_context"]
        session = context.session
        question = state.get("current_question")
        response = state.get("founder_response")
        caliber = state.get("caliber_metrics")

        if question is None or not response:
            return {
                "agent_thinking": {"memory": _thinking(
                    "Storing conversation",
                    "Nothing to store",
                    "completion_check",
                    0.4,
                )},
                "next_action": "completion_check",
            }

        try:
            entry_insights = []
            if caliber is not None:
                entry_insights = [
                    f"Communication: {round(caliber.categories.communication.score)}/100",
                    f"Business Acumen: {round(caliber.categories.business_acumen.score)}/100",
                ]

            entry = ConversationEntry(
                question_id=question.id,
                question=question.text,
                response=response,
                caliber_metrics=caliber,
                insights=entry_insights,
                response_seconds=self._response_seconds(context),
            )

            self.memory_manager.store_conversation(session.id, entry)
            self.memory_manager.optimize_memory(session.id, session.elapsed_seconds())

            context.conversation_history.append(entry)
            if caliber is not None:
                context.caliber_metrics = caliber

            self._merge_red_flags(context, self.analyst.identify_red_flags(context.conversation_history))

            context.founder_insights = self.analyst.generate_insights(
                [e.response for e in context.conversation_history],
                founder_id=session.founder_id,
            )
            self.rag_agent.update_knowledge_base(
                self._insights_from(caliber) if caliber else [],
                session_id=session.id,
            )

            thinking = _thinking(
                "Storing conversation",
                f"Stored exchange {len(context.conversation_history)} in memory",
                "completion_check",
                0.9,
                ["conversation_entry"],
            )
        except Exception as e:
            logger.error(f"Memory storage failed: {e}")
            thinking = _thinking(
                "Storing conversation",
                f"Memory storage failed: {e}",
                "completion_check",
                0.4,
            )

        return {
            "shared_context": context,
            "founder_response": None,
            "agent_thinking": {"memory": thinking},
            "next_action": "completion_check",
        }

    def _response_seconds(self, context: SharedContext) -> float | None:
        asked_at = context.metadata.get("question_asked_at")
        if not asked_at:
            return None
        # Time spent paused after the question was asked does not count
        paused = context.session.paused_seconds - context.metadata.get("paused_seconds_at_ask", 0.0)
        waited = (datetime.now(timezone.utc) - datetime.fromisoformat(asked_at)).total_seconds()
        return max(0.0, waited - paused)

    async def _completion_check_node(self, state: InterviewState) -> dict:
        context = state["shared_context"]
        session = context.session

        try:
            time_up = session.is_time_up()
            question_cap = min(session.progress.total_estimated_questions, self.max_questions)
            max_questions = session.progress.current_question_index >= question_cap
            manual = session.status == InterviewStatus.COMPLETED
            is_complete = time_up or max_questions or manual

            if is_complete:
                reason = "time limit" if time_up else "max questions" if max_questions else "manual completion"
                reasoning = f"Interview complete: {reason}"
            else:
                reasoning = "Interview continues with memory-enhanced context"

            thinking = _thinking(
                "Checking interview completion",
                reasoning,
                "end" if is_complete else "memory_retrieval",
                0.95,
            )
        except Exception as e:
            logger.error(f"Completion check failed: {e}")
            is_complete = False
            thinking = _thinking(
                "Checking interview completion",
                f"Completion check failed: {e}",
                "memory_retrieval",
                0.3,
            )

        return {
            "is_complete": is_complete,
            "agent_thinking": {"coordinator": thinking},
            "next_action": "end" if is_complete else "memory_retrieval",
        }

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    async def execute_workflow(self, state: InterviewState) -> InterviewState:
        """Run one turn of the graph."""
        return await self.graph.ainvoke(state)

    async def start(self, context: SharedContext) -> InterviewState:
        """Set up the session's question queue and ask the first question."""
        manager = QuestionManager(time_limit_seconds=context.session.time_limit * 60)
        manager.initialize_questions(context)
        self._question_managers[context.session.id] = manager

        state: InterviewState = {
            "messages": [],
            "shared_context": context,
            "current_question": None,
            "founder_response": None,
            "caliber_metrics": None,
            "response_evaluation": None,
            "agent_thinking": {},
            "next_action": "memory_retrieval",
            "is_complete": False,
        }
        return await self.execute_workflow(state)

    async def process_founder_response(self, response: str, state: InterviewState) -> InterviewState:
        """Assess an answer and, unless the interview is over, ask the next question."""
        return await self.execute_workflow({
            **state,
            "founder_response": response,
            "next_action": "response_processing",
        })

    def get_question_manager(self, session_id: str) -> QuestionManager | None:
        return self._question_managers.get(session_id)

    def release_session(self, session_id: str) -> None:
        """Drop the session's queue, memory and knowledge base."""
        self._question_managers.pop(session_id, None)
        self.memory_manager.clear_memory(session_id)
        self.rag_agent.release_session(session_id)

    def get_workflow_state(self, state: InterviewState) -> dict[str, Any]:
        thinking = state.get("agent_thinking") or {}
        return {
            "current_step": state.get("next_action", "memory_retrieval"),
            "progress": min(100.0, len(thinking) / len(THINKING_KEYS) * 100),
            "is_complete": bool(state.get("is_complete")),
            "agent_statuses": {
                agent.id: agent.snapshot()
                for agent in (self.interviewer, self.analyst, self.memory_manager, self.rag_agent)
            },
        }

    def get_agent_thinking(self, state: InterviewState) -> dict[str, AgentThinking]:
        return dict(state.get("agent_thinking") or {})
