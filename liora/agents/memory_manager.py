"""
Memory Manager - per-session conversation memory.

Keeps every question-answer pair of a session, compresses older entries
into a summary once the token estimate passes a threshold, and answers
keyword queries over the conversation.
"""

import logging
import math
import random
import re

from liora.agents.base import AgentStatus, BaseAgent
from liora.config.settings import get_settings
from liora.models.interview import (
    ContinuityBridge,
    ConversationContext,
    ConversationEntry,
    ConversationMemory,
)

logger = logging.getLogger(__name__)


# Topic keyword in the new topic -> (pattern over recent answers, connection point)
CONNECTION_POINTS = [
    ("team", r"hire|people|employee", "hiring and team building mentioned"),
    ("market", r"customer|user|segment", "customer insights from previous discussion"),
    ("financial", r"revenue|money|cost", "financial aspects touched upon"),
    ("product", r"feature|build|develop", "product development themes"),
]

# Pattern over the last question -> topic name
TOPIC_PATTERNS = [
    (r"market|customer|segment", "market analysis"),
    (r"team|hire|people", "team dynamics"),
    (r"revenue|financial|money", "financial metrics"),
    (r"product|feature|technology", "product development"),
    (r"competitor|competition", "competitive landscape"),
]


METRIC_MENTION = re.compile(r"\$[\d,]+|\d+%|\d+\s*(?:customers?|users?|months?)")


def estimate_tokens(entry: ConversationEntry) -> int:
    """Rough token count: four characters per token."""
    return math.ceil(len(f"{entry.question} {entry.response}") / 4)


class MemoryManager(BaseAgent):
    """Conversation memory keyed by session id."""

    def __init__(
        self,
        agent_id: str = "memory-001",
        compression_threshold: int | None = None,
        context_window: int | None = None,
        max_entries: int | None = None,
        rng: random.Random | None = None,
    ):
        super().__init__(agent_id, "memory")
        settings = get_settings()
        self.compression_threshold = compression_threshold or settings.memory_compression_threshold
        self.context_window = context_window or settings.memory_context_window
        self.max_entries = max_entries or settings.memory_max_entries
        self.optimize_after_seconds = settings.memory_optimize_after_minutes * 60
        self._memories: dict[str, ConversationMemory] = {}
        self._rng = rng or random.Random()

    def get_memory(self, session_id: str) -> ConversationMemory:
        if session_id not in self._memories:
            self._memories[session_id] = ConversationMemory()
        return self._memories[session_id]

    # =========================================================================
    # STORAGE
    # =========================================================================

    def store_conversation(self, session_id: str, entry: ConversationEntry) -> None:
        """Store an exchange, compressing older memory when it grows too large."""
        self.update_status(AgentStatus.PROCESSING, "Storing conversation entry")
        self.log_activity("Storing conversation", session_id=session_id, entry_id=entry.id)

        try:
            memory = self.get_memory(session_id)
            entry = entry.model_copy(update={
                "insights": list(dict.fromkeys(entry.insights + self._extract_entry_insights(entry)))
            })
            memory.entries.append(entry)
            memory.total_tokens += estimate_tokens(entry)

            if memory.total_tokens > self.compression_threshold:
                self._compress(memory)

            self.update_status(AgentStatus.IDLE)
        except Exception as e:
            self.handle_error(e, "store_conversation")
            raise

    def _extract_entry_insights(self, entry: ConversationEntry) -> list[str]:
        insights = []
        text = entry.response.lower()

        if re.search(r"\$[\d,]+", entry.response):
            insights.append("Financial metrics mentioned")
        if re.search(r"\d+%", entry.response):
            insights.append("Percentage metrics mentioned")
        if re.search(r"customer|client|user", text):
            insights.append("Customer-related discussion")
        if re.search(r"competitor|competition", text):
            insights.append("Competitive landscape discussed")

        return insights

    def _compress(self, memory: ConversationMemory) -> None:
        """Fold everything but the most recent entries into the summary."""
        if len(memory.entries) <= self.context_window:
            return

        older = memory.entries[:-self.context_window]
        memory.entries = memory.entries[-self.context_window:]

        summary = " | ".join(
            f"Q: {entry.question[:100]}... A: {entry.response[:200]}..." for entry in older
        )
        if memory.compressed_summary:
            memory.compressed_summary = f"{memory.compressed_summary} | {summary}"
        else:
            memory.compressed_summary = f"Previous conversation covered: {summary}"

        memory.key_insights = list(dict.fromkeys(memory.key_insights + self._key_insights(older)))
        memory.total_tokens = sum(estimate_tokens(entry) for entry in memory.entries)

        logger.info(f"Compressed {len(older)} entries; {len(memory.entries)} remain")

    def _key_insights(self, entries: list[ConversationEntry]) -> list[str]:
        insights = []
        for entry in entries:
            metrics = [m.group(0) for m in METRIC_MENTION.finditer(entry.response)]
            if metrics:
                insights.append(f"Metrics: {', '.join(metrics)}")

            text = entry.response.lower()
            if re.search(r"challenge|difficult|problem", text):
                insights.append("Discussed challenges")
            if re.search(r"achieved|successful|grew|increased", text):
                insights.append("Mentioned achievements")

        return list(dict.fromkeys(insights))

    # =========================================================================
    # RETRIEVAL
    # =========================================================================

    def retrieve_context(self, session_id: str, query: str = "") -> ConversationContext:
        """Entries relevant to the query plus the compressed summary."""
        self.update_status(AgentStatus.THINKING, "Retrieving conversation context")
        self.log_activity("Retrieving context", session_id=session_id, query=query[:50])

        memory = self.get_memory(session_id)
        context = ConversationContext(
            entries=self._search(memory, query),
            summary=memory.compressed_summary,
            key_insights=list(memory.key_insights),
            total_entries=len(memory.entries),
            recent_exchanges=self._recent_exchanges(memory),
        )

        self.update_status(AgentStatus.IDLE)
        return context

    def _search(self, memory: ConversationMemory, query: str) -> list[ConversationEntry]:
        keywords = [word for word in query.lower().split(" ") if word]
        matches = [
            entry for entry in memory.entries
            if any(keyword in f"{entry.question} {entry.response}".lower() for keyword in keywords)
        ]
        if matches:
            return matches[-10:]
        return memory.entries[-5:]

    def _recent_exchanges(self, memory: ConversationMemory) -> str:
        return " | ".join(
            f"{entry.question[:50]}... → {entry.response[:100]}..." for entry in memory.entries[-5:]
        )

    # =========================================================================
    # CONTINUITY
    # =========================================================================

    def maintain_continuity(self, session_id: str, new_topic: str) -> ContinuityBridge:
        """Build a transition phrase that ties the new topic to what was said."""
        self.update_status(AgentStatus.THINKING, "Building topic transition")
        memory = self.get_memory(session_id)

        if not memory.entries:
            self.update_status(AgentStatus.IDLE)
            return ContinuityBridge(
                previous_topic="introduction",
                new_topic=new_topic,
                transition_phrase=f"Now let's talk about {new_topic}.",
            )

        recent = memory.entries[-3:]
        previous_topic = self._infer_topic(recent[-1].question)
        connection_points = self._connection_points(recent, new_topic)

        if connection_points:
            phrase = (
                f"That's great insight about {previous_topic}. Building on what you mentioned "
                f"about {connection_points[0]}, let's dive into {new_topic}."
            )
        else:
            phrase = self._rng.choice([
                f"Thanks for that perspective on {previous_topic}. Now I'd like to explore {new_topic}.",
                f"That gives me good context on {previous_topic}. Let's shift our focus to {new_topic}.",
                f"Excellent. Moving from {previous_topic}, I'm curious about {new_topic}.",
                f"I appreciate those insights on {previous_topic}. Let's talk about {new_topic}.",
            ])

        self.update_status(AgentStatus.IDLE)
        return ContinuityBridge(
            previous_topic=previous_topic,
            new_topic=new_topic,
            connection_points=connection_points,
            transition_phrase=phrase,
        )

    def _infer_topic(self, question: str) -> str:
        text = question.lower()
        for pattern, topic in TOPIC_PATTERNS:
            if re.search(pattern, text):
                return topic
        return "general discussion"

    def _connection_points(self, entries: list[ConversationEntry], new_topic: str) -> list[str]:
        topic = new_topic.lower()
        responses = " ".join(entry.response for entry in entries).lower()
        return [
            point for keyword, pattern, point in CONNECTION_POINTS
            if keyword in topic and re.search(pattern, responses)
        ]

    # =========================================================================
    # MAINTENANCE
    # =========================================================================

    def optimize_memory(self, session_id: str, session_duration_seconds: float) -> None:
        """Compress long sessions and cap the number of kept entries."""
        memory = self.get_memory(session_id)

        if session_duration_seconds > self.optimize_after_seconds:
            self._compress(memory)

        if len(memory.entries) > self.max_entries:
            memory.entries = memory.entries[-self.max_entries:]
            memory.total_tokens = sum(estimate_tokens(entry) for entry in memory.entries)

    def get_memory_stats(self, session_id: str) -> dict:
        memory = self.get_memory(session_id)
        return {
            "total_entries": len(memory.entries),
            "total_tokens": memory.total_tokens,
            "key_insights": len(memory.key_insights),
            "compression_ratio": (
                len(memory.compressed_summary) / memory.total_tokens
                if memory.compressed_summary and memory.total_tokens else 0
            ),
        }

    def clear_memory(self, session_id: str) -> None:
        self._memories.pop(session_id, None)
        self.log_activity("Memory cleared", session_id=session_id)
