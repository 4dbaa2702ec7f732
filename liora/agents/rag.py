"""
RAG Agent - retrieves founder and market data and splices it into questions.

Data comes from an HTTP retrieval backend when one is configured, otherwise
from the built-in mock generators. Everything retrieved, plus the insights
gathered during interviews, is kept in an in-memory knowledge base per
session.
"""

import itertools
import json
import logging
import re
import time
from collections import Counter, defaultdict
from datetime import datetime, timezone
from typing import Any

import httpx
from pydantic import ValidationError

from liora.agents.base import AgentStatus, BaseAgent
from liora.config.settings import get_settings
from liora.core.errors import RetrievalError
from liora.data.mock_data import build_mock_founder_data, build_mock_public_data
from liora.models.evaluation import Insight, InsightType
from liora.models.founder import (
    ContextualQuestion,
    FounderData,
    PublicData,
    RetrievedData,
)

logger = logging.getLogger(__name__)

# Knowledge base for data not tied to a session
SHARED_SCOPE = "shared"

# The standalone word "market"; "go-to-market" is left alone
MARKET_WORD = re.compile(r"(?<!-)\bmarket\b(?!-)", re.IGNORECASE)


class RAGAgent(BaseAgent):
    """Retrieval and context injection for interview questions."""

    def __init__(
        self,
        agent_id: str = "rag-001",
        endpoint: str | None = None,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(agent_id, "rag")
        settings = get_settings()
        self.endpoint = endpoint if endpoint is not None else settings.rag_api_endpoint
        self.api_key = api_key if api_key is not None else settings.rag_api_key
        self.timeout = settings.rag_timeout_seconds
        self.max_entries = settings.rag_knowledge_base_max_entries

        self._client = client
        self._knowledge_bases: dict[str, dict[str, Any]] = {}
        self._sequence = itertools.count()

    @property
    def backend_enabled(self) -> bool:
        return bool(self.endpoint) or self._client is not None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"Content-Type": "application/json"}
            if self.api_key:
                headers["Authorization"] = f"Bearer {self.api_key}"
            self._client = httpx.AsyncClient(
                base_url=self.endpoint,
                headers=headers,
                timeout=self.timeout,
            )
        return self._client

    async def close(self):
        """Close HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # =========================================================================
    # RETRIEVAL
    # =========================================================================

    async def retrieve_founder_data(
        self,
        founder_id: str,
        founder_name: str | None = None,
        company_name: str | None = None,
        sector: str | None = None,
        stage: str | None = None,
        session_id: str = SHARED_SCOPE,
    ) -> FounderData:
        """
        Retrieve the founder's profile, company, documents and history.

        Falls back to mock data when the backend is unavailable. Name,
        company, sector and stage override the mock values.
        """
        self.update_status(AgentStatus.PROCESSING, "Retrieving founder data")
        self.log_activity("Retrieving founder data", founder_id=founder_id)

        founder_data = None
        if self.backend_enabled:
            try:
                founder_data = FounderData.model_validate(
                    await self._fetch(f"/founders/{founder_id}")
                )
            except (RetrievalError, ValidationError) as e:
                logger.warning(f"Founder retrieval failed, using mock data: {e}")

        if founder_data is None:
            founder_data = build_mock_founder_data(
                founder_id,
                founder_name=founder_name,
                company_name=company_name,
                sector=sector,
                stage=stage,
            )

        self._scope(session_id)[f"founder-{founder_id}"] = founder_data.model_dump(mode="json")
        self.update_status(AgentStatus.IDLE)
        return founder_data

    async def retrieve_public_data(
        self,
        company_name: str,
        sector: str,
        session_id: str = SHARED_SCOPE,
    ) -> PublicData:
        """Retrieve market size, competitors, trends and benchmarks."""
        self.update_status(AgentStatus.PROCESSING, "Retrieving public market data")
        self.log_activity("Retrieving public data", company=company_name, sector=sector)

        public_data = None
        if self.backend_enabled:
            try:
                public_data = PublicData.model_validate(
                    await self._fetch("/public", params={"company": company_name, "sector": sector})
                )
            except (RetrievalError, ValidationError) as e:
                logger.warning(f"Public data retrieval failed, using mock data: {e}")

        if public_data is None:
            public_data = build_mock_public_data(company_name, sector)

        self._scope(session_id)[f"public-{company_name}-{sector}"] = public_data.model_dump(mode="json")
        self.update_status(AgentStatus.IDLE)
        return public_data

    async def _fetch(self, path: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        client = self._get_client()
        try:
            response = await client.get(path, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise RetrievalError(
                f"Retrieval backend returned {e.response.status_code} for {path}",
                retryable=e.response.status_code >= 500,
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise RetrievalError(f"Retrieval backend request failed for {path}: {e}") from e

    # =========================================================================
    # CONTEXT INJECTION
    # =========================================================================

    def inject_context(self, question: str, context: RetrievedData) -> ContextualQuestion:
        """Make a question specific to the founder and the market."""
        self.update_status(AgentStatus.THINKING, "Injecting context into question")
        self.log_activity(
            "Injecting context",
            question_length=len(question),
            founder_data=context.founder_data is not None,
            public_data=context.public_data is not None,
        )

        enhanced = question
        relevance = 0.5
        used = []

        # Market wording is rewritten before any founder sentences are appended
        if context.public_data is not None:
            enhanced = self._inject_public_context(enhanced, context.public_data)
            relevance += 0.2
            used.append("public_data")

        if context.founder_data is not None:
            enhanced = self._inject_founder_context(enhanced, question, context.founder_data)
            relevance += 0.2
            used.append("founder_data")

        self.update_status(AgentStatus.IDLE)
        return ContextualQuestion(
            original_question=question,
            enhanced_question=enhanced,
            context_used=used,
            relevance_score=min(1.0, round(relevance, 2)),
        )

    def _inject_founder_context(self, text: str, question: str, founder_data: FounderData) -> str:
        enhanced = re.sub(r"your company", founder_data.company.name, text, flags=re.IGNORECASE)
        lowered = question.lower()

        if "market" in lowered and founder_data.company.sector:
            enhanced += f" Given that you're in the {founder_data.company.sector} space,"

        if "experience" in lowered and founder_data.profile.experience:
            enhanced += f" I see from your background that you {founder_data.profile.experience[0].lower()}."

        if founder_data.previous_interviews:
            last = founder_data.previous_interviews[0]
            if last.key_insights and last.topics:
                enhanced += f" Building on our previous discussion about {last.topics[0]},"

        return enhanced

    def _inject_public_context(self, question: str, public_data: PublicData) -> str:
        enhanced = question
        lowered = question.lower()
        market = public_data.market_data

        if "market" in lowered:
            enhanced = MARKET_WORD.sub(f"{market.size} market that's growing at {market.growth}", enhanced)

        if "competitor" in lowered and public_data.competitors:
            names = " and ".join(c.name for c in public_data.competitors[:2])
            enhanced += f" I see companies like {names} in this space."

        if "trend" in lowered and public_data.industry_trends:
            enhanced += f" With trends like {public_data.industry_trends[0].lower()},"

        if "revenue" in lowered and "revenue_growth" in public_data.benchmarks:
            enhanced += f" For context, {public_data.benchmarks['revenue_growth']} is typical for companies at your stage."

        return enhanced

    # =========================================================================
    # KNOWLEDGE BASE
    # =========================================================================

    def _scope(self, session_id: str) -> dict[str, Any]:
        if session_id not in self._knowledge_bases:
            self._knowledge_bases[session_id] = {}
        return self._knowledge_bases[session_id]

    def update_knowledge_base(self, insights: list[Insight], session_id: str = SHARED_SCOPE) -> None:
        """
        Store interview insights and refresh the category and trend views.

        Each session keeps its own knowledge base, capped at
        `rag_knowledge_base_max_entries`; the oldest insights go first.
        """
        if not insights:
            return

        self.update_status(AgentStatus.PROCESSING, "Updating knowledge base")
        self.log_activity("Updating knowledge base", insight_count=len(insights), session_id=session_id)

        knowledge_base = self._scope(session_id)
        stamp = int(time.time() * 1000)
        by_category: dict[str, list[dict]] = defaultdict(list)

        for insight in insights:
            record = {**insight.model_dump(mode="json"), "source": "interview"}
            key = f"insight-{insight.type.value}-{insight.category}-{stamp}-{next(self._sequence)}"
            knowledge_base[key] = record
            by_category[insight.category].append(record)

        for category, records in by_category.items():
            existing = knowledge_base.get(f"category-{category}", [])
            knowledge_base[f"category-{category}"] = (existing + records)[-self.max_entries:]

        trend_insights = [i for i in insights if i.type in (InsightType.OPPORTUNITY, InsightType.RISK)]
        if trend_insights:
            knowledge_base["trend-analysis"] = {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "insights": [i.model_dump(mode="json") for i in trend_insights],
                "patterns": self._identify_patterns(trend_insights),
            }

        self._trim(knowledge_base)
        self.update_status(AgentStatus.IDLE)

    def _trim(self, knowledge_base: dict[str, Any]) -> None:
        overflow = len(knowledge_base) - self.max_entries
        if overflow <= 0:
            return
        oldest = [key for key in knowledge_base if key.startswith("insight-")][:overflow]
        for key in oldest:
            del knowledge_base[key]

    def _identify_patterns(self, insights: list[Insight]) -> list[str]:
        patterns = [
            f"Recurring focus on {theme}"
            for theme, count in Counter(i.category for i in insights).items()
            if count > 1
        ]

        high_confidence = [i for i in insights if i.confidence > 0.8]
        if len(high_confidence) > len(insights) * 0.6:
            patterns.append("High confidence in most assessments")

        return patterns

    def search_knowledge_base(self, query: str, session_id: str = SHARED_SCOPE) -> list[dict[str, Any]]:
        """Entries in the session's knowledge base whose key or content mentions the query."""
        query = query.lower()
        return [
            {"key": key, "data": value}
            for key, value in self._knowledge_bases.get(session_id, {}).items()
            if query in key.lower() or query in json.dumps(value, default=str).lower()
        ]

    def get_knowledge_base_stats(self, session_id: str = SHARED_SCOPE) -> dict[str, Any]:
        knowledge_base = self._knowledge_bases.get(session_id, {})
        categories = list(dict.fromkeys(key.split("-")[0] for key in knowledge_base))

        timestamps = [
            datetime.fromisoformat(value["timestamp"].replace("Z", "+00:00"))
            for value in knowledge_base.values()
            if isinstance(value, dict) and value.get("timestamp")
        ]

        return {
            "total_entries": len(knowledge_base),
            "categories": categories,
            "last_updated": max(timestamps).isoformat() if timestamps else None,
        }

    def release_session(self, session_id: str) -> None:
        """Forget everything stored for one session."""
        self._knowledge_bases.pop(session_id, None)

    def clear_knowledge_base(self) -> None:
        self._knowledge_bases.clear()
        self.log_activity("Knowledge base cleared")

    def export_knowledge_base(self, session_id: str = SHARED_SCOPE) -> dict[str, Any]:
        return dict(self._knowledge_bases.get(session_id, {}))
