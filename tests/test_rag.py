"""
Tests for the RAG agent: backend retrieval, mock fallback, context injection
and the knowledge base.
"""

import httpx

from liora.agents import RAGAgent
from liora.data.mock_data import build_mock_founder_data, build_mock_public_data
from liora.models.evaluation import Insight, InsightType
from liora.models.founder import RetrievedData


def _agent(handler) -> RAGAgent:
    client = httpx.AsyncClient(base_url="https://rag.test", transport=httpx.MockTransport(handler))
    return RAGAgent(endpoint="", client=client)


def _retrieved(company_name: str = "Acme") -> RetrievedData:
    return RetrievedData(
        founder_data=build_mock_founder_data("f-1", company_name=company_name),
        public_data=build_mock_public_data(company_name, "B2B SaaS"),
    )


async def test_mock_data_used_without_backend():
    agent = RAGAgent(endpoint="")

    data = await agent.retrieve_founder_data("f-1", company_name="Acme", sector="Fintech")

    assert agent.backend_enabled is False
    assert data.company.name == "Acme"
    assert data.company.sector == "Fintech"
    assert data.profile.name == "Sarah Chen"
    assert "founder-f-1" in agent.export_knowledge_base()


async def test_founder_data_from_backend():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        payload = build_mock_founder_data("f-9", founder_name="Dana Reyes").model_dump(mode="json")
        return httpx.Response(200, json=payload)

    agent = _agent(handler)
    data = await agent.retrieve_founder_data("f-9")
    await agent.close()

    assert data.profile.name == "Dana Reyes"
    assert requests[0].url.path == "/founders/f-9"


async def test_backend_failure_falls_back_to_mock():
    agent = _agent(lambda request: httpx.Response(503))

    data = await agent.retrieve_founder_data("f-1", company_name="Acme")

    assert data.profile.name == "Sarah Chen"
    assert data.company.name == "Acme"


async def test_invalid_backend_payload_falls_back_to_mock():
    agent = _agent(lambda request: httpx.Response(200, json={"unexpected": True}))

    data = await agent.retrieve_public_data("Acme", "B2B SaaS")

    assert data.market_data.size == "$50B"


async def test_public_data_query_parameters():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        return httpx.Response(200, json=build_mock_public_data("Acme", "Fintech").model_dump(mode="json"))

    agent = _agent(handler)
    data = await agent.retrieve_public_data("Acme", "Fintech")

    assert seen == {"company": "Acme", "sector": "Fintech"}
    assert len(data.competitors) == 4


def test_inject_market_and_sector_context():
    question = "What's your total addressable market and how did you calculate it?"

    result = RAGAgent(endpoint="").inject_context(question, _retrieved())

    assert "$50B market that's growing at 15% YoY" in result.enhanced_question
    assert "Given that you're in the B2B SaaS space," in result.enhanced_question
    assert result.context_used == ["public_data", "founder_data"]
    assert result.relevance_score == 0.9


def test_hyphenated_market_is_left_alone():
    result = RAGAgent(endpoint="").inject_context("Walk me through your go-to-market strategy.", _retrieved())

    assert "go-to-market strategy" in result.enhanced_question
    assert "market that's growing" not in result.enhanced_question


def test_your_company_is_replaced_with_name():
    result = RAGAgent(endpoint="").inject_context("What does your company sell?", _retrieved("Acme"))

    assert result.enhanced_question.startswith("What does Acme sell?")


def test_competitor_and_revenue_context():
    agent = RAGAgent(endpoint="")
    retrieved = RetrievedData(public_data=build_mock_public_data("Acme", "B2B SaaS"))

    competitors = agent.inject_context("Who is your main competitor?", retrieved)
    revenue = agent.inject_context("How fast is revenue growing?", retrieved)

    assert "Zendesk and Intercom" in competitors.enhanced_question
    assert "200% YoY for Series A companies" in revenue.enhanced_question
    assert competitors.relevance_score == 0.7


def test_knowledge_base_tracks_categories_and_trends():
    agent = RAGAgent(endpoint="")
    risks = [
        Insight(type=InsightType.RISK, category="financial", description="No revenue", confidence=0.9),
        Insight(type=InsightType.RISK, category="financial", description="High burn", confidence=0.9),
    ]

    agent.update_knowledge_base(risks)

    knowledge = agent.export_knowledge_base()
    assert len(knowledge["category-financial"]) == 2
    assert knowledge["trend-analysis"]["patterns"] == [
        "Recurring focus on financial",
        "High confidence in most assessments",
    ]
    assert agent.search_knowledge_base("high burn")
    assert agent.get_knowledge_base_stats()["categories"] == ["insight", "category", "trend"]


def test_empty_insights_leave_knowledge_base_untouched():
    agent = RAGAgent(endpoint="")

    agent.update_knowledge_base([])

    assert agent.get_knowledge_base_stats()["total_entries"] == 0


async def test_clear_knowledge_base():
    agent = RAGAgent(endpoint="")
    await agent.retrieve_public_data("Acme", "B2B SaaS")

    agent.clear_knowledge_base()

    assert agent.export_knowledge_base() == {}


def test_knowledge_base_is_scoped_per_session():
    agent = RAGAgent(endpoint="")
    risk = Insight(type=InsightType.RISK, category="financial", description="High burn", confidence=0.9)

    agent.update_knowledge_base([risk], session_id="s1")

    assert agent.search_knowledge_base("high burn", session_id="s1")
    assert agent.search_knowledge_base("high burn", session_id="s2") == []
    assert agent.get_knowledge_base_stats("s2")["total_entries"] == 0

    agent.release_session("s1")

    assert agent.export_knowledge_base("s1") == {}


def test_knowledge_base_drops_oldest_insights_past_cap():
    agent = RAGAgent(endpoint="")
    agent.max_entries = 10

    for i in range(200):
        agent.update_knowledge_base(
            [Insight(type=InsightType.STRENGTH, category="team", description=f"Insight {i}")],
            session_id="s1",
        )

    knowledge = agent.export_knowledge_base("s1")
    assert len(knowledge) == 10
    assert len(knowledge["category-team"]) == 10
    assert knowledge["category-team"][-1]["description"] == "Insight 199"
    kept = [value["description"] for key, value in knowledge.items() if key.startswith("insight-")]
    assert kept == [f"Insight {i}" for i in range(191, 200)]
