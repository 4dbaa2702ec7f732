"""
Pytest fixtures for Liora tests. Agents get seeded RNGs and the RAG agent
runs on mock data so interviews are deterministic.
"""

import random

import pytest

from liora.agents import AnalystAgent, InterviewerAgent, MemoryManager, RAGAgent
from liora.core.interview_orchestrator import InterviewOrchestrator
from liora.core.workflow import InterviewWorkflow
from liora.data.mock_data import build_mock_founder_data, build_mock_public_data
from liora.models.founder import RetrievedData
from liora.models.interview import InterviewSession, InterviewSetup, SharedContext


@pytest.fixture
def make_context():
    """Factory for a SharedContext around a fresh session."""

    def _make(company_name: str = "Acme", with_rag: bool = False, **setup) -> SharedContext:
        setup.setdefault("sector", "B2B SaaS")
        session = InterviewSession(setup=InterviewSetup(company_name=company_name, **setup))
        context = SharedContext(session=session)
        if with_rag:
            founder_data = build_mock_founder_data(
                "founder-1", company_name=company_name, sector=setup["sector"]
            )
            context.rag_data = RetrievedData(
                founder_data=founder_data,
                public_data=build_mock_public_data(company_name, setup["sector"]),
                relevance_score=0.8,
            )
            context.founder_profile = founder_data.profile
            context.company_data = founder_data.company
        return context

    return _make


@pytest.fixture
def workflow():
    """Workflow with deterministic agents and no LLM."""
    return InterviewWorkflow(
        interviewer=InterviewerAgent(rng=random.Random(7)),
        analyst=AnalystAgent(),
        memory_manager=MemoryManager(rng=random.Random(7)),
        rag_agent=RAGAgent(endpoint=""),
    )


@pytest.fixture
def orchestrator(workflow):
    return InterviewOrchestrator(workflow=workflow)


@pytest.fixture
def client(orchestrator, monkeypatch):
    """FastAPI TestClient wired to a fresh orchestrator."""
    from fastapi.testclient import TestClient

    import liora.api.dependencies as dependencies
    from main import app

    monkeypatch.setattr(dependencies, "_orchestrator", orchestrator)
    return TestClient(app)
