"""
Interview agents for Liora

- InterviewerAgent: asks questions as the investor persona
- AnalystAgent: scores founder caliber and investment potential
- MemoryManager: per-session conversation memory
- RAGAgent: founder and market data retrieval
"""

from liora.agents.base import AgentStatus, BaseAgent
from liora.agents.interviewer import InterviewerAgent
from liora.agents.analyst import AnalystAgent
from liora.agents.memory_manager import MemoryManager
from liora.agents.rag import RAGAgent

__all__ = [
    "AgentStatus",
    "BaseAgent",
    "InterviewerAgent",
    "AnalystAgent",
    "MemoryManager",
    "RAGAgent",
]
