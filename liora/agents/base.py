"""
Base agent for the multi-agent interview system.

Holds the status bookkeeping every specialised agent shares.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class AgentStatus(str, Enum):
    """What an agent is doing right now."""

    IDLE = "idle"
    THINKING = "thinking"
    PROCESSING = "processing"
    ERROR = "error"


class BaseAgent:
    """Common status tracking, activity logging and error handling."""

    def __init__(self, agent_id: str, agent_type: str):
        self.id = agent_id
        self.agent_type = agent_type
        self.status = AgentStatus.IDLE
        self.last_activity = datetime.now(timezone.utc)
        self.current_task: str | None = None

    def update_status(self, status: AgentStatus, task: str | None = None) -> None:
        """Update agent status and activity timestamp."""
        self.status = status
        self.last_activity = datetime.now(timezone.utc)
        self.current_task = task

    def log_activity(self, activity: str, **data: Any) -> None:
        details = ", ".join(f"{key}={value}" for key, value in data.items())
        logger.info(
            f"[{self.agent_type.upper()}] {activity}"
            + (f" ({details})" if details else "")
        )

    def handle_error(self, error: Exception, context: str | None = None) -> None:
        """Mark the agent failed and log the error."""
        self.update_status(AgentStatus.ERROR)
        where = f" in {context}" if context else ""
        logger.error(f"[{self.agent_type.upper()}] Error{where}: {error}")

    def snapshot(self) -> dict[str, Any]:
        """Status summary for monitoring."""
        return {
            "id": self.id,
            "type": self.agent_type,
            "status": self.status.value,
            "current_task": self.current_task,
            "last_activity": self.last_activity.isoformat(),
        }
