"""
API layer for Liora

Contains FastAPI routers for:
- Interview management
- Investment memos
- Reference metadata
- WebSocket real-time communication
"""

from liora.api.router import api_router

__all__ = ["api_router"]
