"""API routers for different endpoint groups.

Routers:
- health: Health check and monitoring endpoints
- stories: Audio story generation, polling and management
"""

from .health import router as health_router
from .stories import router as stories_router

__all__ = [
    "health_router",
    "stories_router",
]
