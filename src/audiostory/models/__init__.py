"""Database models for Audio Story.

All models use async SQLAlchemy; asyncpg for PostgreSQL in production.
"""

from .database import Base, close_db, create_tables, get_engine, get_session_factory, init_db
from .story import AudioStory, Complexity, StoryStatus

__all__ = [
    # Database
    "Base",
    "init_db",
    "get_engine",
    "get_session_factory",
    "create_tables",
    "close_db",
    # Story models
    "AudioStory",
    "Complexity",
    "StoryStatus",
]
