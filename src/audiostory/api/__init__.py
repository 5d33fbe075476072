"""Audio Story API.

FastAPI application with the audio story endpoints and health checks.
"""

from .main import create_app

__all__ = ["create_app"]
