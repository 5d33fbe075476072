"""Core utilities and configuration for Audio Story.

This module contains:
- Configuration and settings management
- JWT helpers for authenticating story owners
"""
from .config import Settings, get_settings
from .security import create_access_token, decode_access_token

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Security - JWT
    "create_access_token",
    "decode_access_token",
]
