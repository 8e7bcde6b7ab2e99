"""
Database package: settings, async engine/session and declarative mappings.
"""
from .config import Settings, get_settings
from .session import get_async_session, get_engine

__all__ = ["Settings", "get_settings", "get_async_session", "get_engine"]
