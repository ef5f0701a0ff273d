"""Social Session - login and session coordination package.

This package coordinates a social-login provider, a mobile-backend client and
a document-sync client, persists minimal session state, and publishes outcome
events to the rest of the app.
"""
from .session import SessionCoordinator, Session, SessionEvent, EventBus

__version__ = "0.1.0"
__all__ = ["SessionCoordinator", "Session", "SessionEvent", "EventBus"]
