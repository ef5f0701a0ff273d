"""
Session coordination for social-session.

This package provides:
- The Session record and its persisted key-value store
- Typed outcome events and the bus that delivers them
- The SessionCoordinator that drives login and session restore
"""

from .session import Session
from .key_value_store import KeyValueStore, InMemoryKeyValueStore, JsonFileKeyValueStore
from .events import EventBus, SessionEvent
from .coordinator import (
    AuthOutcome,
    AuthStatus,
    LoginCheck,
    ReconcileResult,
    SessionCoordinator,
)

__all__ = [
    # State
    "Session",
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    # Events
    "EventBus",
    "SessionEvent",
    # Coordinator
    "AuthOutcome",
    "AuthStatus",
    "LoginCheck",
    "ReconcileResult",
    "SessionCoordinator",
]
