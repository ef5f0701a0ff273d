"""
Context variables for social-session.

This module provides a context-scoped slot for the active session coordinator,
so callers can hand one coordinator down explicitly instead of sharing a
process-wide instance.
"""

import contextvars
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..session.coordinator import SessionCoordinator

# Context variable to hold the current coordinator
_coordinator: contextvars.ContextVar[Optional["SessionCoordinator"]] = (
    contextvars.ContextVar("session_coordinator", default=None)
)


def get_current_coordinator() -> Optional["SessionCoordinator"]:
    """
    Get the coordinator bound to the current context.

    Returns:
        The current coordinator or None if not set.
    """
    return _coordinator.get()


def set_current_coordinator(
    coordinator: Optional["SessionCoordinator"],
) -> contextvars.Token:
    """
    Bind a coordinator to the current context.

    Args:
        coordinator: The coordinator to bind, or None to clear.

    Returns:
        A token that can be passed to reset_current_coordinator.
    """
    return _coordinator.set(coordinator)


def reset_current_coordinator(token: contextvars.Token) -> None:
    """Restore the binding that was active before set_current_coordinator."""
    _coordinator.reset(token)
