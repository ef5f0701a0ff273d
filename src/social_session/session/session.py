"""In-memory record of the current user's authentication state."""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional


@dataclass
class Session:
    """Container for session-related information.

    ``is_logged_in`` is only set together with ``user_id`` and
    ``user_display_name``. ``app_id`` and ``app_display_name`` are only set
    after the provider configuration passed validation.
    """

    user_id: Optional[str] = None
    user_display_name: Optional[str] = None
    is_logged_in: bool = False
    app_id: Optional[str] = None
    app_display_name: Optional[str] = None

    def sign_in(self, user_id: str, user_display_name: str) -> None:
        """Record a completed token exchange."""
        self.user_id = user_id
        self.user_display_name = user_display_name
        self.is_logged_in = True

    def restore(self, user_id: str, user_display_name: str) -> None:
        """Load a previously persisted user without changing is_logged_in."""
        self.user_id = user_id
        self.user_display_name = user_display_name

    def clear_user(self) -> None:
        """Forget the user; cached app configuration is kept."""
        self.user_id = None
        self.user_display_name = None
        self.is_logged_in = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
