"""
Core utilities package for social-session.

This package provides shared configuration and context management.
"""

from .config import (
    STATE_DIR,
    get_state_dir,
    get_store_path,
    get_token_path,
    get_client_secrets_path,
    get_backend_route,
    get_backend_instance_id,
    get_info_plist_path,
)
from .context import (
    get_current_coordinator,
    set_current_coordinator,
    reset_current_coordinator,
)

__all__ = [
    # Config
    "STATE_DIR",
    "get_state_dir",
    "get_store_path",
    "get_token_path",
    "get_client_secrets_path",
    "get_backend_route",
    "get_backend_instance_id",
    "get_info_plist_path",
    # Context
    "get_current_coordinator",
    "set_current_coordinator",
    "reset_current_coordinator",
]
