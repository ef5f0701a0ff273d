"""
Shared configuration for social-session.

This module centralizes configuration values to avoid hardcoded values
scattered throughout the codebase.
"""

import os
from typing import Optional

from dotenv import load_dotenv

from ..utils.constants import PROFILE_PICTURE_URL_PREFIX, PROFILE_PICTURE_URL_SUFFIX

# Load environment variables
load_dotenv()

# State directory (key-value store, token, client secrets)
STATE_DIR = os.path.expanduser(
    os.getenv("SOCIAL_SESSION_STATE_DIR", "~/.config/social-session")
)

LOG_LEVEL = os.getenv("SOCIAL_SESSION_LOG_LEVEL", "INFO")


def get_state_dir() -> str:
    """
    Get the state directory path, creating it if necessary.

    Returns:
        Path to the state directory.
    """
    if not os.path.exists(STATE_DIR):
        os.makedirs(STATE_DIR, exist_ok=True)
    return STATE_DIR


def get_store_path() -> str:
    """Path of the persisted key-value store."""
    return os.path.join(get_state_dir(), "session.json")


def get_token_path() -> str:
    """Path of the stored user token."""
    return os.path.join(get_state_dir(), "token.json")


def get_client_secrets_path() -> str:
    """Path of the OAuth client secrets file."""
    return os.path.join(get_state_dir(), "client_secret.json")


def get_backend_route() -> str:
    """Backend route, empty when unset."""
    return os.getenv("SOCIAL_SESSION_BACKEND_ROUTE", "")


def get_backend_instance_id() -> str:
    """Backend instance id, empty when unset."""
    return os.getenv("SOCIAL_SESSION_BACKEND_INSTANCE_ID", "")


def get_info_plist_path() -> Optional[str]:
    """Info.plist to read provider configuration from, if any."""
    return os.getenv("SOCIAL_SESSION_INFO_PLIST") or None


def get_profile_picture_prefix() -> str:
    return os.getenv("SOCIAL_SESSION_PROFILE_PICTURE_PREFIX", PROFILE_PICTURE_URL_PREFIX)


def get_profile_picture_suffix() -> str:
    return os.getenv("SOCIAL_SESSION_PROFILE_PICTURE_SUFFIX", PROFILE_PICTURE_URL_SUFFIX)
