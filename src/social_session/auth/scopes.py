"""
Google OAuth Scopes for social-session.

This module defines the OAuth scopes the login flow requests: identity for
the session, and the app data folder for profile documents.
"""

from typing import List

# Base OAuth scopes required for user identification
USERINFO_PROFILE_SCOPE = "https://www.googleapis.com/auth/userinfo.profile"
OPENID_SCOPE = "openid"

BASE_SCOPES = [USERINFO_PROFILE_SCOPE, OPENID_SCOPE]

# Hidden per-app folder holding profile documents
DRIVE_APPDATA_SCOPE = "https://www.googleapis.com/auth/drive.appdata"

SCOPES = [DRIVE_APPDATA_SCOPE] + BASE_SCOPES


def get_scopes() -> List[str]:
    """
    Get the list of OAuth scopes required for social-session.

    Returns:
        List of unique OAuth scopes, in declaration order.
    """
    return list(dict.fromkeys(SCOPES))
