"""Session MCP tools for social-session."""

import logging

from .main import mcp, get_coordinator
from ..session import LoginCheck
from ..utils.errors import format_error

logger = logging.getLogger(__name__)

_LOGIN_CHECK_MESSAGES = {
    LoginCheck.RESTORED: "Restored previous session",
    LoginCheck.DEFERRED: "User chose to sign in later; continuing without login",
    LoginCheck.PROMPT_LOGIN: "User is not authenticated; present the login screen",
    LoginCheck.BACKEND_AUTH_FAILED: "Backend authentication failed; retry later",
}


@mcp.tool()
async def authenticate_user() -> str:
    """
    Log the user in with the configured social-login provider.

    Checks the backend and provider configuration first, then exchanges
    credentials for the user's identity and stores it for future launches.

    Returns:
        Success message with the user's name, or the reason login failed.
    """
    try:
        coordinator = get_coordinator()
    except Exception as e:
        logger.error(f"Failed to set up session coordinator: {e}", exc_info=True)
        return format_error("Login", e)

    outcome = await coordinator.authenticate_user()
    if outcome.succeeded:
        session = coordinator.session
        return f"Logged in as {session.user_display_name} (id {session.user_id})"
    return f"Login failed ({outcome.failure.value}): {outcome.detail}"


@mcp.tool()
async def resume_session() -> str:
    """
    Run the app-start login check.

    Authenticates with the backend if needed, starts pulling remote data, and
    restores the previous user if one was stored.

    Returns:
        What the app should do next.
    """
    try:
        coordinator = get_coordinator()
    except Exception as e:
        logger.error(f"Failed to set up session coordinator: {e}", exc_info=True)
        return format_error("Resume session", e)

    check = await coordinator.resume_session_or_prompt_login()
    return f"{check.value}: {_LOGIN_CHECK_MESSAGES[check]}"


@mcp.tool()
def session_status() -> str:
    """
    Show the current session state.

    Returns:
        One line per session field.
    """
    try:
        coordinator = get_coordinator()
    except Exception as e:
        return format_error("Session status", e)

    lines = [f"{key}: {value}" for key, value in coordinator.session.to_dict().items()]
    return "\n".join(lines)


@mcp.tool()
def profile_picture_url() -> str:
    """
    Get the URL of the current user's profile picture.

    Returns:
        The image URL, or a note that no user is logged in.
    """
    try:
        coordinator = get_coordinator()
    except Exception as e:
        return format_error("Profile picture", e)

    url = coordinator.profile_picture_url()
    return url or "No user is logged in"


@mcp.tool()
def defer_login() -> str:
    """
    Skip login for now. The login prompt will not be shown on later starts.
    """
    try:
        get_coordinator().defer_login()
    except Exception as e:
        return format_error("Defer login", e)
    return "Login deferred"


@mcp.tool()
def logout() -> str:
    """
    Log the current user out and forget the stored user id and name.
    """
    try:
        get_coordinator().logout()
    except Exception as e:
        return format_error("Logout", e)
    return "Logged out"
