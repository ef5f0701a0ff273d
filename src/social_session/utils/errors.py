"""Custom exceptions for session coordination.

This module provides structured error handling with specific exception types
for each way a login attempt or one of its side flows can fail. All exceptions
inherit from SessionError.
"""
from enum import Enum
from typing import Optional, Any


class FailureKind(str, Enum):
    """Tag identifying why a login attempt failed."""

    BACKEND_MISCONFIGURED = "backend_misconfigured"
    CONFIGURATION_INVALID = "configuration_invalid"
    AUTH_TOKEN_ERROR = "auth_token_error"
    IDENTITY_MISSING = "identity_missing"
    IDENTITY_INCOMPLETE = "identity_incomplete"
    SUPERSEDED = "superseded"
    PERSISTENCE_ERROR = "persistence_error"


class SessionError(Exception):
    """Base exception for all social-session errors.

    Attributes:
        message: Human-readable error description.
        kind: Failure tag reported to login callers, if any.
    """

    kind: Optional[FailureKind] = None

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class BackendMisconfiguredError(SessionError):
    """Raised when the backend client has no route or instance id."""

    kind = FailureKind.BACKEND_MISCONFIGURED


class ConfigurationInvalidError(SessionError):
    """Raised when the social-login provider configuration is missing or a placeholder."""

    kind = FailureKind.CONFIGURATION_INVALID


class AuthTokenError(SessionError):
    """Raised when the token exchange itself reports an error.

    Attributes:
        response_text: Raw response body returned alongside the error, if any.
    """

    kind = FailureKind.AUTH_TOKEN_ERROR

    def __init__(self, message: str, response_text: Optional[str] = None) -> None:
        self.response_text = response_text
        super().__init__(message)


class IdentityMissingError(SessionError):
    """Raised when the exchange succeeds but no identity comes back."""

    kind = FailureKind.IDENTITY_MISSING


class IdentityIncompleteError(SessionError):
    """Raised when the returned identity lacks required fields."""

    kind = FailureKind.IDENTITY_INCOMPLETE

    def __init__(self, missing_fields: list[str]) -> None:
        self.missing_fields = missing_fields
        super().__init__(
            f"Identity is missing required fields: {', '.join(missing_fields)}"
        )


class SupersededError(SessionError):
    """Raised when a newer login attempt cancels an in-flight one."""

    kind = FailureKind.SUPERSEDED

    def __init__(self) -> None:
        super().__init__("Token exchange superseded by a newer login attempt")


class PersistenceError(SessionError):
    """Raised when the signed-in user cannot be written to the key-value store."""

    kind = FailureKind.PERSISTENCE_ERROR


class BackendAuthenticationError(SessionError):
    """Raised when the backend client fails to authenticate."""
    pass


class SyncError(SessionError):
    """Base exception for document-sync failures.

    Attributes:
        doc_id: Optional document ID related to the error.
    """

    def __init__(self, message: str, doc_id: Optional[str] = None) -> None:
        self.doc_id = doc_id
        super().__init__(message)

    def __str__(self) -> str:
        if self.doc_id:
            return f"{self.message} (document: {self.doc_id})"
        return self.message


class ProfileCreateError(SyncError):
    """Raised when a local profile document cannot be created."""
    pass


class ProfilePushError(SyncError):
    """Raised when local documents cannot be pushed to the remote store."""
    pass


class RemotePullError(SyncError):
    """Raised when remote documents cannot be pulled."""
    pass


class SyncAuthenticationError(SyncError):
    """Raised when the remote store rejects our credentials."""
    pass


class SyncPermissionError(SyncError):
    """Raised when access to the remote store is denied."""
    pass


class SyncQuotaError(SyncError):
    """Raised when the remote store's rate limit or quota is exceeded."""
    pass


def handle_http_error(error: Any, doc_id: Optional[str] = None) -> SyncError:
    """Convert googleapiclient HttpError to a specific sync exception.

    Args:
        error: The HttpError from googleapiclient.
        doc_id: Optional document ID for context.

    Returns:
        An appropriate SyncError subclass.
    """
    try:
        status = error.resp.status
    except AttributeError:
        return SyncError(f"Remote store error: {str(error)}", doc_id)

    if status == 401:
        return SyncAuthenticationError(
            "Remote store rejected credentials. Re-authenticate the backend client.",
            doc_id,
        )
    elif status == 403:
        return SyncPermissionError(
            "Access to the remote store was denied.",
            doc_id,
        )
    elif status == 429:
        return SyncQuotaError(
            "Remote store quota exceeded. Please wait a moment and try again.",
            doc_id,
        )
    else:
        return SyncError(f"Remote store error (HTTP {status}): {str(error)}", doc_id)


def format_error(action: str, error: Exception) -> str:
    """Format an error message consistently.

    Args:
        action: The action that failed (e.g., "Login", "Logout").
        error: The exception that occurred.

    Returns:
        Formatted error string.
    """
    if isinstance(error, SessionError):
        return f"{action} failed: {error.message}"
    return f"{action} failed: {str(error)}"
