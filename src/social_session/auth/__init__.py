"""
Authentication collaborators for social-session.

This package provides:
- Social-login provider configuration and its validation
- The authorization client contract and a Google-backed implementation
- The backend client contract and a Google-backed implementation
"""

from .scopes import SCOPES, get_scopes
from .provider_config import ProviderConfiguration, load_provider_configuration
from .authorization_client import (
    AuthorizationClient,
    AuthorizationResponse,
    GoogleAuthorizationClient,
    load_credentials,
)
from .backend_client import BackendClient, GoogleBackendClient

__all__ = [
    # Scopes
    "SCOPES",
    "get_scopes",
    # Provider configuration
    "ProviderConfiguration",
    "load_provider_configuration",
    # Authorization
    "AuthorizationClient",
    "AuthorizationResponse",
    "GoogleAuthorizationClient",
    "load_credentials",
    # Backend
    "BackendClient",
    "GoogleBackendClient",
]
