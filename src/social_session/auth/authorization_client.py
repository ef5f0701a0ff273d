"""
Authorization client for social-session.

The coordinator only depends on the AuthorizationClient contract: ask for an
authorization header, get back the identity the provider vouches for. The
Google implementation delegates the OAuth handshake, token refresh and
userinfo lookup to google-auth, google-auth-oauthlib and googleapiclient.
"""

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from ..utils.constants import IDENTITY_ID_FIELD, IDENTITY_DISPLAY_NAME_FIELD
from ..utils.errors import AuthTokenError
from .scopes import get_scopes

logger = logging.getLogger(__name__)


@dataclass
class AuthorizationResponse:
    """Result of a successful authorization header request.

    Attributes:
        header: Value for the Authorization header.
        identity: Provider identity, typically {"id": ..., "displayName": ...},
            or None when the backend has no identity provider configured.
        response_text: Raw response body, kept for diagnostics.
    """

    header: Optional[str] = None
    identity: Optional[Dict[str, Any]] = None
    response_text: Optional[str] = None


class AuthorizationClient(ABC):
    """Abstract client that exchanges app credentials for a session token."""

    @abstractmethod
    async def request_authorization_header(self) -> AuthorizationResponse:
        """
        Obtain an authorization header and the identity behind it.

        Raises:
            Exception: Any failure of the exchange itself.
        """
        pass


class GoogleAuthorizationClient(AuthorizationClient):
    """Authorization client backed by Google user credentials."""

    def __init__(self, credentials: Credentials) -> None:
        self.credentials = credentials

    async def request_authorization_header(self) -> AuthorizationResponse:
        return await asyncio.to_thread(self._obtain_authorization)

    def _obtain_authorization(self) -> AuthorizationResponse:
        """Refresh if needed, then build the header and look up the identity."""
        if not self.credentials.valid:
            if not (self.credentials.expired and self.credentials.refresh_token):
                raise AuthTokenError("Credentials invalid and cannot be refreshed")
            logger.info("Credentials expired, attempting refresh")
            try:
                self.credentials.refresh(Request())
            except RefreshError as e:
                raise AuthTokenError(f"Token refresh failed: {e}") from e

        headers: Dict[str, str] = {}
        self.credentials.apply(headers)

        try:
            identity = self._fetch_identity()
        except HttpError as e:
            body = e.content
            raise AuthTokenError(
                f"Error fetching user identity (HTTP {e.resp.status})",
                response_text=body.decode("utf-8", errors="replace")
                if isinstance(body, bytes)
                else None,
            ) from e

        return AuthorizationResponse(
            header=headers.get("authorization"), identity=identity
        )

    def _fetch_identity(self) -> Optional[Dict[str, Any]]:
        """Map the userinfo profile onto the identity payload shape."""
        service = build("oauth2", "v2", credentials=self.credentials, cache_discovery=False)
        user_info = service.userinfo().get().execute()
        if not user_info:
            return None

        identity: Dict[str, Any] = {}
        if user_info.get("id"):
            identity[IDENTITY_ID_FIELD] = user_info["id"]
        if user_info.get("name"):
            identity[IDENTITY_DISPLAY_NAME_FIELD] = user_info["name"]
        logger.info(f"Fetched identity for user id {identity.get(IDENTITY_ID_FIELD)}")
        return identity


def load_credentials(
    token_path: str,
    client_secrets_path: str,
    scopes: Optional[List[str]] = None,
) -> Credentials:
    """
    Load stored user credentials, running the interactive login if needed.

    Args:
        token_path: Where the user's access and refresh tokens are stored.
        client_secrets_path: OAuth client secrets downloaded from Google Cloud Console.
        scopes: OAuth scopes; defaults to get_scopes().

    Returns:
        Valid Credentials object.

    Raises:
        FileNotFoundError: If a login is needed and no client secrets exist.
    """
    if scopes is None:
        scopes = get_scopes()

    creds = None
    # token.json is created automatically when the authorization flow
    # completes for the first time.
    if os.path.exists(token_path):
        creds = Credentials.from_authorized_user_file(token_path, scopes)

    if creds and creds.valid:
        return creds

    if creds and creds.expired and creds.refresh_token:
        try:
            creds.refresh(Request())
        except RefreshError as e:
            logger.warning(f"Error refreshing token: {e}. Re-authenticating.")
            creds = None
    else:
        creds = None

    if not creds:
        if not os.path.exists(client_secrets_path):
            raise FileNotFoundError(
                f"Client secrets file not found at {client_secrets_path}. "
                "Please download it from Google Cloud Console."
            )

        flow = InstalledAppFlow.from_client_secrets_file(client_secrets_path, scopes)
        creds = flow.run_local_server(port=0)

    # Save the credentials for the next run
    with open(token_path, "w") as token:
        token.write(creds.to_json())

    return creds
