"""
Backend client for social-session.

The backend client must know where the mobile backend lives (route and
instance id) and must be authenticated before remote data can be pulled.
"""

import asyncio
import logging
from abc import ABC, abstractmethod

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials

from ..utils.errors import BackendAuthenticationError

logger = logging.getLogger(__name__)


class BackendClient(ABC):
    """Abstract mobile-backend client."""

    @property
    @abstractmethod
    def route(self) -> str:
        """Base route of the backend; empty when unconfigured."""
        pass

    @property
    @abstractmethod
    def instance_id(self) -> str:
        """Backend application instance identifier; empty when unconfigured."""
        pass

    @abstractmethod
    def is_authenticated(self) -> bool:
        pass

    @abstractmethod
    async def authenticate(self) -> None:
        """
        Authenticate with the backend.

        Raises:
            BackendAuthenticationError: If authentication fails.
        """
        pass


class GoogleBackendClient(BackendClient):
    """Backend client authenticated with Google credentials."""

    def __init__(self, route: str, instance_id: str, credentials: Credentials) -> None:
        self._route = route
        self._instance_id = instance_id
        self.credentials = credentials

    @property
    def route(self) -> str:
        return self._route

    @property
    def instance_id(self) -> str:
        return self._instance_id

    def is_authenticated(self) -> bool:
        return bool(self.credentials.valid)

    async def authenticate(self) -> None:
        logger.info(f"Authenticating with backend {self._route}")
        try:
            await asyncio.to_thread(self.credentials.refresh, Request())
        except RefreshError as e:
            raise BackendAuthenticationError(
                f"Backend authentication failed: {e}"
            ) from e
        logger.info("Backend authentication succeeded")
