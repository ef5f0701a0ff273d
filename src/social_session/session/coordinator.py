"""
Session Coordinator for social-session.

This module drives the login sequence (config check, token exchange, session
update, remote profile reconciliation) and the app-start decision between
restoring a session, prompting for login, or proceeding without one.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Coroutine, Optional, Set

from ..auth.authorization_client import AuthorizationClient
from ..auth.backend_client import BackendClient
from ..auth.provider_config import ProviderConfiguration
from ..client.base import DocumentSyncClient
from ..utils.constants import (
    USER_ID_KEY,
    USER_NAME_KEY,
    HAS_PRESSED_LATER_KEY,
    IDENTITY_ID_FIELD,
    IDENTITY_DISPLAY_NAME_FIELD,
    PROFILE_PICTURE_URL_PREFIX,
    PROFILE_PICTURE_URL_SUFFIX,
)
from ..utils.errors import (
    AuthTokenError,
    BackendMisconfiguredError,
    ConfigurationInvalidError,
    FailureKind,
    IdentityIncompleteError,
    IdentityMissingError,
    PersistenceError,
    SessionError,
    SupersededError,
)
from .events import EventBus, SessionEvent
from .key_value_store import KeyValueStore
from .session import Session

logger = logging.getLogger(__name__)


class AuthStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class AuthOutcome:
    """Terminal result of a login attempt."""

    status: AuthStatus
    failure: Optional[FailureKind] = None
    detail: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status is AuthStatus.SUCCESS

    @classmethod
    def success(cls) -> "AuthOutcome":
        return cls(AuthStatus.SUCCESS)

    @classmethod
    def from_error(cls, error: SessionError) -> "AuthOutcome":
        return cls(AuthStatus.FAILURE, failure=error.kind, detail=error.message)


class ReconcileResult(str, Enum):
    """What reconcile_remote_profile did."""

    NO_USER = "no_user"
    EXISTS = "exists"
    CREATED = "created"
    CREATE_FAILED = "create_failed"
    PUSH_FAILED = "push_failed"


class LoginCheck(str, Enum):
    """Outcome of the app-start login check."""

    RESTORED = "restored"
    DEFERRED = "deferred"
    PROMPT_LOGIN = "prompt_login"
    BACKEND_AUTH_FAILED = "backend_auth_failed"


AuthCallback = Callable[[AuthOutcome], None]


class SessionCoordinator:
    """
    Coordinates login and session restore over injected collaborators.

    One token exchange is in flight at a time: a new attempt cancels the
    previous one, whose caller gets a SUPERSEDED failure. Profile
    reconciliation and the startup pull run as detached tasks and report only
    through the event bus.
    """

    def __init__(
        self,
        backend: BackendClient,
        authorization: AuthorizationClient,
        sync: DocumentSyncClient,
        store: KeyValueStore,
        config: ProviderConfiguration,
        events: Optional[EventBus] = None,
        session: Optional[Session] = None,
        picture_url_prefix: str = PROFILE_PICTURE_URL_PREFIX,
        picture_url_suffix: str = PROFILE_PICTURE_URL_SUFFIX,
    ) -> None:
        self.backend = backend
        self.authorization = authorization
        self.sync = sync
        self.store = store
        self.config = config
        self.events = events or EventBus()
        self.session = session or Session()
        self.picture_url_prefix = picture_url_prefix
        self.picture_url_suffix = picture_url_suffix

        self._inflight: Optional["asyncio.Task[None]"] = None
        self._background: Set["asyncio.Task[Any]"] = set()

    # ------------------------------------------------------------------
    # Preconditions
    # ------------------------------------------------------------------

    def check_backend_client(self) -> bool:
        """Check that the backend client knows its route and instance id."""
        if not self.backend.route:
            logger.warning("Invalid backend route. Check SOCIAL_SESSION_BACKEND_ROUTE")
            return False
        if not self.backend.instance_id:
            logger.warning(
                "Invalid backend instance id. Check SOCIAL_SESSION_BACKEND_INSTANCE_ID"
            )
            return False
        return True

    def validate_configuration(self) -> bool:
        """
        Validate the social-login provider configuration.

        On success the app id and display name are cached on the session.

        Returns:
            True if configured, False if any value is missing or a placeholder.
        """
        if not self.config.is_configured():
            return False

        self.session.app_id = self.config.app_id
        self.session.app_display_name = self.config.display_name
        logger.info(
            "Provider configured: app id %s, display name %s, URL scheme %s",
            self.config.app_id,
            self.config.display_name,
            self.config.url_scheme,
        )
        return True

    def _check_preconditions(self) -> None:
        if not self.check_backend_client():
            raise BackendMisconfiguredError("Backend route or instance id is missing")
        if not self.validate_configuration():
            raise ConfigurationInvalidError(
                "Social login is not configured. Set the provider app id, "
                "display name and URL scheme to the values registered with the provider"
            )

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    async def authenticate_user(
        self, callback: Optional[AuthCallback] = None
    ) -> AuthOutcome:
        """
        Log the user in.

        Both preconditions are checked before any network call is made.

        Args:
            callback: Optional; called exactly once with the outcome.

        Returns:
            The outcome of the attempt.
        """
        try:
            self._check_preconditions()
        except SessionError as e:
            logger.warning(f"Login refused: {e.message}")
            return self._deliver(AuthOutcome.from_error(e), callback)

        return await self.acquire_token(callback)

    async def acquire_token(
        self, callback: Optional[AuthCallback] = None
    ) -> AuthOutcome:
        """
        Exchange credentials for an identity and sign the user in.

        The user id and name are persisted before the outcome is delivered.
        Profile reconciliation is scheduled before delivery but not awaited.

        Args:
            callback: Optional; called exactly once with the outcome.

        Returns:
            The outcome of the exchange.
        """
        previous = self._inflight
        if previous is not None and not previous.done():
            logger.info("Superseding in-flight token exchange")
            previous.cancel()

        task = asyncio.ensure_future(self._exchange_token())
        self._inflight = task
        try:
            await task
        except asyncio.CancelledError:
            if self._inflight is task:
                raise
            outcome = AuthOutcome.from_error(SupersededError())
        except SessionError as e:
            outcome = AuthOutcome.from_error(e)
        else:
            outcome = AuthOutcome.success()
        finally:
            if self._inflight is task:
                self._inflight = None

        return self._deliver(outcome, callback)

    async def _exchange_token(self) -> None:
        """Run one token exchange; all session writes happen after the last await."""
        try:
            response = await self.authorization.request_authorization_header()
        except AuthTokenError as e:
            self._log_token_error(e, e.response_text)
            raise
        except Exception as e:
            self._log_token_error(e, None)
            raise AuthTokenError(f"Error obtaining authorization header: {e}") from e

        identity = response.identity
        if identity is None:
            logger.error(
                "Valid authorization header, but no user identity. Configure an "
                "identity provider for the backend"
            )
            raise IdentityMissingError("No user identity returned by the backend")

        missing = [
            field
            for field in (IDENTITY_ID_FIELD, IDENTITY_DISPLAY_NAME_FIELD)
            if not isinstance(identity.get(field), str) or not identity.get(field)
        ]
        if missing:
            logger.error(f"Valid authorization header, but identity lacks {missing}")
            raise IdentityIncompleteError(missing)

        user_id = identity[IDENTITY_ID_FIELD]
        user_name = identity[IDENTITY_DISPLAY_NAME_FIELD]
        try:
            self.store.update({USER_ID_KEY: user_id, USER_NAME_KEY: user_name})
        except Exception as e:
            logger.error(f"Persisting user {user_id} failed: {e}")
            raise PersistenceError(f"Could not persist signed-in user: {e}") from e
        self.session.sign_in(user_id, user_name)
        logger.info(f"Got auth token for user {user_name} with id {user_id}")

        self._spawn(self.reconcile_remote_profile(), "reconcile-remote-profile")

    def _log_token_error(self, error: Exception, response_text: Optional[str]) -> None:
        message = (
            "Error obtaining authorization header. "
            f"Check the app bundle identifier and version: {error}"
        )
        if response_text:
            message += f"\n{response_text}"
        logger.error(message)

    def _deliver(
        self, outcome: AuthOutcome, callback: Optional[AuthCallback]
    ) -> AuthOutcome:
        if callback is not None:
            callback(outcome)
        return outcome

    # ------------------------------------------------------------------
    # Remote profile
    # ------------------------------------------------------------------

    async def reconcile_remote_profile(self) -> ReconcileResult:
        """
        Make sure a remote profile document exists for the current user.

        Failures are reported as events only.
        """
        user_id = self.session.user_id
        user_name = self.session.user_display_name
        if not user_id:
            logger.warning("No user id; skipping profile reconciliation")
            return ReconcileResult.NO_USER

        try:
            exists = await self.sync.exists(user_id)
        except Exception as e:
            logger.error(f"Looking up profile document for {user_id} failed: {e}")
            self.events.publish(SessionEvent.PROFILE_CREATE_FAILURE)
            return ReconcileResult.CREATE_FAILED

        if exists:
            logger.debug(f"Profile document for {user_id} already exists")
            return ReconcileResult.EXISTS

        try:
            await self.sync.create_profile_document(user_id, user_name or "")
        except Exception as e:
            logger.error(f"Creating profile document for {user_id} failed: {e}")
            self.events.publish(SessionEvent.PROFILE_CREATE_FAILURE)
            return ReconcileResult.CREATE_FAILED

        try:
            await self.sync.push_to_remote()
        except Exception as e:
            logger.error(f"Pushing profile document for {user_id} failed: {e}")
            self.events.publish(SessionEvent.PROFILE_PUSH_FAILURE)
            return ReconcileResult.PUSH_FAILED

        logger.info(f"Created and pushed profile document for {user_id}")
        return ReconcileResult.CREATED

    async def pull_latest_remote_data(self) -> bool:
        """Pull the latest remote documents; failure is reported as an event."""
        logger.info("Pulling latest remote data...")
        try:
            await self.sync.pull_from_remote()
        except Exception as e:
            logger.error(f"Pulling remote data failed: {e}")
            self.events.publish(SessionEvent.REMOTE_PULL_FAILURE)
            return False
        return True

    # ------------------------------------------------------------------
    # App start
    # ------------------------------------------------------------------

    async def resume_session_or_prompt_login(self) -> LoginCheck:
        """
        Authenticate with the backend if needed, then run the login check.

        Returns:
            What the UI should do next.
        """
        if not self.backend.is_authenticated():
            logger.info("Attempting to authenticate with the backend...")
            try:
                await self.backend.authenticate()
            except Exception as e:
                logger.error(f"Error authenticating with the backend: {e}")
                self.events.publish(SessionEvent.BACKEND_AUTH_ERROR)
                return LoginCheck.BACKEND_AUTH_FAILED
        else:
            logger.debug("Backend already authenticated")

        return self.show_login_if_user_not_authenticated()

    def show_login_if_user_not_authenticated(self) -> LoginCheck:
        """
        Start a background pull and decide whether to prompt for login.

        Must be called from a running event loop.
        """
        self._spawn(self.pull_latest_remote_data(), "pull-latest-remote-data")

        user_id = self.store.get_str(USER_ID_KEY)
        user_name = self.store.get_str(USER_NAME_KEY)
        if user_id and user_name:
            self.session.restore(user_id, user_name)
            logger.info(f"User already logged in. Welcome back, user {user_id}!")
            self.events.publish(SessionEvent.GOT_PAST_LOGIN_CHECK)
            return LoginCheck.RESTORED

        if self.store.get_bool(HAS_PRESSED_LATER_KEY):
            logger.info("User chose to sign in later")
            self.events.publish(SessionEvent.GOT_PAST_LOGIN_CHECK)
            return LoginCheck.DEFERRED

        self.events.publish(SessionEvent.USER_NOT_AUTHENTICATED)
        return LoginCheck.PROMPT_LOGIN

    def defer_login(self) -> None:
        """Remember that the user chose to sign in later."""
        self.store.set(HAS_PRESSED_LATER_KEY, True)
        logger.info("Login deferred")

    def logout(self) -> None:
        """Cancel any in-flight exchange and forget the current user."""
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        self._inflight = None
        self.session.clear_user()
        self.store.delete(USER_ID_KEY, USER_NAME_KEY)
        logger.info("Logged out")

    # ------------------------------------------------------------------
    # Profile picture
    # ------------------------------------------------------------------

    def profile_picture_url(self) -> str:
        """URL of the user's profile picture, or "" when no user is known."""
        user_id = self.session.user_id
        if not user_id:
            return ""
        return f"{self.picture_url_prefix}{user_id}{self.picture_url_suffix}"

    # ------------------------------------------------------------------
    # Detached tasks
    # ------------------------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> "asyncio.Task[Any]":
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._background.add(task)
        task.add_done_callback(self._on_background_done)
        return task

    def _on_background_done(self, task: "asyncio.Task[Any]") -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                f"Background task {task.get_name()} failed: {error}",
                exc_info=error,
            )

    async def wait_for_background(self) -> None:
        """Wait until every detached task scheduled so far has finished."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
