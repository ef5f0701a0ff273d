"""Unit tests for SessionCoordinator."""

import asyncio

import pytest

from conftest import FakeAuthorization, FakeBackend, FakeSync, RecordingBus, make_config
from social_session.session import (
    InMemoryKeyValueStore,
    LoginCheck,
    ReconcileResult,
    SessionCoordinator,
    SessionEvent,
)
from social_session.utils.errors import (
    AuthTokenError,
    FailureKind,
    ProfileCreateError,
    ProfilePushError,
    RemotePullError,
)


class FailingStore(InMemoryKeyValueStore):
    def update(self, values):
        raise OSError("disk full")


def build(backend=None, authorization=None, sync=None, store=None, config=None):
    events = RecordingBus()
    coordinator = SessionCoordinator(
        backend=backend or FakeBackend(),
        authorization=authorization or FakeAuthorization(identity={"id": "42", "displayName": "Ann"}),
        sync=sync or FakeSync(),
        store=store or InMemoryKeyValueStore(),
        config=config or make_config(),
        events=events,
    )
    return coordinator, events


class TestValidateConfiguration:
    """Tests for provider configuration validation."""

    @pytest.mark.parametrize(
        "app_id, display_name, url_scheme",
        [
            ("", "MyApp", "fb987654321"),
            (None, "MyApp", "fb987654321"),
            ("123456789", "MyApp", "fb987654321"),
            ("987654321", "", "fb987654321"),
            ("987654321", None, "fb987654321"),
            ("987654321", "MyApp", ""),
            ("987654321", "MyApp", None),
            ("987654321", "MyApp", "fb123456789"),
            ("987654321", "MyApp", "myapp987654321"),
        ],
    )
    def test_invalid_configuration_is_rejected(self, app_id, display_name, url_scheme):
        """Missing or placeholder values fail and leave the cache unset."""
        coordinator, _ = build(config=make_config(app_id, display_name, url_scheme))

        assert coordinator.validate_configuration() is False
        assert coordinator.session.app_id is None
        assert coordinator.session.app_display_name is None

    def test_valid_configuration_is_cached(self):
        """A valid configuration caches exactly the app id and display name."""
        coordinator, _ = build()

        assert coordinator.validate_configuration() is True
        assert coordinator.session.app_id == "987654321"
        assert coordinator.session.app_display_name == "MyApp"

    def test_validation_is_idempotent(self):
        coordinator, _ = build()

        assert coordinator.validate_configuration() is True
        assert coordinator.validate_configuration() is True
        assert coordinator.session.app_id == "987654321"
        assert coordinator.session.app_display_name == "MyApp"


class TestAuthenticateUser:
    """Tests for the login sequence."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("route, instance_id", [("", "app-guid"), ("https://b", "")])
    async def test_backend_misconfigured_skips_token_request(self, route, instance_id):
        """No token request is made when the backend is not configured."""
        authorization = FakeAuthorization(identity={"id": "42", "displayName": "Ann"})
        coordinator, _ = build(
            backend=FakeBackend(route=route, instance_id=instance_id),
            authorization=authorization,
        )

        outcome = await coordinator.authenticate_user()

        assert not outcome.succeeded
        assert outcome.failure is FailureKind.BACKEND_MISCONFIGURED
        assert authorization.calls == 0

    @pytest.mark.asyncio
    async def test_invalid_configuration_skips_token_request(self):
        """No token request is made when the provider is not configured."""
        authorization = FakeAuthorization(identity={"id": "42", "displayName": "Ann"})
        coordinator, _ = build(
            authorization=authorization, config=make_config(app_id="123456789")
        )

        outcome = await coordinator.authenticate_user()

        assert outcome.failure is FailureKind.CONFIGURATION_INVALID
        assert authorization.calls == 0
        assert coordinator.session.app_id is None

    @pytest.mark.asyncio
    async def test_success_updates_session_and_store(self):
        """A complete identity signs the user in and persists id and name."""
        store = InMemoryKeyValueStore()
        coordinator, _ = build(store=store)

        outcome = await coordinator.authenticate_user()

        assert outcome.succeeded
        assert outcome.failure is None
        assert coordinator.session.is_logged_in is True
        assert coordinator.session.user_id == "42"
        assert coordinator.session.user_display_name == "Ann"
        assert store.get("user_id") == "42"
        assert store.get("user_name") == "Ann"
        await coordinator.wait_for_background()

    @pytest.mark.asyncio
    async def test_success_persists_before_callback(self):
        """The store already holds the user when the callback fires."""
        store = InMemoryKeyValueStore()
        coordinator, _ = build(store=store)
        seen = []

        def callback(outcome):
            seen.append((outcome.succeeded, store.get("user_id"), store.get("user_name")))

        await coordinator.authenticate_user(callback)

        assert seen == [(True, "42", "Ann")]
        await coordinator.wait_for_background()

    @pytest.mark.asyncio
    async def test_success_triggers_profile_reconciliation(self):
        sync = FakeSync()
        coordinator, _ = build(sync=sync)

        await coordinator.authenticate_user()
        await coordinator.wait_for_background()

        assert sync.calls == [("exists", "42"), ("create", "42", "Ann"), ("push",)]

    @pytest.mark.asyncio
    async def test_store_failure_is_delivered_as_failure(self):
        """A failed write leaves the session signed out and still reaches the callback."""
        sync = FakeSync()
        coordinator, _ = build(sync=sync, store=FailingStore())
        seen = []

        outcome = await coordinator.authenticate_user(seen.append)
        await coordinator.wait_for_background()

        assert outcome.failure is FailureKind.PERSISTENCE_ERROR
        assert "disk full" in outcome.detail
        assert seen == [outcome]
        assert coordinator.session.is_logged_in is False
        assert coordinator.session.user_id is None
        assert sync.calls == []

    @pytest.mark.asyncio
    async def test_missing_id_fails(self):
        """An identity without an id is IDENTITY_INCOMPLETE."""
        store = InMemoryKeyValueStore()
        coordinator, _ = build(
            authorization=FakeAuthorization(identity={"displayName": "Ann"}), store=store
        )

        outcome = await coordinator.authenticate_user()

        assert not outcome.succeeded
        assert outcome.failure is FailureKind.IDENTITY_INCOMPLETE
        assert "id" in outcome.detail
        assert coordinator.session.is_logged_in is False
        assert store.get("user_id") is None

    @pytest.mark.asyncio
    async def test_missing_display_name_fails(self):
        coordinator, _ = build(authorization=FakeAuthorization(identity={"id": "42"}))

        outcome = await coordinator.authenticate_user()

        assert outcome.failure is FailureKind.IDENTITY_INCOMPLETE
        assert coordinator.session.user_id is None

    @pytest.mark.asyncio
    async def test_absent_identity_fails(self):
        """No identity at all is reported separately from an incomplete one."""
        coordinator, _ = build(authorization=FakeAuthorization(identity=None))

        outcome = await coordinator.authenticate_user()

        assert outcome.failure is FailureKind.IDENTITY_MISSING
        assert coordinator.session.is_logged_in is False

    @pytest.mark.asyncio
    async def test_exchange_error_fails(self):
        coordinator, _ = build(
            authorization=FakeAuthorization(error=ConnectionError("offline"))
        )

        outcome = await coordinator.authenticate_user()

        assert outcome.failure is FailureKind.AUTH_TOKEN_ERROR
        assert "offline" in outcome.detail

    @pytest.mark.asyncio
    async def test_exchange_auth_token_error_kept(self):
        error = AuthTokenError("rejected", response_text="bundle mismatch")
        coordinator, _ = build(authorization=FakeAuthorization(error=error))

        outcome = await coordinator.authenticate_user()

        assert outcome.failure is FailureKind.AUTH_TOKEN_ERROR
        assert outcome.detail == "rejected"

    @pytest.mark.asyncio
    async def test_callback_called_exactly_once_on_failure(self):
        coordinator, _ = build(config=make_config(display_name=""))
        outcomes = []

        result = await coordinator.authenticate_user(outcomes.append)

        assert outcomes == [result]

    @pytest.mark.asyncio
    async def test_newer_attempt_supersedes_in_flight_one(self):
        """Overlapping logins: the first caller gets SUPERSEDED, the second wins."""
        authorization = FakeAuthorization(
            identity={"id": "42", "displayName": "Ann"}, block_calls={1}
        )
        coordinator, _ = build(authorization=authorization)

        first = asyncio.create_task(coordinator.authenticate_user())
        while authorization.calls < 1:
            await asyncio.sleep(0)

        second = await coordinator.authenticate_user()
        first_outcome = await first

        assert second.succeeded
        assert first_outcome.failure is FailureKind.SUPERSEDED
        assert authorization.calls == 2
        assert coordinator.session.user_id == "42"
        await coordinator.wait_for_background()

    @pytest.mark.asyncio
    async def test_caller_cancellation_propagates(self):
        authorization = FakeAuthorization(
            identity={"id": "42", "displayName": "Ann"}, block_calls={1}
        )
        coordinator, _ = build(authorization=authorization)

        attempt = asyncio.create_task(coordinator.authenticate_user())
        while authorization.calls < 1:
            await asyncio.sleep(0)
        attempt.cancel()

        with pytest.raises(asyncio.CancelledError):
            await attempt
        assert coordinator.session.is_logged_in is False


class TestReconcileRemoteProfile:
    """Tests for remote profile reconciliation."""

    @pytest.mark.asyncio
    async def test_creates_then_pushes_when_missing(self):
        sync = FakeSync()
        coordinator, events = build(sync=sync)
        coordinator.session.sign_in("42", "Ann")

        result = await coordinator.reconcile_remote_profile()

        assert result is ReconcileResult.CREATED
        assert sync.calls == [("exists", "42"), ("create", "42", "Ann"), ("push",)]
        assert events.published == []

    @pytest.mark.asyncio
    async def test_existing_document_is_left_alone(self):
        sync = FakeSync(existing={"42"})
        coordinator, events = build(sync=sync)
        coordinator.session.sign_in("42", "Ann")

        result = await coordinator.reconcile_remote_profile()

        assert result is ReconcileResult.EXISTS
        assert sync.calls == [("exists", "42")]

    @pytest.mark.asyncio
    async def test_create_failure_skips_push(self):
        """A failed create emits its event and never pushes."""
        sync = FakeSync(create_error=ProfileCreateError("disk full", "42"))
        coordinator, events = build(sync=sync)
        coordinator.session.sign_in("42", "Ann")

        result = await coordinator.reconcile_remote_profile()

        assert result is ReconcileResult.CREATE_FAILED
        assert ("push",) not in sync.calls
        assert events.published == [SessionEvent.PROFILE_CREATE_FAILURE]

    @pytest.mark.asyncio
    async def test_lookup_failure_emits_create_event(self):
        sync = FakeSync(exists_error=RemotePullError("offline"))
        coordinator, events = build(sync=sync)
        coordinator.session.sign_in("42", "Ann")

        result = await coordinator.reconcile_remote_profile()

        assert result is ReconcileResult.CREATE_FAILED
        assert sync.calls == [("exists", "42")]
        assert events.published == [SessionEvent.PROFILE_CREATE_FAILURE]

    @pytest.mark.asyncio
    async def test_push_failure_emits_event(self):
        sync = FakeSync(push_error=ProfilePushError("offline", "42"))
        coordinator, events = build(sync=sync)
        coordinator.session.sign_in("42", "Ann")

        result = await coordinator.reconcile_remote_profile()

        assert result is ReconcileResult.PUSH_FAILED
        assert events.published == [SessionEvent.PROFILE_PUSH_FAILURE]

    @pytest.mark.asyncio
    async def test_login_stands_when_reconciliation_fails(self):
        sync = FakeSync(push_error=ProfilePushError("offline", "42"))
        coordinator, events = build(sync=sync)

        outcome = await coordinator.authenticate_user()
        await coordinator.wait_for_background()

        assert outcome.succeeded
        assert coordinator.session.is_logged_in is True
        assert events.published == [SessionEvent.PROFILE_PUSH_FAILURE]

    @pytest.mark.asyncio
    async def test_no_user_is_a_no_op(self):
        sync = FakeSync()
        coordinator, _ = build(sync=sync)

        result = await coordinator.reconcile_remote_profile()

        assert result is ReconcileResult.NO_USER
        assert sync.calls == []


class TestResumeSession:
    """Tests for the app-start login check."""

    @pytest.mark.asyncio
    async def test_persisted_user_is_restored(self):
        """Stored id and name restore the session and emit only GotPastLoginCheck."""
        store = InMemoryKeyValueStore({"user_id": "42", "user_name": "Ann"})
        coordinator, events = build(store=store)

        check = await coordinator.resume_session_or_prompt_login()
        await coordinator.wait_for_background()

        assert check is LoginCheck.RESTORED
        assert coordinator.session.user_id == "42"
        assert coordinator.session.user_display_name == "Ann"
        assert events.published == [SessionEvent.GOT_PAST_LOGIN_CHECK]
        assert SessionEvent.USER_NOT_AUTHENTICATED not in events.published

    @pytest.mark.asyncio
    async def test_restore_leaves_logged_in_flag_alone(self):
        store = InMemoryKeyValueStore({"user_id": "42", "user_name": "Ann"})
        coordinator, _ = build(store=store)

        await coordinator.resume_session_or_prompt_login()
        await coordinator.wait_for_background()

        assert coordinator.session.is_logged_in is False

    @pytest.mark.asyncio
    async def test_no_user_prompts_login(self):
        coordinator, events = build()

        check = await coordinator.resume_session_or_prompt_login()
        await coordinator.wait_for_background()

        assert check is LoginCheck.PROMPT_LOGIN
        assert events.published == [SessionEvent.USER_NOT_AUTHENTICATED]

    @pytest.mark.asyncio
    async def test_deferred_login_gets_past_check(self):
        store = InMemoryKeyValueStore({"hasPressedLater": True})
        coordinator, events = build(store=store)

        check = await coordinator.resume_session_or_prompt_login()
        await coordinator.wait_for_background()

        assert check is LoginCheck.DEFERRED
        assert events.published == [SessionEvent.GOT_PAST_LOGIN_CHECK]

    @pytest.mark.asyncio
    async def test_only_user_id_persisted_prompts_login(self):
        store = InMemoryKeyValueStore({"user_id": "42"})
        coordinator, events = build(store=store)

        check = await coordinator.resume_session_or_prompt_login()
        await coordinator.wait_for_background()

        assert check is LoginCheck.PROMPT_LOGIN
        assert coordinator.session.user_id is None

    @pytest.mark.asyncio
    async def test_unauthenticated_backend_authenticates_first(self):
        backend = FakeBackend(authenticated=False)
        sync = FakeSync()
        coordinator, events = build(backend=backend, sync=sync)

        check = await coordinator.resume_session_or_prompt_login()
        await coordinator.wait_for_background()

        assert backend.auth_calls == 1
        assert check is LoginCheck.PROMPT_LOGIN
        assert ("pull",) in sync.calls

    @pytest.mark.asyncio
    async def test_backend_auth_failure_stops(self):
        """A failed backend login emits ObjectStorageAuthError and goes no further."""
        backend = FakeBackend(authenticated=False, fail_auth=True)
        sync = FakeSync()
        store = InMemoryKeyValueStore({"user_id": "42", "user_name": "Ann"})
        coordinator, events = build(backend=backend, sync=sync, store=store)

        check = await coordinator.resume_session_or_prompt_login()
        await coordinator.wait_for_background()

        assert check is LoginCheck.BACKEND_AUTH_FAILED
        assert events.published == [SessionEvent.BACKEND_AUTH_ERROR]
        assert sync.calls == []
        assert coordinator.session.user_id is None

    @pytest.mark.asyncio
    async def test_pull_failure_does_not_block_check(self):
        sync = FakeSync(pull_error=RemotePullError("offline"))
        store = InMemoryKeyValueStore({"user_id": "42", "user_name": "Ann"})
        coordinator, events = build(sync=sync, store=store)

        check = await coordinator.resume_session_or_prompt_login()
        await coordinator.wait_for_background()

        assert check is LoginCheck.RESTORED
        assert events.published == [
            SessionEvent.GOT_PAST_LOGIN_CHECK,
            SessionEvent.REMOTE_PULL_FAILURE,
        ]


class TestSessionHelpers:
    """Tests for profile picture, defer and logout."""

    def test_profile_picture_url(self):
        coordinator, _ = build()
        coordinator.session.sign_in("42", "Ann")

        assert coordinator.profile_picture_url() == (
            "http://graph.facebook.com/42/picture?type=large"
        )

    def test_profile_picture_url_without_user(self):
        coordinator, _ = build()

        assert coordinator.profile_picture_url() == ""

    def test_defer_login_sets_flag(self):
        store = InMemoryKeyValueStore()
        coordinator, _ = build(store=store)

        coordinator.defer_login()

        assert store.get_bool("hasPressedLater") is True

    @pytest.mark.asyncio
    async def test_logout_clears_user(self):
        store = InMemoryKeyValueStore()
        coordinator, _ = build(store=store)
        coordinator.validate_configuration()
        await coordinator.authenticate_user()
        await coordinator.wait_for_background()

        coordinator.logout()

        assert coordinator.session.is_logged_in is False
        assert coordinator.session.user_id is None
        assert coordinator.session.app_id == "987654321"
        assert store.get("user_id") is None
        assert store.get("user_name") is None
        assert coordinator.profile_picture_url() == ""
