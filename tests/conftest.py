"""Shared fakes and fixtures for social-session tests."""

import asyncio
import os
import sys
from typing import Any, Optional

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../src"))

from social_session.auth import (  # noqa: E402
    AuthorizationClient,
    AuthorizationResponse,
    BackendClient,
    ProviderConfiguration,
)
from social_session.client import DocumentSyncClient  # noqa: E402
from social_session.session import (  # noqa: E402
    EventBus,
    InMemoryKeyValueStore,
    SessionCoordinator,
)
from social_session.utils.errors import BackendAuthenticationError  # noqa: E402


def make_config(app_id="987654321", display_name="MyApp", url_scheme="fb987654321"):
    """Build an Info.plist-shaped provider configuration."""
    values: dict[str, Any] = {}
    if app_id is not None:
        values["FacebookAppID"] = app_id
    if display_name is not None:
        values["FacebookDisplayName"] = display_name
    if url_scheme is not None:
        values["CFBundleURLTypes"] = [{"CFBundleURLSchemes": [url_scheme]}]
    return ProviderConfiguration.from_mapping(values)


class FakeBackend(BackendClient):
    def __init__(self, route="https://backend.example.com", instance_id="app-guid",
                 authenticated=True, fail_auth=False):
        self._route = route
        self._instance_id = instance_id
        self.authenticated = authenticated
        self.fail_auth = fail_auth
        self.auth_calls = 0

    @property
    def route(self):
        return self._route

    @property
    def instance_id(self):
        return self._instance_id

    def is_authenticated(self):
        return self.authenticated

    async def authenticate(self):
        self.auth_calls += 1
        if self.fail_auth:
            raise BackendAuthenticationError("bad credentials")
        self.authenticated = True


class FakeAuthorization(AuthorizationClient):
    """Returns a canned response; calls listed in block_calls never finish."""

    def __init__(self, identity: Optional[dict] = None, error: Optional[Exception] = None,
                 block_calls=()):
        self.identity = identity
        self.error = error
        self.block_calls = set(block_calls)
        self.calls = 0

    async def request_authorization_header(self):
        self.calls += 1
        if self.calls in self.block_calls:
            await asyncio.Event().wait()
        if self.error is not None:
            raise self.error
        return AuthorizationResponse(header="Bearer token", identity=self.identity)


class FakeSync(DocumentSyncClient):
    """Records every call in order."""

    def __init__(self, existing=(), create_error=None, push_error=None, pull_error=None,
                 exists_error=None):
        self.existing = set(existing)
        self.exists_error = exists_error
        self.create_error = create_error
        self.push_error = push_error
        self.pull_error = pull_error
        self.calls: list[tuple] = []

    async def pull_from_remote(self):
        self.calls.append(("pull",))
        if self.pull_error:
            raise self.pull_error

    async def push_to_remote(self):
        self.calls.append(("push",))
        if self.push_error:
            raise self.push_error

    async def exists(self, doc_id):
        self.calls.append(("exists", doc_id))
        if self.exists_error:
            raise self.exists_error
        return doc_id in self.existing

    async def create_profile_document(self, doc_id, name):
        self.calls.append(("create", doc_id, name))
        if self.create_error:
            raise self.create_error
        self.existing.add(doc_id)


class RecordingBus(EventBus):
    """EventBus that also keeps the list of published events."""

    def __init__(self):
        super().__init__()
        self.published = []
        self.subscribe(self.published.append)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def authorization():
    return FakeAuthorization(identity={"id": "42", "displayName": "Ann"})


@pytest.fixture
def sync():
    return FakeSync()


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def events():
    return RecordingBus()


@pytest.fixture
def coordinator(backend, authorization, sync, store, events):
    return SessionCoordinator(
        backend=backend,
        authorization=authorization,
        sync=sync,
        store=store,
        config=make_config(),
        events=events,
    )
