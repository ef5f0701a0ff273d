"""MCP Server initialization and coordinator wiring."""

from fastmcp import FastMCP
from typing import Optional

from ..auth import (
    GoogleAuthorizationClient,
    GoogleBackendClient,
    load_credentials,
    load_provider_configuration,
)
from ..client import DriveProfileSyncClient
from ..core import config
from ..core.context import get_current_coordinator
from ..session import JsonFileKeyValueStore, SessionCoordinator

# Initialize MCP Server
mcp = FastMCP("Social Session")

# Default coordinator, built lazily when no context binding exists
_coordinator: Optional[SessionCoordinator] = None


def build_default_coordinator() -> SessionCoordinator:
    """Wire a coordinator from environment settings and stored credentials.

    Raises:
        FileNotFoundError: If a login is needed and no client secrets exist.
    """
    credentials = load_credentials(
        config.get_token_path(), config.get_client_secrets_path()
    )
    return SessionCoordinator(
        backend=GoogleBackendClient(
            config.get_backend_route(),
            config.get_backend_instance_id(),
            credentials,
        ),
        authorization=GoogleAuthorizationClient(credentials),
        sync=DriveProfileSyncClient(credentials=credentials),
        store=JsonFileKeyValueStore(config.get_store_path()),
        config=load_provider_configuration(config.get_info_plist_path()),
        picture_url_prefix=config.get_profile_picture_prefix(),
        picture_url_suffix=config.get_profile_picture_suffix(),
    )


def get_coordinator() -> SessionCoordinator:
    """Get the coordinator bound to this context, or the default one.

    Returns:
        The session coordinator.

    Raises:
        Exception: If the default coordinator cannot be built.
    """
    global _coordinator
    bound = get_current_coordinator()
    if bound is not None:
        return bound
    if _coordinator is None:
        _coordinator = build_default_coordinator()
    return _coordinator
