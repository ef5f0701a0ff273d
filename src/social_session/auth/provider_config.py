"""
Social-login Provider Configuration for social-session.

This module centralizes the provider settings an app ships with (app id,
display name and URL scheme). They can come from an Info.plist, a plain
mapping or environment variables.
"""

import logging
import os
import plistlib
from typing import Any, Dict, Mapping, Optional

from ..utils.constants import (
    FACEBOOK_APP_ID_KEY,
    FACEBOOK_DISPLAY_NAME_KEY,
    URL_TYPES_KEY,
    URL_SCHEMES_KEY,
    PLACEHOLDER_APP_ID,
    PLACEHOLDER_URL_SCHEME,
    URL_SCHEME_PREFIX,
)

logger = logging.getLogger(__name__)


class ProviderConfiguration:
    """
    Read-only view over the provider keys of an app configuration.

    Missing keys and malformed nesting read as None; nothing here raises.
    """

    def __init__(self, values: Optional[Mapping[str, Any]] = None) -> None:
        self._values: Dict[str, Any] = dict(values or {})

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "ProviderConfiguration":
        return cls(values)

    @classmethod
    def from_plist(cls, path: str) -> "ProviderConfiguration":
        """
        Load configuration from an Info.plist file.

        Args:
            path: Path to the plist.

        Raises:
            IOError: If the file cannot be read.
            plistlib.InvalidFileException: If the file is not a plist.
        """
        with open(path, "rb") as f:
            values = plistlib.load(f)
        logger.info(f"Loaded provider configuration from {path}")
        return cls(values)

    @classmethod
    def from_env(cls) -> "ProviderConfiguration":
        """Build configuration from SOCIAL_SESSION_FACEBOOK_* environment variables."""
        values: Dict[str, Any] = {}
        app_id = os.getenv("SOCIAL_SESSION_FACEBOOK_APP_ID")
        display_name = os.getenv("SOCIAL_SESSION_FACEBOOK_DISPLAY_NAME")
        url_scheme = os.getenv("SOCIAL_SESSION_FACEBOOK_URL_SCHEME")

        if app_id is not None:
            values[FACEBOOK_APP_ID_KEY] = app_id
        if display_name is not None:
            values[FACEBOOK_DISPLAY_NAME_KEY] = display_name
        if url_scheme is not None:
            values[URL_TYPES_KEY] = [{URL_SCHEMES_KEY: [url_scheme]}]
        return cls(values)

    def _get_str(self, key: str) -> Optional[str]:
        value = self._values.get(key)
        return value if isinstance(value, str) else None

    @property
    def app_id(self) -> Optional[str]:
        return self._get_str(FACEBOOK_APP_ID_KEY)

    @property
    def display_name(self) -> Optional[str]:
        return self._get_str(FACEBOOK_DISPLAY_NAME_KEY)

    @property
    def url_scheme(self) -> Optional[str]:
        """First scheme of the first URL type."""
        url_types = self._values.get(URL_TYPES_KEY)
        if not isinstance(url_types, list) or not url_types:
            return None
        first_type = url_types[0]
        if not isinstance(first_type, dict):
            return None
        schemes = first_type.get(URL_SCHEMES_KEY)
        if not isinstance(schemes, list) or not schemes:
            return None
        scheme = schemes[0]
        return scheme if isinstance(scheme, str) else None

    def is_configured(self) -> bool:
        """Check that no value is missing or left at its template placeholder."""
        app_id = self.app_id
        if not app_id or app_id == PLACEHOLDER_APP_ID:
            return False
        if not self.display_name:
            return False

        scheme = self.url_scheme
        if (
            not scheme
            or scheme == PLACEHOLDER_URL_SCHEME
            or not scheme.startswith(URL_SCHEME_PREFIX)
        ):
            return False
        return True

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of the configuration for logs and status output."""
        return {
            "app_id": self.app_id,
            "display_name": self.display_name,
            "url_scheme": self.url_scheme,
            "configured": self.is_configured(),
        }


def load_provider_configuration(plist_path: Optional[str] = None) -> ProviderConfiguration:
    """
    Load provider configuration from a plist if given, otherwise from the environment.

    Args:
        plist_path: Optional Info.plist path.

    Returns:
        The loaded configuration.
    """
    if plist_path:
        return ProviderConfiguration.from_plist(plist_path)
    return ProviderConfiguration.from_env()
