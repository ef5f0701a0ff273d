"""Centralized constants for social-session."""

# Persisted key-value store keys
USER_ID_KEY = "user_id"
USER_NAME_KEY = "user_name"
HAS_PRESSED_LATER_KEY = "hasPressedLater"

# Provider configuration keys (Info.plist layout)
FACEBOOK_APP_ID_KEY = "FacebookAppID"
FACEBOOK_DISPLAY_NAME_KEY = "FacebookDisplayName"
URL_TYPES_KEY = "CFBundleURLTypes"
URL_SCHEMES_KEY = "CFBundleURLSchemes"

# Placeholder values shipped in unconfigured templates
PLACEHOLDER_APP_ID = "123456789"
PLACEHOLDER_URL_SCHEME = "fb123456789"
URL_SCHEME_PREFIX = "fb"

# Profile picture URL, user id goes between prefix and suffix
PROFILE_PICTURE_URL_PREFIX = "http://graph.facebook.com/"
PROFILE_PICTURE_URL_SUFFIX = "/picture?type=large"

# Identity payload fields
IDENTITY_ID_FIELD = "id"
IDENTITY_DISPLAY_NAME_FIELD = "displayName"

# Remote profile documents
PROFILE_DOC_PREFIX = "profile-"
PROFILE_DOC_MIME_TYPE = "application/json"
APP_DATA_FOLDER = "appDataFolder"
