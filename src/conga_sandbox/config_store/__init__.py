"""
Connection configuration store (JSON-based).

Persists region, client credentials, platform email, callback URL and the
cached bearer token with its expiry.
"""

from .json_store import DEFAULT_CONFIG, TOKEN_SAFETY_MARGIN, ConfigStore, credentials_complete

__all__ = [
    "ConfigStore",
    "DEFAULT_CONFIG",
    "TOKEN_SAFETY_MARGIN",
    "credentials_complete",
]
