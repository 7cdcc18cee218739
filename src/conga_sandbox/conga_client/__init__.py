"""
Conga Sign API Client.

Provides:
- Client-credentials authentication with a cached bearer token
- List, create, send and cancel packages (GET/POST/PUT /cs-packages)
- Roles, documents and signature fields
- Signing URLs, notifications, signing status and audit reports

Treats vendor errors as loud failures with typed exceptions.
"""

from .auth import TokenGate, mask_token
from .client import CongaClient
from .exceptions import (
    ApiRequestError,
    AuthenticationError,
    ConfigurationError,
    CongaError,
    NotFoundError,
)

__all__ = [
    "CongaClient",
    "TokenGate",
    "mask_token",
    "CongaError",
    "ConfigurationError",
    "AuthenticationError",
    "ApiRequestError",
    "NotFoundError",
]
