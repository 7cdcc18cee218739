"""
Client-credentials authentication with token caching.

At most one token request is made per expiry window: while the cached token
is valid, authenticate() answers from the ConfigStore without network I/O.
"""

import logging
import math
from typing import Any

import requests

from ..config_store import ConfigStore
from .exceptions import AuthenticationError, ConfigurationError

logger = logging.getLogger(__name__)


def mask_token(token: str | None) -> str | None:
    """Shorten a token for display: first 10 and last 5 characters."""
    if not token:
        return None
    if len(token) <= 15:
        return "*" * len(token)
    return f"{token[:10]}...{token[-5:]}"


class TokenGate:
    """
    Obtains and caches the bearer token for the configured credentials.

    The token endpoint accepts a form-encoded client-credentials grant and
    answers with a JSON body holding the token and its lifetime.
    """

    DEFAULT_EXPIRES_IN = 3600
    # Longer lifetimes are treated as bogus and replaced by the default
    MAX_EXPIRES_IN = 365 * 24 * 3600
    # Field names the vendor has used for the token in the response body
    TOKEN_FIELDS = ("access_token", "token")

    def __init__(
        self,
        config_store: ConfigStore,
        session: requests.Session | None = None,
        timeout: float | None = None,
    ):
        """
        Initialize the token gate.

        Args:
            config_store: Holds credentials and the cached token
            session: HTTP session (a new one is created if omitted)
            timeout: Request timeout in seconds (None = transport default)
        """
        self.config_store = config_store
        self.session = session or requests.Session()
        self.timeout = timeout

    def authenticate(self) -> str:
        """
        Return a valid bearer token, requesting a new one only when needed.

        Raises:
            ConfigurationError: Credentials are incomplete
            AuthenticationError: The vendor rejected the credentials or sent no token
        """
        if not self.config_store.is_initialized():
            raise ConfigurationError(
                "Missing credentials. Configure Client ID, Client Secret, "
                "and Platform Email first."
            )

        if self.config_store.is_token_valid():
            logger.debug("Using cached access token")
            return self.config_store.get()["accessToken"]

        return self._request_token()

    def _request_token(self) -> str:
        config = self.config_store.get(include_secret=True)
        auth_url = self.config_store.resolve_urls().auth_url

        logger.info("Requesting access token from %s", auth_url)

        try:
            response = self.session.post(
                auth_url,
                data={
                    "grant_type": "client_credentials",
                    "client_id": config.get("clientId", ""),
                    "client_secret": config.get("clientSecret", ""),
                },
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error("Token request to %s failed: %s", auth_url, e)
            raise AuthenticationError(f"Token request failed: {e}") from e

        if not response.ok:
            logger.error("Token endpoint answered %s", response.status_code)
            raise AuthenticationError(
                response.reason or "Credentials rejected",
                status_code=response.status_code,
                response_body=response.text,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise AuthenticationError(
                "Token response was not valid JSON",
                status_code=response.status_code,
                response_body=response.text,
            ) from e

        token = self._extract_token(payload)
        if not token:
            raise AuthenticationError("No token received from authentication service")

        expires_in = self._extract_expires_in(payload)
        if not self.config_store.update_token(token, expires_in):
            logger.warning("Access token could not be persisted; it will be requested again")

        logger.info("Obtained access token %s (expires in %ss)", mask_token(token), expires_in)
        return token

    def _extract_token(self, payload: Any) -> str | None:
        if not isinstance(payload, dict):
            return None
        for field_name in self.TOKEN_FIELDS:
            value = payload.get(field_name)
            if isinstance(value, str) and value:
                return value
        return None

    def _extract_expires_in(self, payload: dict) -> float:
        raw = payload.get("expires_in")
        if raw is None:
            return self.DEFAULT_EXPIRES_IN
        try:
            expires_in = float(raw)
        except (TypeError, ValueError, OverflowError):
            expires_in = math.nan

        if not math.isfinite(expires_in) or not 0 <= expires_in <= self.MAX_EXPIRES_IN:
            logger.warning("Unexpected expires_in value %r, using default", raw)
            return self.DEFAULT_EXPIRES_IN
        return expires_in

    def token_status(self) -> dict[str, Any]:
        """Summarize the cached token for display."""
        config = self.config_store.get()
        return {
            "valid": self.config_store.is_token_valid(),
            "initialized": self.config_store.is_initialized(),
            "expiresAt": config.get("tokenExpiry"),
            "token": mask_token(config.get("accessToken")),
        }
