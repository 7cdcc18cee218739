"""
JSON-file backed connection configuration.

The configuration is a single record with camelCase keys, written verbatim
to disk:

    region, clientId, clientSecret, platformEmail, callbackUrl,
    accessToken, tokenExpiry, initialized

Key invariants:
- Changing clientId or clientSecret drops the cached token and its expiry.
- initialized is recomputed on every update from the three credential fields.
- A token without an expiry is never considered valid.
- I/O and parse failures are logged and reported, never raised.
"""

import json
import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from ..config import DEFAULT_REGION, RegionUrls, resolve_region
from ..schemas.timestamps import format_timestamp, parse_timestamp, utc_now

logger = logging.getLogger(__name__)

# Tokens are treated as expired this long before the vendor's expiry
TOKEN_SAFETY_MARGIN = timedelta(minutes=5)

CREDENTIAL_FIELDS = ("clientId", "clientSecret", "platformEmail")

# Fields whose change invalidates a cached token
TOKEN_BOUND_FIELDS = ("clientId", "clientSecret")

DEFAULT_CONFIG: dict[str, Any] = {
    "region": DEFAULT_REGION,
    "clientId": "",
    "clientSecret": "",
    "platformEmail": "",
    "callbackUrl": "",
    "accessToken": None,
    "tokenExpiry": None,
    "initialized": False,
}


def credentials_complete(record: dict) -> bool:
    """Check that clientId, clientSecret and platformEmail are non-empty strings."""
    return all(isinstance(record.get(key), str) and record.get(key) for key in CREDENTIAL_FIELDS)


class ConfigStore:
    """
    Durable single-record connection configuration.

    Usage:
        store = ConfigStore(Path("data/config.json"))
        store.update({"clientId": "abc", "clientSecret": "s3cr3t"})
        if store.is_token_valid():
            ...
    """

    def __init__(
        self,
        config_path: Path,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize the store and load the record from disk.

        Args:
            config_path: Location of the JSON document
            clock: Returns the current aware UTC datetime
        """
        self.config_path = Path(config_path)
        self.clock = clock
        self.config: dict[str, Any] = dict(DEFAULT_CONFIG)
        self.load()

    def load(self) -> dict[str, Any]:
        """
        Load the record from disk.

        A missing file is created with the default record. A present file is
        returned as parsed, without filling in missing keys. Any failure falls
        back to the default record in memory.
        """
        try:
            if self.config_path.exists():
                with open(self.config_path, encoding="utf-8") as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    raise ValueError(
                        f"expected a JSON object, got {type(data).__name__}"
                    )
                self.config = data
            else:
                logger.info("No configuration at %s, writing defaults", self.config_path)
                self._write(dict(DEFAULT_CONFIG))
                self.config = dict(DEFAULT_CONFIG)
        except (OSError, ValueError):
            logger.exception("Error loading configuration from %s", self.config_path)
            self.config = dict(DEFAULT_CONFIG)

        return dict(self.config)

    def _write(self, record: dict[str, Any]) -> None:
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w", encoding="utf-8") as f:
            json.dump(record, f, indent=2)

    def _save(self, record: dict[str, Any]) -> bool:
        """Persist the full record and make it current. Returns success."""
        try:
            self._write(record)
        except (OSError, TypeError, ValueError):
            logger.exception("Error saving configuration to %s", self.config_path)
            return False

        self.config = record
        return True

    def get(self, include_secret: bool = False) -> dict[str, Any]:
        """
        Return a shallow copy of the current record.

        Args:
            include_secret: When False the clientSecret key is omitted entirely
        """
        record = dict(self.config)
        if not include_secret:
            record.pop("clientSecret", None)
        return record

    def update(self, partial: dict[str, Any]) -> bool:
        """
        Merge partial values over the current record and persist it.

        Returns:
            False if a credential field is not a string or persistence failed
        """
        for key in CREDENTIAL_FIELDS:
            if key in partial and not isinstance(partial[key], str):
                logger.error(
                    "Rejected configuration update: %s must be a string, got %s",
                    key,
                    type(partial[key]).__name__,
                )
                return False

        updated = {**self.config, **partial}

        if any(
            key in partial and partial[key] != self.config.get(key)
            for key in TOKEN_BOUND_FIELDS
        ):
            logger.info("Credentials changed, clearing cached token")
            updated["accessToken"] = None
            updated["tokenExpiry"] = None

        updated["initialized"] = credentials_complete(updated)
        return self._save(updated)

    def update_token(self, token: str, expires_in_seconds: float) -> bool:
        """
        Store a freshly issued token.

        The stored expiry is the vendor's expiry minus TOKEN_SAFETY_MARGIN.
        """
        expiry = self.clock() + timedelta(seconds=expires_in_seconds) - TOKEN_SAFETY_MARGIN
        updated = {
            **self.config,
            "accessToken": token,
            "tokenExpiry": format_timestamp(expiry),
        }
        return self._save(updated)

    def revoke_token(self) -> bool:
        """Drop the cached token and its expiry."""
        return self._save({**self.config, "accessToken": None, "tokenExpiry": None})

    def is_initialized(self) -> bool:
        """Check whether all credentials needed for authentication are present."""
        return credentials_complete(self.config)

    def is_token_valid(self) -> bool:
        """Check that a token is cached and its expiry lies strictly in the future."""
        if not self.config.get("accessToken"):
            return False

        raw_expiry = self.config.get("tokenExpiry")
        if not raw_expiry:
            return False

        expiry = parse_timestamp(raw_expiry)
        if expiry is None:
            logger.warning("Ignoring unparseable token expiry: %r", raw_expiry)
            return False

        return self.clock() < expiry

    def resolve_urls(self) -> RegionUrls:
        """URL triple for the configured region (unknown regions use the default)."""
        return resolve_region(self.config.get("region"))

    def reset(self, keep_region: bool = True) -> bool:
        """
        Restore the default record.

        Args:
            keep_region: Preserve the currently configured region
        """
        record = dict(DEFAULT_CONFIG)
        if keep_region and self.config.get("region"):
            record["region"] = self.config["region"]
        return self._save(record)
