"""Test fixtures and utilities."""

from datetime import datetime, timezone
from pathlib import Path

import pytest

from conga_sandbox.config_store import ConfigStore

FIXED_NOW = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable clock for token expiry and history timestamps."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    """Clock frozen at FIXED_NOW."""
    return FakeClock()


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    """Location of a fresh config.json."""
    return tmp_path / "data" / "config.json"


@pytest.fixture
def config_store(config_path: Path, clock: FakeClock) -> ConfigStore:
    """Config store with default values."""
    return ConfigStore(config_path, clock=clock)


@pytest.fixture
def initialized_store(config_store: ConfigStore) -> ConfigStore:
    """Config store with complete credentials and no cached token."""
    config_store.update(
        {
            "clientId": "test-client",
            "clientSecret": "test-secret",
            "platformEmail": "owner@example.com",
        }
    )
    return config_store


@pytest.fixture
def sample_package() -> dict:
    """Sample package as returned by the listing endpoint."""
    return {
        "id": "p1",
        "name": "Service Agreement",
        "status": "SENT",
        "roles": [
            {
                "id": "r1",
                "name": "Ada Lovelace",
                "email": "ada@example.com",
            }
        ],
    }


@pytest.fixture
def sample_nested_role_package() -> dict:
    """Package whose role carries the person in a nested signers array."""
    return {
        "id": "p2",
        "name": "NDA",
        "typeAsString": "DRAFT",
        "roles": [
            {
                "uid": "r2",
                "signers": [
                    {"firstName": "Grace", "lastName": "Hopper", "email": "grace@example.com"}
                ],
            }
        ],
    }
