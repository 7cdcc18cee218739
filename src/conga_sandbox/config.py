"""
Application settings and vendor region table (SSOT).

Two kinds of configuration exist in the sandbox:
- Process settings (this module): where the JSON documents live, request
  timeout and log level. Loaded once from a YAML file with env overrides.
- Connection configuration (config_store): region, credentials and the
  cached bearer token. Persisted as JSON and edited at runtime.

Region URLs are static; no other module should hardcode vendor hosts.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml


class ConfigValidationError(Exception):
    """Raised when settings validation fails."""

    pass


@dataclass(frozen=True)
class RegionUrls:
    """URL triple for one vendor deployment.

    - base_url: host of the signing application
    - auth_url: full client-credentials token endpoint
    - api_url: REST API base that endpoints are appended to
    """

    base_url: str
    auth_url: str
    api_url: str


DEFAULT_REGION = "us"

REGIONS: dict[str, RegionUrls] = {
    "us": RegionUrls(
        base_url="https://coreapps-rlspreview.congacloud.com",
        auth_url="https://login-rlspreview.congacloud.com/api/v1/auth/connect/token",
        api_url="https://coreapps-rlspreview.congacloud.com/api/sign/v1",
    ),
    "eu": RegionUrls(
        base_url="https://coreapps-rlspreview.congacloud.eu",
        auth_url="https://login-rlspreview.congacloud.eu/api/v1/auth/connect/token",
        api_url="https://coreapps-rlspreview.congacloud.eu/api/sign/v1",
    ),
    "au": RegionUrls(
        base_url="https://coreapps-rlspreview.congacloud.com.au",
        auth_url="https://login-rlspreview.congacloud.com.au/api/v1/auth/connect/token",
        api_url="https://coreapps-rlspreview.congacloud.com.au/api/sign/v1",
    ),
}


def resolve_region(region: str | None) -> RegionUrls:
    """Return the URL triple for a region, falling back to the default region."""
    return REGIONS.get((region or "").lower(), REGIONS[DEFAULT_REGION])


@dataclass
class AppSettings:
    """Process-wide sandbox settings.

    config_file and transactions_file default to files inside data_dir.
    request_timeout of None leaves the transport default in place.
    """

    data_dir: Path = field(default_factory=lambda: Path("data"))
    config_file: Path | None = None
    transactions_file: Path | None = None
    request_timeout: float | None = None
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        self.data_dir = Path(self.data_dir)
        if self.config_file is None:
            self.config_file = self.data_dir / "config.json"
        if self.transactions_file is None:
            self.transactions_file = self.data_dir / "transactions.json"
        self.config_file = Path(self.config_file)
        self.transactions_file = Path(self.transactions_file)

    def validate(self) -> list[str]:
        """Validate settings.

        Returns:
            List of validation errors (empty if valid)
        """
        errors: list[str] = []

        if self.request_timeout is not None and self.request_timeout <= 0:
            errors.append("request_timeout must be positive when set")

        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            errors.append(f"log_level '{self.log_level}' is not a logging level")

        if self.config_file == self.transactions_file:
            errors.append("config_file and transactions_file must differ")

        return errors


def load_settings(settings_path: Path) -> AppSettings:
    """
    Load settings from a YAML file.

    Environment variables override file values:
    - CONGA_SANDBOX_DATA_DIR
    - CONGA_SANDBOX_CONFIG_FILE
    - CONGA_SANDBOX_TRANSACTIONS_FILE
    - CONGA_SANDBOX_TIMEOUT (seconds)
    - CONGA_SANDBOX_LOG_LEVEL

    Raises:
        ConfigValidationError: The merged settings fail validate()
    """
    if settings_path.exists():
        with open(settings_path) as f:
            data = yaml.safe_load(f) or {}
    else:
        data = {}

    data_dir = os.environ.get("CONGA_SANDBOX_DATA_DIR", data.get("data_dir", "data"))
    config_file = os.environ.get("CONGA_SANDBOX_CONFIG_FILE", data.get("config_file"))
    transactions_file = os.environ.get(
        "CONGA_SANDBOX_TRANSACTIONS_FILE", data.get("transactions_file")
    )

    request_timeout = data.get("request_timeout")
    timeout_env = os.environ.get("CONGA_SANDBOX_TIMEOUT", "")
    if timeout_env:
        try:
            request_timeout = float(timeout_env)
        except ValueError:
            pass  # Keep file value

    settings = AppSettings(
        data_dir=Path(data_dir),
        config_file=Path(config_file) if config_file else None,
        transactions_file=Path(transactions_file) if transactions_file else None,
        request_timeout=request_timeout,
        log_level=os.environ.get("CONGA_SANDBOX_LOG_LEVEL", data.get("log_level", "INFO")),
    )

    errors = settings.validate()
    if errors:
        raise ConfigValidationError("; ".join(errors))

    return settings


def create_default_settings(settings_path: Path) -> None:
    """Create a default settings file."""
    default_settings = """# Conga Sign developer sandbox settings
#
# Connection settings (region, client id/secret, platform email) are not
# stored here; use `conga-sandbox config set` to edit them.

# Directory holding config.json and transactions.json
data_dir: "data"

# Override individual document locations (default: inside data_dir)
config_file: null
transactions_file: null

# Seconds before an outbound vendor call is abandoned (null = no timeout)
request_timeout: null

# DEBUG, INFO, WARNING, ERROR
log_level: "INFO"
"""

    settings_path.parent.mkdir(parents=True, exist_ok=True)
    with open(settings_path, "w") as f:
        f.write(default_settings)
