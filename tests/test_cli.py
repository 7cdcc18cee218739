"""Tests for CLI commands.

These tests verify that all CLI commands are properly registered and that
the local-only commands run end to end against a temporary data directory.
"""

import json
from pathlib import Path

import pytest
import responses

from conga_sandbox.runner.main import create_cli, main

AUTH_URL = "https://login-rlspreview.congacloud.com/api/v1/auth/connect/token"
API_URL = "https://coreapps-rlspreview.congacloud.com/api/sign/v1"


@pytest.fixture
def settings_path(tmp_path: Path, monkeypatch) -> Path:
    """Settings file pointing the data directory into tmp_path."""
    for name in (
        "CONGA_SANDBOX_DATA_DIR",
        "CONGA_SANDBOX_CONFIG_FILE",
        "CONGA_SANDBOX_TRANSACTIONS_FILE",
        "CONGA_SANDBOX_TIMEOUT",
        "CONGA_SANDBOX_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)

    path = tmp_path / "sandbox.yaml"
    path.write_text(f"data_dir: {tmp_path / 'data'}\n")
    return path


def run(settings_path: Path, *args: str) -> int:
    return main(["-c", str(settings_path), *args])


def configure(settings_path: Path) -> None:
    assert (
        run(
            settings_path,
            "config",
            "set",
            "--client-id",
            "cli-client",
            "--client-secret",
            "cli-secret",
            "--platform-email",
            "owner@example.com",
        )
        == 0
    )


class TestCLICommandRegistry:
    """Tests for CLI command registration."""

    def test_all_commands_registered(self):
        """Verify all expected top-level commands are registered."""
        parser = create_cli()

        for command in ("init", "config", "auth", "transactions", "reset"):
            args = parser.parse_args([command])
            assert args.command == command

    def test_transactions_list_options(self):
        parser = create_cli()

        args = parser.parse_args(
            ["transactions", "list", "--refresh", "--from", "5", "--to", "10"]
        )

        assert args.refresh is True
        assert args.from_ == 5
        assert args.to == 10
        assert args.owner_email is None

    def test_add_field_defaults(self):
        parser = create_cli()

        args = parser.parse_args(["transactions", "add-field", "p1", "d1", "r1"])

        assert (args.page, args.top, args.left, args.width, args.height) == (0, 100, 100, 200, 50)

    def test_config_set_rejects_unknown_region(self):
        parser = create_cli()

        with pytest.raises(SystemExit):
            parser.parse_args(["config", "set", "--region", "mars"])

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out


class TestCLICommands:
    """End-to-end runs against temporary settings."""

    def test_init_writes_settings(self, tmp_path: Path):
        path = tmp_path / "new.yaml"

        assert main(["-c", str(path), "init"]) == 0
        assert path.exists()
        assert main(["-c", str(path), "init"]) == 1

    def test_config_set_and_show(self, settings_path: Path, tmp_path: Path, capsys):
        configure(settings_path)

        assert run(settings_path, "config", "show") == 0

        out = capsys.readouterr().out
        assert "cli-client" in out
        assert "cli-secret" not in out
        config = json.loads((tmp_path / "data" / "config.json").read_text())
        assert config["initialized"] is True

    def test_sample_data_and_list(self, settings_path: Path, capsys):
        assert run(settings_path, "transactions", "sample-data") == 0
        assert run(settings_path, "transactions", "list") == 0

        out = capsys.readouterr().out
        assert "sample-txn-1" in out
        assert "3 transaction(s)" in out

    def test_show_unknown_without_credentials_fails(self, settings_path: Path):
        assert run(settings_path, "transactions", "show", "nope") == 1

    def test_cancel_unknown_fails(self, settings_path: Path, capsys):
        assert run(settings_path, "transactions", "cancel", "nope") == 1
        assert "Transaction not found: nope" in capsys.readouterr().out

    def test_auth_token_without_credentials_fails(self, settings_path: Path, capsys):
        assert run(settings_path, "auth", "token") == 1
        assert "Missing credentials" in capsys.readouterr().out

    @responses.activate
    def test_auth_token_and_status(self, settings_path: Path, capsys):
        configure(settings_path)
        responses.add(
            responses.POST,
            AUTH_URL,
            json={"access_token": "cli-token-0123456789", "expires_in": 3600},
        )

        assert run(settings_path, "auth", "token") == 0
        assert run(settings_path, "auth", "status") == 0

        out = capsys.readouterr().out
        assert "cli-token-...56789" in out
        assert "Valid:        yes" in out
        assert len(responses.calls) == 1

    @responses.activate
    def test_create_transaction(self, settings_path: Path, tmp_path: Path):
        configure(settings_path)
        responses.add(responses.POST, AUTH_URL, json={"access_token": "cli-token-0123456789"})
        responses.add(responses.POST, f"{API_URL}/cs-packages", json={"id": "pkg-42"})

        assert run(settings_path, "transactions", "create", "Lease") == 0

        stored = json.loads((tmp_path / "data" / "transactions.json").read_text())
        assert stored[0]["id"] == "pkg-42"
        assert stored[0]["status"] == "CREATED"

    def test_reset_clears_everything(self, settings_path: Path, tmp_path: Path):
        configure(settings_path)
        run(settings_path, "transactions", "sample-data")

        assert run(settings_path, "reset") == 0

        data_dir = tmp_path / "data"
        assert json.loads((data_dir / "transactions.json").read_text()) == []
        assert json.loads((data_dir / "config.json").read_text())["clientId"] == ""

    def test_invalid_settings_fail_before_running(
        self, settings_path: Path, tmp_path: Path, capsys
    ):
        settings_path.write_text(f"data_dir: {tmp_path / 'data'}\nlog_level: LOUD\n")

        assert run(settings_path, "transactions", "list") == 1

        output = capsys.readouterr().out
        assert "Invalid settings" in output
        assert "LOUD" in output
        assert not (tmp_path / "data").exists()
