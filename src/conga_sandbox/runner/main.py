"""
CLI main entry point.
"""

import argparse
import json
import logging
import mimetypes
import sys
from dataclasses import dataclass
from pathlib import Path

from ..config import (
    REGIONS,
    AppSettings,
    ConfigValidationError,
    create_default_settings,
    load_settings,
)
from ..config_store import ConfigStore
from ..conga_client import CongaClient, CongaError, TokenGate, mask_token
from ..schemas.transaction import Transaction
from ..services import TransactionMirror
from ..state_store import TransactionStore

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False, log_level: str = "INFO") -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@dataclass
class Services:
    """Everything a command may need, wired from one settings object."""

    settings: AppSettings
    config_store: ConfigStore
    token_gate: TokenGate
    client: CongaClient
    transaction_store: TransactionStore
    mirror: TransactionMirror


def build_services(settings: AppSettings) -> Services:
    """Construct the stores, the API client and the mirror explicitly."""
    config_store = ConfigStore(settings.config_file)
    token_gate = TokenGate(config_store, timeout=settings.request_timeout)
    client = CongaClient(
        config_store,
        token_gate=token_gate,
        session=token_gate.session,
        timeout=settings.request_timeout,
    )
    transaction_store = TransactionStore(settings.transactions_file)
    mirror = TransactionMirror(client, transaction_store)

    return Services(
        settings=settings,
        config_store=config_store,
        token_gate=token_gate,
        client=client,
        transaction_store=transaction_store,
        mirror=mirror,
    )


def create_cli() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="conga-sandbox",
        description="Developer sandbox for the Conga Sign API",
    )

    parser.add_argument(
        "-c",
        "--settings",
        type=Path,
        default=Path("sandbox.yaml"),
        help="Path to settings file (default: sandbox.yaml)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # init command
    init_parser = subparsers.add_parser("init", help="Write a default settings file")
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing settings file",
    )

    # config commands
    config_parser = subparsers.add_parser("config", help="Connection configuration")
    config_sub = config_parser.add_subparsers(dest="config_command", help="Config action")

    show_parser = config_sub.add_parser("show", help="Show the current configuration")
    show_parser.add_argument(
        "--show-secret",
        action="store_true",
        help="Include the client secret in the output",
    )

    set_parser = config_sub.add_parser("set", help="Update configuration values")
    set_parser.add_argument("--region", choices=sorted(REGIONS), help="Vendor region")
    set_parser.add_argument("--client-id", help="OAuth client ID")
    set_parser.add_argument("--client-secret", help="OAuth client secret")
    set_parser.add_argument("--platform-email", help="Account email that owns packages")
    set_parser.add_argument("--callback-url", help="URL for package event callbacks")

    config_reset_parser = config_sub.add_parser("reset", help="Restore default configuration")
    config_reset_parser.add_argument(
        "--reset-region",
        action="store_true",
        help="Also reset the region to the default",
    )

    # auth commands
    auth_parser = subparsers.add_parser("auth", help="Bearer token management")
    auth_sub = auth_parser.add_subparsers(dest="auth_command", help="Auth action")
    auth_sub.add_parser("token", help="Obtain a token (cached while valid)")
    auth_sub.add_parser("status", help="Show cached token status")
    auth_sub.add_parser("revoke", help="Forget the cached token")

    # transactions commands
    txn_parser = subparsers.add_parser("transactions", help="Local transaction mirror")
    txn_sub = txn_parser.add_subparsers(dest="txn_command", help="Transaction action")

    list_parser = txn_sub.add_parser("list", help="List local transactions")
    list_parser.add_argument(
        "--refresh",
        action="store_true",
        help="Pull packages from the API before listing",
    )
    list_parser.add_argument(
        "--from",
        dest="from_",
        type=int,
        default=None,
        help="First package index (default: 1)",
    )
    list_parser.add_argument(
        "--to",
        type=int,
        default=None,
        help="Last package index (default: 100)",
    )
    list_parser.add_argument(
        "--owner-email",
        help="Owner to list packages for (default: platform email)",
    )

    txn_show_parser = txn_sub.add_parser("show", help="Show one transaction")
    txn_show_parser.add_argument("transaction_id", help="Transaction (package) ID")
    txn_show_parser.add_argument(
        "--refresh",
        action="store_true",
        help="Fetch the package from the API first",
    )

    create_parser = txn_sub.add_parser("create", help="Create a new package")
    create_parser.add_argument("name", help="Package name")
    create_parser.add_argument("--description", default="", help="Package description")

    signer_parser = txn_sub.add_parser("add-signer", help="Add a signer to a transaction")
    signer_parser.add_argument("transaction_id", help="Transaction (package) ID")
    signer_parser.add_argument("--first-name", required=True, help="Signer first name")
    signer_parser.add_argument("--last-name", required=True, help="Signer last name")
    signer_parser.add_argument("--email", required=True, help="Signer email")

    document_parser = txn_sub.add_parser("add-document", help="Upload a document")
    document_parser.add_argument("transaction_id", help="Transaction (package) ID")
    document_parser.add_argument("file", type=Path, help="File to upload")
    document_parser.add_argument("--name", help="Document display name")

    field_parser = txn_sub.add_parser("add-field", help="Place a signature field")
    field_parser.add_argument("transaction_id", help="Transaction (package) ID")
    field_parser.add_argument("document_id", help="Document ID")
    field_parser.add_argument("role_id", help="Signer role ID")
    field_parser.add_argument("--page", type=int, default=0, help="Page index (default: 0)")
    field_parser.add_argument("--top", type=int, default=100, help="Top offset (default: 100)")
    field_parser.add_argument("--left", type=int, default=100, help="Left offset (default: 100)")
    field_parser.add_argument("--width", type=int, default=200, help="Width (default: 200)")
    field_parser.add_argument("--height", type=int, default=50, help="Height (default: 50)")

    for action, help_text in (
        ("send", "Send a transaction for signing"),
        ("refresh", "Refresh signing status from the API"),
        ("cancel", "Cancel a transaction"),
        ("audit", "Show the audit report of a package"),
    ):
        action_parser = txn_sub.add_parser(action, help=help_text)
        action_parser.add_argument("transaction_id", help="Transaction (package) ID")

    resend_parser = txn_sub.add_parser("resend", help="Resend the signing invitation")
    resend_parser.add_argument("transaction_id", help="Transaction (package) ID")
    resend_parser.add_argument("email", help="Signer email")
    resend_parser.add_argument("--message", help="Custom notification message")

    url_parser = txn_sub.add_parser("signing-url", help="Get a signer's signing URL")
    url_parser.add_argument("transaction_id", help="Transaction (package) ID")
    url_parser.add_argument("role_id", help="Signer role ID")

    txn_sub.add_parser("reset", help="Delete all local transactions")
    txn_sub.add_parser("sample-data", help="Replace local transactions with demo data")

    # reset command
    reset_parser = subparsers.add_parser(
        "reset", help="Reset configuration and local transactions"
    )
    reset_parser.add_argument(
        "--reset-region",
        action="store_true",
        help="Also reset the region to the default",
    )

    return parser


def print_transaction_line(transaction: Transaction) -> None:
    print(
        f"  📄 [{transaction.id}] {transaction.name} "
        f"({transaction.status}, {len(transaction.signers)} signer(s), "
        f"{len(transaction.documents)} document(s))"
    )


def cmd_init(settings_path: Path, force: bool = False) -> int:
    """Write a default settings file."""
    if settings_path.exists() and not force:
        print(f"⚠️  {settings_path} already exists (use --force to overwrite)")
        return 1

    create_default_settings(settings_path)
    print(f"✓ Wrote default settings to {settings_path}")
    return 0


def cmd_config_show(services: Services, show_secret: bool = False) -> int:
    """Show the current connection configuration."""
    config = services.config_store.get(include_secret=show_secret)
    config["accessToken"] = mask_token(config.get("accessToken"))
    urls = services.config_store.resolve_urls()

    print("\n🔧 Connection Configuration")
    print("=" * 40)
    for key, value in config.items():
        print(f"  {key + ':':<16}{value}")
    print(f"  {'apiUrl:':<16}{urls.api_url}")
    print()
    return 0


def cmd_config_set(services: Services, values: dict) -> int:
    """Update configuration values given on the command line."""
    partial = {key: value for key, value in values.items() if value is not None}
    if not partial:
        print("⚠️  Nothing to update")
        return 1

    if not services.config_store.update(partial):
        print("❌ Failed to save configuration")
        return 1

    print(f"✓ Updated {', '.join(sorted(partial))}")
    if not services.config_store.is_initialized():
        print("  ℹ️  Client ID, client secret and platform email are still incomplete")
    return 0


def cmd_config_reset(services: Services, reset_region: bool = False) -> int:
    """Restore the default connection configuration."""
    if not services.config_store.reset(keep_region=not reset_region):
        print("❌ Failed to reset configuration")
        return 1

    print("✓ Configuration reset")
    return 0


def cmd_auth_token(services: Services) -> int:
    """Obtain a bearer token, reusing the cached one while valid."""
    token = services.token_gate.authenticate()
    expiry = services.config_store.get().get("tokenExpiry")
    print(f"✓ Token {mask_token(token)} (valid until {expiry})")
    return 0


def cmd_auth_status(services: Services) -> int:
    """Show the cached token status."""
    status = services.token_gate.token_status()

    print("\n🔑 Token Status")
    print("=" * 40)
    print(f"  Credentials:  {'complete' if status['initialized'] else 'incomplete'}")
    print(f"  Token:        {status['token'] or '-'}")
    print(f"  Expires at:   {status['expiresAt'] or '-'}")
    print(f"  Valid:        {'yes' if status['valid'] else 'no'}")
    print()
    return 0


def cmd_auth_revoke(services: Services) -> int:
    """Forget the cached token."""
    if not services.config_store.revoke_token():
        print("❌ Failed to save configuration")
        return 1

    print("✓ Cached token removed")
    return 0


def cmd_transactions_list(
    services: Services,
    refresh: bool = False,
    owner_email: str | None = None,
    from_: int | None = None,
    to: int | None = None,
) -> int:
    """List local transactions, optionally refreshing them from the API first."""
    if refresh:
        print("🔄 Refreshing transactions from the API...")

    transactions = services.mirror.get_all(
        refresh=refresh, owner_email=owner_email, from_=from_, to=to
    )

    for transaction in transactions:
        print_transaction_line(transaction)

    print(f"\n✓ {len(transactions)} transaction(s)")
    return 0


def cmd_transactions_show(services: Services, transaction_id: str, refresh: bool = False) -> int:
    """Show one transaction as JSON."""
    transaction = services.mirror.get_by_id(transaction_id, refresh=refresh)
    if transaction is None:
        print(f"❌ Transaction not found: {transaction_id}")
        return 1

    print(json.dumps(transaction.to_dict(), indent=2))
    return 0


def cmd_transactions_create(services: Services, name: str, description: str = "") -> int:
    """Create a package and record it locally."""
    transaction = services.mirror.create({"name": name, "description": description})
    print(f"✓ Created transaction [{transaction.id}] {transaction.name}")
    return 0


def cmd_transactions_add_signer(
    services: Services,
    transaction_id: str,
    first_name: str,
    last_name: str,
    email: str,
) -> int:
    """Add a signer role."""
    transaction = services.mirror.add_signer(
        transaction_id,
        {"firstName": first_name, "lastName": last_name, "email": email},
    )
    signer = transaction.signers[-1]
    print(f"✓ Added signer {signer.name} <{signer.email}> (role: {signer.id})")
    return 0


def cmd_transactions_add_document(
    services: Services,
    transaction_id: str,
    file_path: Path,
    name: str | None = None,
) -> int:
    """Upload a document from disk."""
    if not file_path.is_file():
        print(f"❌ File not found: {file_path}")
        return 1

    content_type = mimetypes.guess_type(file_path.name)[0] or "application/pdf"
    transaction = services.mirror.add_document(
        transaction_id,
        file_path.read_bytes(),
        filename=file_path.name,
        content_type=content_type,
        name=name,
    )
    document = transaction.documents[-1]
    print(f"✓ Added document {document.name} (ID: {document.id}, {document.size} bytes)")
    return 0


def cmd_transactions_add_field(
    services: Services,
    transaction_id: str,
    document_id: str,
    role_id: str,
    field_options: dict,
) -> int:
    """Place a signature field on a document."""
    services.mirror.add_signature_field(transaction_id, document_id, role_id, field_options)
    print(f"✓ Added signature field on {document_id} for role {role_id}")
    return 0


def cmd_transactions_send(services: Services, transaction_id: str) -> int:
    """Send a transaction for signing."""
    services.mirror.send(transaction_id)
    print(f"✓ Transaction {transaction_id} sent for signing")
    return 0


def cmd_transactions_refresh(services: Services, transaction_id: str) -> int:
    """Refresh signing status of a transaction."""
    transaction = services.mirror.refresh_status(transaction_id)
    print(f"✓ [{transaction.id}] status: {transaction.status}")
    for signer in transaction.signers:
        print(f"    {signer.name} <{signer.email}>: {signer.status}")
    return 0


def cmd_transactions_resend(
    services: Services,
    transaction_id: str,
    email: str,
    message: str | None = None,
) -> int:
    """Resend the signing invitation."""
    services.mirror.resend_notification(transaction_id, email, message)
    print(f"✓ Notification resent to {email}")
    return 0


def cmd_transactions_cancel(services: Services, transaction_id: str) -> int:
    """Cancel a transaction."""
    services.mirror.cancel(transaction_id)
    print(f"✓ Transaction {transaction_id} canceled")
    return 0


def cmd_transactions_signing_url(services: Services, transaction_id: str, role_id: str) -> int:
    """Print the signing URL for a role."""
    url = services.mirror.get_signing_url(transaction_id, role_id)
    print(url)
    return 0


def cmd_transactions_audit(services: Services, transaction_id: str) -> int:
    """Print the audit report of a package."""
    report = services.client.get_audit_report(transaction_id)
    print(json.dumps(report, indent=2))
    return 0


def cmd_transactions_reset(services: Services) -> int:
    """Delete all local transactions."""
    if not services.mirror.reset():
        print("❌ Failed to save transactions")
        return 1

    print("✓ Local transactions cleared")
    return 0


def cmd_transactions_sample_data(services: Services) -> int:
    """Replace local transactions with demo data."""
    transactions = services.mirror.load_sample_data()
    for transaction in transactions:
        print_transaction_line(transaction)
    print(f"\n✓ Loaded {len(transactions)} sample transaction(s)")
    return 0


def cmd_reset(services: Services, reset_region: bool = False) -> int:
    """Reset connection configuration and local transactions."""
    config_ok = services.config_store.reset(keep_region=not reset_region)
    transactions_ok = services.mirror.reset()

    if not (config_ok and transactions_ok):
        print("❌ Reset incomplete, see log for details")
        return 1

    print("✓ Configuration and transactions reset")
    return 0


def run_config_command(services: Services, parsed: argparse.Namespace) -> int | None:
    if parsed.config_command == "show":
        return cmd_config_show(services, parsed.show_secret)
    elif parsed.config_command == "set":
        return cmd_config_set(
            services,
            {
                "region": parsed.region,
                "clientId": parsed.client_id,
                "clientSecret": parsed.client_secret,
                "platformEmail": parsed.platform_email,
                "callbackUrl": parsed.callback_url,
            },
        )
    elif parsed.config_command == "reset":
        return cmd_config_reset(services, parsed.reset_region)
    return None


def run_auth_command(services: Services, parsed: argparse.Namespace) -> int | None:
    if parsed.auth_command == "token":
        return cmd_auth_token(services)
    elif parsed.auth_command == "status":
        return cmd_auth_status(services)
    elif parsed.auth_command == "revoke":
        return cmd_auth_revoke(services)
    return None


def run_transactions_command(services: Services, parsed: argparse.Namespace) -> int | None:
    command = parsed.txn_command

    if command == "list":
        return cmd_transactions_list(
            services,
            refresh=parsed.refresh,
            owner_email=parsed.owner_email,
            from_=parsed.from_,
            to=parsed.to,
        )
    elif command == "show":
        return cmd_transactions_show(services, parsed.transaction_id, parsed.refresh)
    elif command == "create":
        return cmd_transactions_create(services, parsed.name, parsed.description)
    elif command == "add-signer":
        return cmd_transactions_add_signer(
            services, parsed.transaction_id, parsed.first_name, parsed.last_name, parsed.email
        )
    elif command == "add-document":
        return cmd_transactions_add_document(
            services, parsed.transaction_id, parsed.file, parsed.name
        )
    elif command == "add-field":
        return cmd_transactions_add_field(
            services,
            parsed.transaction_id,
            parsed.document_id,
            parsed.role_id,
            {
                "page": parsed.page,
                "top": parsed.top,
                "left": parsed.left,
                "width": parsed.width,
                "height": parsed.height,
            },
        )
    elif command == "send":
        return cmd_transactions_send(services, parsed.transaction_id)
    elif command == "refresh":
        return cmd_transactions_refresh(services, parsed.transaction_id)
    elif command == "resend":
        return cmd_transactions_resend(
            services, parsed.transaction_id, parsed.email, parsed.message
        )
    elif command == "cancel":
        return cmd_transactions_cancel(services, parsed.transaction_id)
    elif command == "signing-url":
        return cmd_transactions_signing_url(services, parsed.transaction_id, parsed.role_id)
    elif command == "audit":
        return cmd_transactions_audit(services, parsed.transaction_id)
    elif command == "reset":
        return cmd_transactions_reset(services)
    elif command == "sample-data":
        return cmd_transactions_sample_data(services)
    return None


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_cli()
    parsed = parser.parse_args(args)

    if not parsed.command:
        parser.print_help()
        return 1

    if parsed.command == "init":
        setup_logging(parsed.verbose)
        return cmd_init(parsed.settings, parsed.force)

    # Load settings
    try:
        settings = load_settings(parsed.settings)
    except ConfigValidationError as e:
        print(f"❌ Invalid settings: {e}")
        return 1
    except Exception as e:
        print(f"❌ Failed to load settings: {e}")
        return 1

    setup_logging(parsed.verbose, settings.log_level)

    services = build_services(settings)

    # Route to command
    try:
        if parsed.command == "config":
            result = run_config_command(services, parsed)
        elif parsed.command == "auth":
            result = run_auth_command(services, parsed)
        elif parsed.command == "transactions":
            result = run_transactions_command(services, parsed)
        elif parsed.command == "reset":
            result = cmd_reset(services, parsed.reset_region)
        else:
            result = None
    except CongaError as e:
        print(f"❌ {e}")
        return 1
    except ValueError as e:
        print(f"❌ {e}")
        return 1

    if result is None:
        parser.print_help()
        return 1
    return result


if __name__ == "__main__":
    sys.exit(main())
