"""
Conga Sign API client implementation.
"""

import json
import logging
from typing import Any
from urllib.parse import quote

import requests

from ..config_store import ConfigStore
from .auth import TokenGate
from .exceptions import ApiRequestError, ConfigurationError, CongaError

logger = logging.getLogger(__name__)

PACKAGE_DEFAULTS = {
    "name": "Signature Package",
    "description": "",
    "emailMessage": "",
    "language": "en",
    "autocomplete": True,
    "type": "PACKAGE",
    "status": "DRAFT",
}

SIGNER_DEFAULTS = {
    "firstName": "",
    "lastName": "",
    "email": "",
    "language": "en",
}

SIGNATURE_FIELD_DEFAULTS = {
    "type": "SIGNATURE",
    "subtype": "FULLNAME",
    "page": 0,
    "top": 100,
    "left": 100,
    "width": 200,
    "height": 50,
}

CALLBACK_EVENTS = [
    "PACKAGE_ACTIVATE",
    "PACKAGE_COMPLETE",
    "PACKAGE_DECLINE",
    "PACKAGE_EXPIRE",
    "PACKAGE_OPT_OUT",
    "SIGNER_COMPLETE",
]

DEFAULT_DOCUMENT_FILENAME = "document.pdf"


class CongaClient:
    """
    Client for the Conga Sign REST API.

    Every call goes through request(), which first makes sure a valid bearer
    token is available. Failures are raised as ApiRequestError; nothing is
    retried.
    """

    DEFAULT_FROM = 1
    DEFAULT_TO = 100

    def __init__(
        self,
        config_store: ConfigStore,
        token_gate: TokenGate | None = None,
        session: requests.Session | None = None,
        timeout: float | None = None,
    ):
        """
        Initialize the client.

        Args:
            config_store: Connection configuration (region, platform email)
            token_gate: Token provider (built on the same session if omitted)
            session: HTTP session (a new one is created if omitted)
            timeout: Request timeout in seconds (None = transport default)
        """
        self.config_store = config_store
        self.timeout = timeout
        self.session = session or requests.Session()
        self.token_gate = token_gate or TokenGate(
            config_store, session=self.session, timeout=timeout
        )

    def request(
        self,
        endpoint: str,
        method: str = "GET",
        json_data: Any = None,
        data: dict | None = None,
        files: dict | None = None,
    ) -> Any:
        """
        Make an authenticated API request and normalize the response.

        Returns:
            Parsed JSON for JSON responses, {"success": True} for 204, and
            {"success": True, "text": ..., "status": ...} for other bodies

        Raises:
            ConfigurationError / AuthenticationError: From token acquisition
            ApiRequestError: Non-2xx status, bad JSON, or transport failure
        """
        token = self.token_gate.authenticate()
        url = f"{self.config_store.resolve_urls().api_url}{endpoint}"

        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }
        # Multipart bodies get their content type (with boundary) from requests
        if files is None:
            headers["Content-Type"] = "application/json"

        logger.debug("API Request: %s %s", method, url)
        if json_data is not None:
            logger.debug("Request body: %s", json.dumps(json_data, indent=2))

        try:
            response = self.session.request(
                method=method,
                url=url,
                headers=headers,
                json=json_data,
                data=data,
                files=files,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error("Request error for %s: %s", url, e)
            raise ApiRequestError(str(e)) from e

        logger.debug("Response status: %s", response.status_code)

        if response.status_code == 204:
            return {"success": True}

        if not response.ok:
            body = response.text
            logger.error("API Error %s for %s %s", response.status_code, method, endpoint)
            logger.debug("Full response body: %s", body)
            raise ApiRequestError(
                response.reason or "HTTP error",
                status_code=response.status_code,
                response_body=body,
            )

        content_type = response.headers.get("Content-Type", "")
        if "json" in content_type.lower():
            try:
                return response.json()
            except ValueError as e:
                raise ApiRequestError(
                    "Response declared JSON but could not be parsed",
                    status_code=response.status_code,
                    response_body=response.text,
                ) from e

        return {"success": True, "text": response.text, "status": response.status_code}

    def test_connection(self) -> bool:
        """Check that a token can be obtained for the configured credentials."""
        try:
            self.token_gate.authenticate()
            return True
        except CongaError as e:
            logger.warning("Connection test failed: %s", e)
            return False

    # === Packages ===

    def list_packages(
        self,
        owner_email: str | None = None,
        from_: int | None = None,
        to: int | None = None,
    ) -> Any:
        """
        List packages owned by an email address.

        Args:
            owner_email: Owner to filter by (default: configured platform email)
            from_: First index, 1-based (default 1)
            to: Last index (default 100)

        Raises:
            ConfigurationError: No owner email given and none configured
        """
        email = owner_email or self.config_store.get().get("platformEmail")
        if not email:
            raise ConfigurationError("Platform email not configured")

        start = self.DEFAULT_FROM if from_ is None else from_
        end = self.DEFAULT_TO if to is None else to

        # Encode every reserved character, including "@", "+" and "/"
        encoded_email = quote(email, safe="")
        endpoint = f"/cs-packages?ownerEmail={encoded_email}&from={start}&to={end}"

        logger.info("Listing packages for %s (from=%s, to=%s)", email, start, end)
        return self.request(endpoint)

    def get_package(self, package_id: str) -> Any:
        """Get details of a single package."""
        return self.request(f"/cs-packages/{package_id}")

    def create_package(self, package_data: dict | None = None) -> Any:
        """Create a draft package. Caller values override PACKAGE_DEFAULTS."""
        body = {**PACKAGE_DEFAULTS, **(package_data or {})}
        return self.request("/cs-packages", method="POST", json_data=body)

    def send_package(self, package_id: str) -> Any:
        """Move a package to SENT, which notifies its signers."""
        return self.request(
            f"/cs-packages/{package_id}", method="PUT", json_data={"status": "SENT"}
        )

    def cancel_package(self, package_id: str) -> Any:
        """Cancel a package."""
        return self.request(f"/cs-packages/{package_id}/cancel", method="POST")

    # === Roles and documents ===

    def add_signer(
        self,
        package_id: str,
        signer_data: dict,
        role_options: dict | None = None,
    ) -> Any:
        """
        Add a signer role to a package.

        Args:
            package_id: Package ID
            signer_data: firstName, lastName, email and optional signer fields
            role_options: Role-level overrides (e.g. "index", "name")
        """
        signer = {**SIGNER_DEFAULTS, **signer_data}
        body = {
            "type": "SIGNER",
            "name": f"{signer['firstName']} {signer['lastName']}".strip(),
            "signers": [signer],
            **(role_options or {}),
        }
        return self.request(f"/cs-packages/{package_id}/roles", method="POST", json_data=body)

    def add_document(
        self,
        package_id: str,
        content: bytes,
        filename: str | None = None,
        content_type: str = "application/pdf",
        name: str | None = None,
    ) -> Any:
        """
        Upload a document as multipart form data.

        Args:
            package_id: Package ID
            content: File bytes
            filename: Upload filename (default "document.pdf")
            content_type: MIME type of the file
            name: Display name (default: the filename)
        """
        filename = filename or DEFAULT_DOCUMENT_FILENAME
        payload = {"name": name or filename}
        return self.request(
            f"/cs-packages/{package_id}/documents",
            method="POST",
            data={"payload": json.dumps(payload)},
            files={"file": (filename, content, content_type)},
        )

    def add_signature_field(
        self,
        package_id: str,
        document_id: str,
        role_id: str,
        field_options: dict | None = None,
    ) -> Any:
        """Place a signature field for a role on a document."""
        signature_field = {**SIGNATURE_FIELD_DEFAULTS, **(field_options or {})}
        body = {"role": role_id, "fields": [signature_field]}
        return self.request(
            f"/cs-packages/{package_id}/documents/{document_id}/approvals",
            method="POST",
            json_data=body,
        )

    # === Signing ===

    def get_signing_url(self, package_id: str, role_id: str) -> Any:
        """Get the signing ceremony URL for a role."""
        return self.request(f"/cs-packages/{package_id}/roles/{role_id}/signingUrl")

    def resend_notification(self, package_id: str, notification: dict) -> Any:
        """Resend the signing invitation to a signer."""
        body = {"message": "", **notification}
        return self.request(
            f"/cs-packages/{package_id}/notifications", method="POST", json_data=body
        )

    def get_signing_status(self, package_id: str) -> Any:
        """Get the package and per-signer signing status."""
        return self.request(f"/cs-packages/{package_id}/signingStatus")

    def get_audit_report(self, package_id: str) -> Any:
        """Get the audit trail of a package."""
        return self.request(f"/cs-packages/{package_id}/audit")

    # === Tokens and callbacks ===

    def create_sender_token(self, package_id: str, token_data: dict | None = None) -> Any:
        """Create a sender authentication token for a package."""
        body = {"packageId": package_id, **(token_data or {})}
        return self.request(
            "/cs-authenticationTokens/sender", method="POST", json_data=body
        )

    def create_signer_token(
        self,
        package_id: str,
        signer_id: str,
        token_data: dict | None = None,
    ) -> Any:
        """Create a multi-use signer authentication token."""
        body = {"packageId": package_id, "signerId": signer_id, **(token_data or {})}
        return self.request(
            "/cs-authenticationTokens/signer/multiUse", method="POST", json_data=body
        )

    def register_callbacks(self, callback_data: dict | None = None) -> Any:
        """
        Register the callback URL for package events.

        Raises:
            ConfigurationError: No URL given and no callbackUrl configured
        """
        callback_data = callback_data or {}
        url = callback_data.get("url") or self.config_store.get().get("callbackUrl")
        if not url:
            raise ConfigurationError("Callback URL not configured")

        body = {"events": list(CALLBACK_EVENTS), **callback_data, "url": url}
        return self.request("/cs-callback", method="POST", json_data=body)
