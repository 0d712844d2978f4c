"""OAuth2 credential handling for the Gmail API."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Union

from google.auth.exceptions import RefreshError, TransportError as GoogleTransportError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from gmail_tester.auth.token_storage import TokenRef, TokenStore, default_token_store
from gmail_tester.utils.errors import GmailTesterError
from gmail_tester.utils.logging import logger

ClientSecretsRef = Union[str, Path, dict[str, Any]]

DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"


class AuthorizationError(GmailTesterError):
    """Raised when credentials or tokens are invalid or cannot be refreshed."""

    code = "authorization"


class GmailOAuth:
    """OAuth2 handler for Gmail API access.

    Builds google-auth credentials from a client secrets document and a
    stored token, refreshes them, and runs the installed-app consent flow
    to obtain a first token. Tokens are kept in the ``access_token`` /
    ``refresh_token`` / ``expiry_date`` (epoch milliseconds) layout.
    """

    # Reading messages and sending replies
    DEFAULT_SCOPES = [
        "https://www.googleapis.com/auth/gmail.readonly",
        "https://www.googleapis.com/auth/gmail.send",
    ]

    def __init__(
        self,
        token_store: TokenStore | None = None,
        scopes: list[str] | None = None,
    ) -> None:
        """Initialize OAuth handler.

        Args:
            token_store: Store used to load and persist tokens. Defaults to
                encrypted storage for ``*.enc`` paths and JSON otherwise.
            scopes: OAuth scopes to request.
        """
        self._token_store = token_store
        self.scopes = scopes or self.DEFAULT_SCOPES

    def token_store_for(self, token_ref: TokenRef) -> TokenStore:
        """Return the store used for ``token_ref``."""
        return self._token_store or default_token_store(token_ref)

    def load_client_config(self, credentials: ClientSecretsRef) -> dict[str, Any]:
        """Load OAuth client settings from a client secrets file or dict.

        Returns:
            The ``installed``/``web`` section (or the flat document).

        Raises:
            AuthorizationError: If the document cannot be read or lacks a
                client id.
        """
        if isinstance(credentials, dict):
            data = credentials
        else:
            try:
                with open(credentials, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise AuthorizationError(f"Cannot read credentials file {credentials}: {e}") from e

        client_config = data.get("installed") or data.get("web") or data
        if not client_config.get("client_id"):
            raise AuthorizationError("Credentials are missing client_id")
        return client_config

    def load_token(self, token_ref: TokenRef) -> dict[str, Any]:
        """Load token data through the token store.

        Raises:
            AuthorizationError: If the token cannot be loaded.
        """
        try:
            return self.token_store_for(token_ref).get(token_ref)
        except (OSError, ValueError, TypeError) as e:
            raise AuthorizationError(f"Cannot load token: {e}") from e

    def authorize(self, credentials: ClientSecretsRef, token_ref: TokenRef) -> Credentials:
        """Build credentials for API calls.

        Args:
            credentials: Client secrets file path or parsed document.
            token_ref: Token file path or token dict.

        Returns:
            google-auth Credentials. Expired access tokens are refreshed
            transparently by the API client on first use.

        Raises:
            AuthorizationError: If credentials or token are unusable.
        """
        client_config = self.load_client_config(credentials)
        token = self.load_token(token_ref)

        access_token = token.get("access_token") or token.get("token")
        refresh_token = token.get("refresh_token")
        if not access_token and not refresh_token:
            raise AuthorizationError("Token contains neither an access token nor a refresh token")

        scope = token.get("scope") or token.get("scopes")
        if isinstance(scope, str):
            scope = scope.split()

        creds = Credentials(
            token=access_token,
            refresh_token=refresh_token,
            token_uri=client_config.get("token_uri", DEFAULT_TOKEN_URI),
            client_id=client_config.get("client_id"),
            client_secret=client_config.get("client_secret"),
            scopes=scope,
        )
        creds.expiry = _parse_expiry(token)
        return creds

    def refresh(self, creds: Credentials) -> dict[str, Any]:
        """Refresh the access token.

        Returns:
            Dictionary with the refreshed ``access_token``, ``refresh_token``
            and ``expiry_date`` (each omitted when not returned).

        Raises:
            AuthorizationError: If the refresh request fails.
        """
        if not creds.refresh_token:
            raise AuthorizationError("Cannot refresh access token: no refresh token available")

        try:
            creds.refresh(Request())
        except (RefreshError, GoogleTransportError) as e:
            raise AuthorizationError(f"Token refresh failed: {e}") from e

        return token_from_credentials(creds)

    def run_consent_flow(self, credentials: ClientSecretsRef, token_ref: TokenRef) -> Credentials:
        """Run the installed-app authorization flow and store the new token.

        Opens a browser for user consent and handles the local callback.

        Raises:
            AuthorizationError: If the flow fails.
        """
        client_config = self.load_client_config(credentials)

        try:
            flow = InstalledAppFlow.from_client_config(
                {"installed": client_config},
                scopes=self.scopes,
            )
            # Port 0 lets the OS pick a free callback port
            creds = flow.run_local_server(
                port=0,
                prompt="consent",
                access_type="offline",  # Get refresh token
            )
        except Exception as e:
            raise AuthorizationError(f"OAuth flow failed: {e}") from e

        token = token_from_credentials(creds)
        token["scope"] = " ".join(creds.scopes or self.scopes)
        token["token_type"] = "Bearer"
        self.token_store_for(token_ref).store(token, token_ref)
        logger.info("[gmail] New token stored")
        return creds


def token_from_credentials(creds: Credentials) -> dict[str, Any]:
    """Extract the persistable token fields from credentials."""
    token: dict[str, Any] = {}
    if creds.token:
        token["access_token"] = creds.token
    if creds.refresh_token:
        token["refresh_token"] = creds.refresh_token
    if creds.expiry:
        # google-auth keeps expiry as naive UTC
        expiry = creds.expiry.replace(tzinfo=timezone.utc)
        token["expiry_date"] = int(expiry.timestamp() * 1000)
    return token


def _parse_expiry(token: dict[str, Any]) -> datetime | None:
    """Read token expiry as the naive UTC datetime google-auth expects."""
    expiry_date = token.get("expiry_date")
    if expiry_date:
        expiry = datetime.fromtimestamp(int(expiry_date) / 1000, tz=timezone.utc)
        return expiry.replace(tzinfo=None)

    expiry_str = token.get("expiry")
    if expiry_str:
        expiry = datetime.fromisoformat(expiry_str)
        if expiry.tzinfo is not None:
            expiry = expiry.astimezone(timezone.utc).replace(tzinfo=None)
        return expiry

    return None
