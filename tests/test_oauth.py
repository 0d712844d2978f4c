"""Tests for OAuth credential handling."""

import json
from datetime import datetime
from unittest.mock import MagicMock

import pytest
from google.auth.exceptions import RefreshError

from gmail_tester.auth.oauth import AuthorizationError, GmailOAuth, token_from_credentials


class TestLoadClientConfig:
    """Tests for GmailOAuth.load_client_config."""

    def test_installed_section(self, client_secrets):
        config = GmailOAuth().load_client_config(client_secrets)

        assert config["client_id"] == "client-id.apps.googleusercontent.com"

    def test_web_section(self):
        config = GmailOAuth().load_client_config({"web": {"client_id": "web-id"}})

        assert config["client_id"] == "web-id"

    def test_flat_document(self):
        config = GmailOAuth().load_client_config({"client_id": "flat-id", "client_secret": "s"})

        assert config["client_secret"] == "s"

    def test_from_file(self, tmp_path, client_secrets):
        """Test client secrets read from a JSON file."""
        path = tmp_path / "credentials.json"
        path.write_text(json.dumps(client_secrets))

        assert GmailOAuth().load_client_config(path)["client_secret"] == "client-secret"

    def test_missing_file(self, tmp_path):
        with pytest.raises(AuthorizationError):
            GmailOAuth().load_client_config(tmp_path / "absent.json")

    def test_missing_client_id(self):
        with pytest.raises(AuthorizationError, match="client_id"):
            GmailOAuth().load_client_config({"installed": {"client_secret": "s"}})


class TestAuthorize:
    """Tests for GmailOAuth.authorize."""

    def test_builds_credentials(self, client_secrets, token_data):
        """Test token fields land on the credentials."""
        creds = GmailOAuth().authorize(client_secrets, token_data)

        assert creds.token == "old-access"
        assert creds.refresh_token == "refresh-1"
        assert creds.client_id == "client-id.apps.googleusercontent.com"
        assert creds.client_secret == "client-secret"
        assert creds.scopes == ["https://www.googleapis.com/auth/gmail.readonly"]
        # google-auth compares expiry as naive UTC
        assert creds.expiry == datetime(2024, 1, 15, 0, 0)

    def test_token_file(self, tmp_path, client_secrets, token_data):
        """Test the token is loaded from a file path."""
        path = tmp_path / "token.json"
        path.write_text(json.dumps(token_data))

        assert GmailOAuth().authorize(client_secrets, path).token == "old-access"

    def test_iso_expiry(self, client_secrets):
        """Test google-auth style ``token`` and ISO ``expiry`` keys."""
        token = {"token": "t", "refresh_token": "r", "expiry": "2024-01-15T01:00:00+01:00"}

        creds = GmailOAuth().authorize(client_secrets, token)

        assert creds.token == "t"
        assert creds.expiry == datetime(2024, 1, 15, 0, 0)

    def test_empty_token(self, client_secrets):
        """Test a token with no usable fields is rejected."""
        with pytest.raises(AuthorizationError):
            GmailOAuth().authorize(client_secrets, {})

    def test_missing_token_file(self, tmp_path, client_secrets):
        with pytest.raises(AuthorizationError, match="Cannot load token"):
            GmailOAuth().authorize(client_secrets, tmp_path / "absent.json")

    def test_custom_token_store(self, client_secrets, token_data):
        """Test an injected store is used for loading."""
        store = MagicMock()
        store.get.return_value = token_data

        GmailOAuth(token_store=store).authorize(client_secrets, "anything")

        store.get.assert_called_once_with("anything")


class TestRefresh:
    """Tests for GmailOAuth.refresh."""

    def test_no_refresh_token(self):
        creds = MagicMock(refresh_token=None)

        with pytest.raises(AuthorizationError):
            GmailOAuth().refresh(creds)

        creds.refresh.assert_not_called()

    def test_refresh_error(self):
        """Test rejected refreshes become AuthorizationError."""
        creds = MagicMock(refresh_token="refresh-1")
        creds.refresh.side_effect = RefreshError("invalid_grant")

        with pytest.raises(AuthorizationError, match="invalid_grant"):
            GmailOAuth().refresh(creds)

    def test_success(self):
        """Test refreshed fields are returned in token layout."""
        creds = MagicMock(token="new-access", refresh_token="refresh-1", expiry=datetime(2024, 1, 15))

        result = GmailOAuth().refresh(creds)

        assert result == {
            "access_token": "new-access",
            "refresh_token": "refresh-1",
            "expiry_date": 1705276800000,
        }
        creds.refresh.assert_called_once()


class TestConsentFlow:
    """Tests for GmailOAuth.run_consent_flow."""

    def test_stores_new_token(self, monkeypatch, client_secrets):
        """Test the flow result is written to the token store."""
        creds = MagicMock(
            token="fresh",
            refresh_token="refresh-9",
            expiry=None,
            scopes=GmailOAuth.DEFAULT_SCOPES,
        )
        flow = MagicMock()
        flow.run_local_server.return_value = creds
        from_client_config = MagicMock(return_value=flow)
        monkeypatch.setattr(
            "gmail_tester.auth.oauth.InstalledAppFlow.from_client_config", from_client_config
        )
        token = {}

        GmailOAuth().run_consent_flow(client_secrets, token)

        assert token["access_token"] == "fresh"
        assert token["refresh_token"] == "refresh-9"
        assert token["scope"] == " ".join(GmailOAuth.DEFAULT_SCOPES)
        assert from_client_config.call_args.args[0] == {"installed": client_secrets["installed"]}
        flow.run_local_server.assert_called_once_with(port=0, prompt="consent", access_type="offline")

    def test_flow_failure(self, monkeypatch, client_secrets):
        monkeypatch.setattr(
            "gmail_tester.auth.oauth.InstalledAppFlow.from_client_config",
            MagicMock(side_effect=ValueError("bad client")),
        )

        with pytest.raises(AuthorizationError, match="OAuth flow failed"):
            GmailOAuth().run_consent_flow(client_secrets, {})


def test_token_from_credentials_omits_missing_fields():
    creds = MagicMock(token="a", refresh_token=None, expiry=None)

    assert token_from_credentials(creds) == {"access_token": "a"}
