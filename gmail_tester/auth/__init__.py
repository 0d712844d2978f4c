"""Authentication module for Gmail OAuth2."""

from gmail_tester.auth.oauth import AuthorizationError, GmailOAuth
from gmail_tester.auth.token_storage import JsonTokenStore, SecureTokenStorage, TokenStore

__all__ = ["AuthorizationError", "GmailOAuth", "JsonTokenStore", "SecureTokenStorage", "TokenStore"]
