"""OAuth token persistence: plain JSON and encrypted storage."""

import base64
import json
import os
from pathlib import Path
from typing import Any, Protocol, Union

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

# A token is referenced either by file path or passed directly as a dict
TokenRef = Union[str, Path, dict[str, Any]]


class TokenStore(Protocol):
    """Persistence for OAuth tokens."""

    def get(self, token_ref: TokenRef) -> dict[str, Any]:
        """Load the token referenced by ``token_ref``."""
        ...

    def store(self, token: dict[str, Any], token_ref: TokenRef) -> None:
        """Persist ``token`` back to ``token_ref``."""
        ...


def _restrict_permissions(path: Path) -> None:
    """Set owner-only permissions on Unix-like systems."""
    try:
        os.chmod(path, 0o600)
    except (OSError, AttributeError):
        pass  # Windows doesn't support chmod the same way


class JsonTokenStore:
    """Token store for plain JSON files and in-memory token dicts.

    Dict references are returned as copies and updated in place on
    ``store`` so callers holding the dict see refreshed values.
    """

    def get(self, token_ref: TokenRef) -> dict[str, Any]:
        """Load token data.

        Raises:
            FileNotFoundError: If the token file does not exist.
            ValueError: If the file is not valid JSON.
        """
        if isinstance(token_ref, dict):
            return dict(token_ref)

        with open(token_ref, "r", encoding="utf-8") as f:
            try:
                return json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Token file {token_ref} is not valid JSON: {e}") from e

    def store(self, token: dict[str, Any], token_ref: TokenRef) -> None:
        """Save token data."""
        if isinstance(token_ref, dict):
            token_ref.update(token)
            return

        path = Path(token_ref)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(token, f, indent=2)
        _restrict_permissions(path)


class SecureTokenStorage:
    """Encrypted local storage for OAuth tokens.

    Uses Fernet symmetric encryption with a key derived from a password
    using PBKDF2. If no password is provided, uses a machine-specific
    key based on username and hostname. Token references must be paths.
    """

    SALT_SIZE = 16
    ITERATIONS = 480000  # OWASP 2023 recommendation for PBKDF2-SHA256

    def __init__(self, password: str | None = None) -> None:
        """Initialize storage with an optional password.

        Args:
            password: Optional password for encryption. If not provided,
                uses a machine-specific default (less secure but convenient).
        """
        self._password = password or self._get_default_password()

    def _get_default_password(self) -> str:
        """Generate a machine-specific default password."""
        import getpass
        import platform

        return f"{getpass.getuser()}@{platform.node()}_gmail_tester"

    def _derive_key(self, salt: bytes) -> bytes:
        """Derive a 32-byte Fernet key from the password and salt."""
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=salt,
            iterations=self.ITERATIONS,
        )
        return base64.urlsafe_b64encode(kdf.derive(self._password.encode()))

    def store(self, token: dict[str, Any], token_ref: TokenRef) -> None:
        """Encrypt and save token data.

        Raises:
            TypeError: If ``token_ref`` is not a path.
        """
        path = self._as_path(token_ref)

        # Generate new random salt for each save
        salt = os.urandom(self.SALT_SIZE)
        fernet = Fernet(self._derive_key(salt))
        encrypted = fernet.encrypt(json.dumps(token).encode())

        # Store salt + encrypted data
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            f.write(salt + encrypted)
        _restrict_permissions(path)

    def get(self, token_ref: TokenRef) -> dict[str, Any]:
        """Load and decrypt token data.

        Raises:
            FileNotFoundError: If the token file does not exist.
            ValueError: If decryption fails (corrupted file or wrong password).
        """
        path = self._as_path(token_ref)
        with open(path, "rb") as f:
            data = f.read()

        salt = data[: self.SALT_SIZE]
        encrypted = data[self.SALT_SIZE :]

        fernet = Fernet(self._derive_key(salt))
        try:
            decrypted = fernet.decrypt(encrypted)
        except InvalidToken as e:
            raise ValueError(f"Unable to decrypt token file {path}") from e

        return json.loads(decrypted.decode())

    @staticmethod
    def _as_path(token_ref: TokenRef) -> Path:
        if isinstance(token_ref, dict):
            raise TypeError("Encrypted token storage requires a file path")
        return Path(token_ref)


def default_token_store(token_ref: TokenRef) -> TokenStore:
    """Pick the store for a token reference: encrypted for ``*.enc`` files."""
    if not isinstance(token_ref, dict) and Path(token_ref).suffix == ".enc":
        return SecureTokenStorage()
    return JsonTokenStore()
