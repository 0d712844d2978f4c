"""Configuration loading and validation."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from gmail_tester.auth.oauth import GmailOAuth
from gmail_tester.gmail.search import (
    DEFAULT_LABEL,
    DEFAULT_MAX_WAIT_TIME_SEC,
    DEFAULT_WAIT_TIME_SEC,
)


@dataclass
class OAuthConfig:
    """OAuth configuration."""

    credentials_file: Path = Path("credentials.json")
    token_file: Path = Path("token.json")
    scopes: list[str] = field(default_factory=lambda: list(GmailOAuth.DEFAULT_SCOPES))


@dataclass
class PollingConfig:
    """Default search and polling options."""

    label: str = DEFAULT_LABEL
    wait_time_sec: float = DEFAULT_WAIT_TIME_SEC
    max_wait_time_sec: float = DEFAULT_MAX_WAIT_TIME_SEC


@dataclass
class LoggingConfig:
    """Logging options."""

    level: str = "INFO"
    file: Path | None = None
    verbose: bool = False


@dataclass
class Config:
    """Complete application configuration."""

    oauth: OAuthConfig = field(default_factory=OAuthConfig)
    polling: PollingConfig = field(default_factory=PollingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from file.

    Args:
        config_path: Path to YAML config file. Defaults to config.yaml.

    Returns:
        Loaded Config object.
    """
    config = Config()

    # Try default paths if not specified
    if config_path is None:
        for default_path in ["config.yaml", "config.yml", "config.local.yaml"]:
            if Path(default_path).exists():
                config_path = Path(default_path)
                break

    if config_path and config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
            config = _parse_config(data)

    return config


def _parse_config(data: dict[str, Any]) -> Config:
    """Parse configuration dictionary into Config object."""
    config = Config()

    if "oauth" in data:
        oauth_data = data["oauth"] or {}
        config.oauth = OAuthConfig(
            credentials_file=Path(oauth_data.get("credentials_file", "credentials.json")),
            token_file=Path(oauth_data.get("token_file", "token.json")),
            scopes=oauth_data.get("scopes", list(GmailOAuth.DEFAULT_SCOPES)),
        )

    if "polling" in data:
        polling_data = data["polling"] or {}
        config.polling = PollingConfig(
            label=polling_data.get("label", DEFAULT_LABEL),
            wait_time_sec=polling_data.get("wait_time_sec", DEFAULT_WAIT_TIME_SEC),
            max_wait_time_sec=polling_data.get("max_wait_time_sec", DEFAULT_MAX_WAIT_TIME_SEC),
        )

    if "logging" in data:
        logging_data = data["logging"] or {}
        log_file = logging_data.get("file")
        config.logging = LoggingConfig(
            level=logging_data.get("level", "INFO"),
            file=Path(log_file) if log_file else None,
            verbose=logging_data.get("verbose", False),
        )

    return config


def validate_config(config: Config) -> list[str]:
    """Validate configuration, return list of issues."""
    issues = []

    if not config.oauth.credentials_file.exists():
        issues.append(f"OAuth credentials file not found: {config.oauth.credentials_file}")

    if config.polling.wait_time_sec <= 0:
        issues.append("wait_time_sec should be positive; zero busy-polls the API")

    if config.polling.max_wait_time_sec < 0:
        issues.append("max_wait_time_sec cannot be negative")

    valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR"}
    if config.logging.level.upper() not in valid_levels:
        issues.append(f"Invalid logging level: {config.logging.level}")

    return issues


def create_default_config(path: Path) -> None:
    """Create default configuration file.

    Args:
        path: Path to write config file.
    """
    default_config = """# gmail-tester configuration

oauth:
  credentials_file: "credentials.json"
  # Use a .enc suffix to keep the token encrypted at rest
  token_file: "token.json"
  scopes:
    - "https://www.googleapis.com/auth/gmail.readonly"
    - "https://www.googleapis.com/auth/gmail.send"

polling:
  # INBOX, SPAM, TRASH or a custom label
  label: "INBOX"
  wait_time_sec: 30
  max_wait_time_sec: 30

logging:
  level: "INFO"
  verbose: false
"""
    with open(path, "w", encoding="utf-8") as f:
        f.write(default_config)
