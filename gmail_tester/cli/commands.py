"""CLI commands using Typer."""

from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console

from gmail_tester.cli.config import Config, create_default_config, load_config, validate_config
from gmail_tester.cli.output import RichOutput
from gmail_tester.utils.errors import GmailTesterError
from gmail_tester.utils.logging import setup_logging

app = typer.Typer(
    name="gmail-tester",
    help="Poll a Gmail mailbox for matching messages and reply to them.",
    add_completion=False,
)
console = Console()
output = RichOutput(console)


def get_config(config_path: Optional[Path], verbose: bool = False) -> Config:
    """Load configuration, report issues and set up logging.

    Args:
        config_path: Optional path to config file.
        verbose: Force verbose console logging.

    Returns:
        Loaded Config object.
    """
    config = load_config(config_path)
    for issue in validate_config(config):
        output.print_warning(issue)

    setup_logging(
        level="DEBUG" if verbose else config.logging.level,
        log_file=config.logging.file,
        verbose=verbose or config.logging.verbose,
    )
    return config


def _filters(
    config: Config,
    sender: Optional[str],
    to: Optional[str],
    subject: Optional[str],
    before: Optional[str],
    after: Optional[str],
    label: Optional[str],
) -> dict[str, Any]:
    """Collect filter options from command-line values and config defaults."""
    return {
        "from": sender,
        "to": to,
        "subject": subject,
        "before": before,
        "after": after,
        "label": label or config.polling.label,
    }


# Shared option declarations
CredentialsOption = typer.Option(None, "--credentials", "-c", help="OAuth client secrets JSON")
TokenOption = typer.Option(None, "--token", "-t", help="Token file (.json, or .enc for encrypted)")
ConfigOption = typer.Option(None, "--config", help="Path to config file")
FromOption = typer.Option(None, "--from", "-f", help="Filter on the sender address")
ToOption = typer.Option(None, "--to", help="Filter on the recipient address")
SubjectOption = typer.Option(None, "--subject", "-s", help="Filter on the subject")
BeforeOption = typer.Option(None, "--before", help="Received before (YYYY-MM-DD, ISO 8601 or relative: 30m, 2h, 1d)")
AfterOption = typer.Option(None, "--after", help="Received after (YYYY-MM-DD, ISO 8601 or relative)")
LabelOption = typer.Option(None, "--label", "-l", help="Gmail label to search (default INBOX)")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Verbose logging")


@app.command()
def init_config(
    path: Path = typer.Argument(Path("config.yaml"), help="Where to write the config file"),
) -> None:
    """Write a default configuration file."""
    if path.exists():
        output.print_error(f"{path} already exists")
        raise typer.Exit(1)

    create_default_config(path)
    output.print_success(f"Configuration written to {path}")


@app.command()
def auth(
    credentials: Optional[Path] = CredentialsOption,
    token: Optional[Path] = TokenOption,
    config_path: Optional[Path] = ConfigOption,
) -> None:
    """Authorize access to Gmail and store the token.

    This opens a browser window for Google consent.
    """
    from gmail_tester.auth.oauth import GmailOAuth

    config = get_config(config_path)
    token_file = token or config.oauth.token_file

    try:
        oauth = GmailOAuth(scopes=config.oauth.scopes)
        oauth.run_consent_flow(credentials or config.oauth.credentials_file, token_file)
    except GmailTesterError as e:
        output.print_error("Authentication failed", str(e))
        raise typer.Exit(1)

    output.print_success(f"Token saved to {token_file}")


@app.command()
def check_inbox(
    credentials: Optional[Path] = CredentialsOption,
    token: Optional[Path] = TokenOption,
    sender: Optional[str] = FromOption,
    to: Optional[str] = ToOption,
    subject: Optional[str] = SubjectOption,
    before: Optional[str] = BeforeOption,
    after: Optional[str] = AfterOption,
    label: Optional[str] = LabelOption,
    wait: Optional[float] = typer.Option(None, "--wait", "-w", help="Seconds between checks"),
    max_wait: Optional[float] = typer.Option(None, "--max-wait", "-m", help="Maximum seconds to wait"),
    body: bool = typer.Option(False, "--body", help="Show decoded message bodies"),
    attachments: bool = typer.Option(False, "--attachments", help="Fetch attachments"),
    config_path: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Poll the mailbox until a matching message arrives."""
    from gmail_tester.inbox.service import check_inbox as poll_inbox

    config = get_config(config_path, verbose)
    filters = _filters(config, sender, to, subject, before, after, label)

    try:
        emails = poll_inbox(
            credentials or config.oauth.credentials_file,
            token or config.oauth.token_file,
            include_body=body,
            include_attachments=attachments,
            wait_time_sec=wait if wait is not None else config.polling.wait_time_sec,
            max_wait_time_sec=max_wait if max_wait is not None else config.polling.max_wait_time_sec,
            **filters,
        )
    except (GmailTesterError, ValueError) as e:
        output.print_error("Inbox check failed", str(e))
        raise typer.Exit(1)

    if not emails:
        output.print_warning("No matching message arrived within the wait time")
        raise typer.Exit(1)

    _show_emails(emails, body)


@app.command()
def messages(
    credentials: Optional[Path] = CredentialsOption,
    token: Optional[Path] = TokenOption,
    sender: Optional[str] = FromOption,
    to: Optional[str] = ToOption,
    subject: Optional[str] = SubjectOption,
    before: Optional[str] = BeforeOption,
    after: Optional[str] = AfterOption,
    label: Optional[str] = LabelOption,
    body: bool = typer.Option(False, "--body", help="Show decoded message bodies"),
    config_path: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """List messages currently matching the filters."""
    from gmail_tester.inbox.service import get_messages

    config = get_config(config_path, verbose)
    filters = _filters(config, sender, to, subject, before, after, label)

    emails = get_messages(
        credentials or config.oauth.credentials_file,
        token or config.oauth.token_file,
        include_body=body,
        **filters,
    )

    # get_messages logs failures and returns None
    if emails is None:
        output.print_error("Fetching messages failed, see log for details")
        raise typer.Exit(1)

    if not emails:
        console.print("[yellow]No matching emails found.[/yellow]")
        raise typer.Exit(0)

    _show_emails(emails, body)


@app.command()
def reply(
    message: str = typer.Argument(..., help="Reply body text"),
    credentials: Optional[Path] = CredentialsOption,
    token: Optional[Path] = TokenOption,
    sender: Optional[str] = FromOption,
    to: Optional[str] = ToOption,
    subject: Optional[str] = SubjectOption,
    before: Optional[str] = BeforeOption,
    after: Optional[str] = AfterOption,
    label: Optional[str] = LabelOption,
    config_path: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Reply to the most recent message matching the filters."""
    from gmail_tester.inbox.service import reply_to_email

    config = get_config(config_path, verbose)
    filters = _filters(config, sender, to, subject, before, after, label)

    try:
        result = reply_to_email(
            credentials or config.oauth.credentials_file,
            token or config.oauth.token_file,
            message,
            **filters,
        )
    except (GmailTesterError, ValueError) as e:
        output.print_error("Reply failed", str(e))
        raise typer.Exit(1)

    output.print_success(f"Reply sent (message id {result.get('id')}, thread {result.get('threadId')})")


@app.command()
def refresh_token(
    credentials: Optional[Path] = CredentialsOption,
    token: Optional[Path] = TokenOption,
    config_path: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Refresh the stored access token."""
    from gmail_tester.inbox.service import refresh_access_token

    config = get_config(config_path, verbose)
    token_file = token or config.oauth.token_file

    try:
        refresh_access_token(credentials or config.oauth.credentials_file, token_file)
    except GmailTesterError as e:
        output.print_error("Token refresh failed", str(e))
        raise typer.Exit(1)

    output.print_success(f"Access token refreshed in {token_file}")


def _show_emails(emails: list, show_body: bool) -> None:
    """Print the email table, then each body if requested and any attachments."""
    output.print_emails(emails)
    for email in emails:
        if show_body:
            output.print_email_body(email)
        output.print_attachments(email)


if __name__ == "__main__":
    app()
