"""Rich console output formatting."""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from gmail_tester.models.email import Email


class RichOutput:
    """Rich console output formatting."""

    def __init__(self, console: Console | None = None) -> None:
        """Initialize with Rich console.

        Args:
            console: Rich Console instance.
        """
        self.console = console or Console()

    def print_emails(self, emails: list[Email], limit: int = 20) -> None:
        """Display emails as a formatted table.

        Args:
            emails: Emails to display.
            limit: Maximum rows to show.
        """
        table = Table(title="Matching Emails", show_lines=True)

        table.add_column("Date", style="cyan", width=16)
        table.add_column("From", style="green", max_width=30)
        table.add_column("To", max_width=30)
        table.add_column("Subject", max_width=40)
        table.add_column("Attachments", justify="right", style="yellow")

        for email in emails[:limit]:
            attachments = "-" if email.attachments is None else str(len(email.attachments))
            table.add_row(
                email.date.strftime("%Y-%m-%d %H:%M"),
                self._truncate(email.sender or "", 30),
                self._truncate(email.receiver or "", 30),
                self._truncate(email.subject or "", 40),
                attachments,
            )

        self.console.print(table)

        if len(emails) > limit:
            self.console.print(f"\n[dim]... and {len(emails) - limit} more emails[/dim]")

    def print_email_body(self, email: Email) -> None:
        """Display the text body of an email, falling back to its HTML."""
        if email.body is None:
            return
        # Plain Text so message content is never parsed as console markup
        content = Text(email.body.text or email.body.html or "(empty)")
        self.console.print(Panel(content, title=escape(email.subject or "(no subject)")))

    def print_attachments(self, email: Email) -> None:
        """List the fetched attachments of an email with their sizes."""
        if not email.attachments:
            return
        self.console.print(f"[bold]Attachments of {escape(email.subject or '(no subject)')}:[/bold]")
        for attachment in email.attachments:
            self.console.print(f"  - {escape(str(attachment))}")

    def print_error(self, message: str, details: str | None = None) -> None:
        """Display error message.

        Args:
            message: Error message.
            details: Optional additional details.
        """
        self.console.print(f"[bold red]Error:[/bold red] {message}")
        if details:
            self.console.print(f"[dim]{details}[/dim]")

    def print_success(self, message: str) -> None:
        """Display success message."""
        self.console.print(f"[bold green]Success:[/bold green] {message}")

    def print_warning(self, message: str) -> None:
        """Display warning message."""
        self.console.print(f"[bold yellow]Warning:[/bold yellow] {message}")

    def _truncate(self, text: str, max_length: int) -> str:
        """Truncate text with ellipsis, escaped for console markup."""
        if len(text) > max_length:
            text = text[: max_length - 3] + "..."
        return escape(text)
