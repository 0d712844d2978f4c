"""Data models for normalized Gmail messages."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Attachment:
    """A file attached to a message, with its decoded content."""

    filename: str
    mime_type: str
    data: bytes

    @property
    def size(self) -> int:
        """Size of the decoded content in bytes."""
        return len(self.data)

    @property
    def size_human(self) -> str:
        """Human-readable size string."""
        if self.size < 1024:
            return f"{self.size} B"
        elif self.size < 1024 * 1024:
            return f"{self.size / 1024:.1f} KB"
        else:
            return f"{self.size / (1024 * 1024):.1f} MB"

    def __str__(self) -> str:
        """Human-readable representation."""
        return f"{self.filename} ({self.mime_type}, {self.size_human})"


@dataclass(frozen=True)
class EmailBody:
    """Decoded text and HTML bodies of a message."""

    text: str = ""
    html: str = ""


@dataclass(frozen=True)
class Email:
    """Normalized view of one Gmail message.

    ``body`` and ``attachments`` stay ``None`` unless they were requested
    through the search options.
    """

    id: str
    sender: str | None
    subject: str | None
    receiver: str | None
    date: datetime
    thread_id: str | None
    message_id: str | None = None
    body: EmailBody | None = None
    attachments: tuple[Attachment, ...] | None = None

    def __str__(self) -> str:
        """Human-readable representation."""
        date_str = self.date.strftime("%Y-%m-%d %H:%M")
        return f"[{date_str}] {self.sender}: {self.subject}"
