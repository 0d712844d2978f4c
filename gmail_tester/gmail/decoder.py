"""Normalize raw Gmail API messages into Email objects."""

import base64
import binascii
from collections import deque
from datetime import datetime, timezone
from typing import Any, Callable

from gmail_tester.gmail.search import FilterOptions
from gmail_tester.models.email import Attachment, Email, EmailBody

AttachmentFetcher = Callable[[dict[str, Any]], list[Attachment]]

TEXT_PLAIN = "text/plain"
TEXT_HTML = "text/html"


class MessageDecoder:
    """Convert Gmail API message resources into ``Email`` objects.

    Attachment download is delegated to ``fetch_attachments`` since it
    needs further API calls; everything else is read from the message
    resource itself.
    """

    def __init__(self, fetch_attachments: AttachmentFetcher | None = None) -> None:
        """Initialize decoder.

        Args:
            fetch_attachments: Callable returning the attachments of a raw
                message. Required only when attachments are requested.
        """
        self._fetch_attachments = fetch_attachments

    def decode(self, raw_message: dict[str, Any], options: FilterOptions) -> Email:
        """Decode one message resource (``format=full``).

        Args:
            raw_message: Message resource as returned by ``users.messages.get``.
            options: Search options; ``include_body`` and
                ``include_attachments`` control what is extracted.

        Returns:
            Normalized Email.
        """
        payload = raw_message.get("payload") or {}
        headers = payload.get("headers") or []

        body = extract_body(payload) if options.include_body else None

        attachments = None
        if options.include_attachments:
            if self._fetch_attachments is None:
                raise ValueError("Attachments requested but no attachment fetcher configured")
            attachments = tuple(self._fetch_attachments(raw_message))

        return Email(
            id=raw_message.get("id", ""),
            sender=get_header("From", headers),
            subject=get_header("Subject", headers),
            receiver=get_header("Delivered-To", headers),
            date=parse_internal_date(raw_message.get("internalDate")),
            thread_id=raw_message.get("threadId"),
            # Gmail is inconsistent about the casing of this header
            message_id=get_header("Message-ID", headers) or get_header("Message-Id", headers),
            body=body,
            attachments=attachments,
        )


def get_header(name: str, headers: list[dict[str, str]]) -> str | None:
    """Return the value of the first header named exactly ``name``."""
    for header in headers:
        if header.get("name") == name:
            return header.get("value")
    return None


def parse_internal_date(internal_date: str | int | None) -> datetime:
    """Convert Gmail's ``internalDate`` (epoch milliseconds) to a UTC datetime."""
    millis = int(internal_date or 0)
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


def extract_body(payload: dict[str, Any]) -> EmailBody:
    """Extract text and HTML bodies from a message payload.

    Single-part payloads carry their content inline. Multipart payloads
    are walked breadth-first; for each of text/plain and text/html the
    last matching part wins.
    """
    text = ""
    html = ""

    body = payload.get("body") or {}
    if body.get("size"):
        content = decode_base64_text(body.get("data"))
        if payload.get("mimeType") == TEXT_HTML:
            html = content
        else:
            # text/plain and anything unrecognized
            text = content
        return EmailBody(text=text, html=html)

    queue = deque(payload.get("parts") or [])
    while queue:
        part = queue.popleft()

        if part.get("parts"):
            queue.extend(part["parts"])

        data = (part.get("body") or {}).get("data")
        if data is None:
            continue

        mime_type = part.get("mimeType")
        if mime_type == TEXT_PLAIN:
            text = decode_base64_text(data)
        elif mime_type == TEXT_HTML:
            html = decode_base64_text(data)

    return EmailBody(text=text, html=html)


def decode_base64_bytes(data: str | None) -> bytes:
    """Decode standard or URL-safe base64, tolerating missing padding.

    Raises:
        ValueError: If the data is not valid base64.
    """
    if not data:
        return b""

    normalized = data.strip().replace("+", "-").replace("/", "_")
    normalized += "=" * (-len(normalized) % 4)
    try:
        return base64.urlsafe_b64decode(normalized)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 content: {e}") from e


def decode_base64_text(data: str | None) -> str:
    """Decode base64 content as UTF-8 text."""
    return decode_base64_bytes(data).decode("utf-8", errors="replace")
