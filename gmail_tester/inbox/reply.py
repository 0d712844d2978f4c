"""Compose and send threaded replies."""

import base64
import re
from typing import Any, Protocol

from gmail_tester.gmail.search import FilterOptions
from gmail_tester.models.email import Email
from gmail_tester.utils.errors import GmailTesterError
from gmail_tester.utils.logging import logger

_REPLY_PREFIX = re.compile(r"^Re:", re.IGNORECASE)


class NotFoundError(GmailTesterError):
    """Raised when no message matches the reply criteria."""

    code = "not_found"


class MalformedEmailError(GmailTesterError):
    """Raised when the reply target lacks sender, subject or thread id."""

    code = "malformed_email"


class ReplyMailbox(Protocol):
    def search(self, options: FilterOptions) -> list[Email]:
        ...

    def send(self, raw: str, thread_id: str) -> dict[str, Any]:
        ...


class ReplyComposer:
    """Reply to the most recent message matching given criteria.

    The lookup is a single search, not a poll. "Most recent" is whatever
    the service lists first; results are not re-sorted.
    """

    def __init__(self, mailbox: ReplyMailbox) -> None:
        self.mailbox = mailbox

    def reply(self, criteria: FilterOptions, body_text: str) -> dict[str, Any]:
        """Find the target message and send ``body_text`` as a reply.

        Args:
            criteria: Filter options selecting the message to reply to.
            body_text: Plain-text reply body.

        Returns:
            The service response for the sent message.

        Raises:
            NotFoundError: If nothing matches.
            MalformedEmailError: If the match cannot be replied to.
        """
        emails = self.mailbox.search(criteria)
        if not emails:
            raise NotFoundError("No email found matching the provided criteria.")

        original = emails[0]
        if not original.sender or not original.subject or not original.thread_id:
            raise MalformedEmailError("Missing required information from the original email.")

        raw = encode_message(build_reply(original, body_text))
        return self.mailbox.send(raw, original.thread_id)


def reply_subject(subject: str) -> str:
    """Prefix ``subject`` with "Re: " unless it already starts with it."""
    if _REPLY_PREFIX.match(subject):
        return subject
    return f"Re: {subject}"


def build_reply(original: Email, body_text: str) -> str:
    """Build the RFC 2822 reply document.

    "From: me" lets Gmail fill in the authorized account's address.
    Threading headers are only added when the original Message-ID is known.
    """
    lines = [
        "From: me",
        f"To: {original.sender}",
        f"Subject: {reply_subject(original.subject or '')}",
    ]

    if original.message_id:
        logger.info(f"[gmail] Adding threading headers with Message-ID: {original.message_id}")
        lines.append(f"In-Reply-To: {original.message_id}")
        lines.append(f"References: {original.message_id}")
    else:
        logger.warning("[gmail] No Message-ID found in the original email, skipping threading headers")

    lines.extend(["", body_text])
    return "\n".join(lines)


def encode_message(message: str) -> str:
    """Encode a message as unpadded base64url, as the Gmail API expects."""
    return base64.urlsafe_b64encode(message.encode("utf-8")).decode("ascii").rstrip("=")
