"""Poll a Gmail mailbox for matching messages and reply to them."""

from gmail_tester.auth.oauth import AuthorizationError
from gmail_tester.gmail.client import TransportError
from gmail_tester.gmail.search import FilterOptions
from gmail_tester.inbox import (
    MalformedEmailError,
    NotFoundError,
    check_inbox,
    get_messages,
    refresh_access_token,
    reply_to_email,
)
from gmail_tester.models.email import Attachment, Email, EmailBody
from gmail_tester.utils.errors import GmailTesterError

__version__ = "1.0.0"

__all__ = [
    "Attachment",
    "AuthorizationError",
    "Email",
    "EmailBody",
    "FilterOptions",
    "GmailTesterError",
    "MalformedEmailError",
    "NotFoundError",
    "TransportError",
    "check_inbox",
    "get_messages",
    "refresh_access_token",
    "reply_to_email",
]
