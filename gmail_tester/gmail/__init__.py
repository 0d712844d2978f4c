"""Gmail API access: query building, message decoding and the API client."""

from gmail_tester.gmail.client import AuthContext, GmailClient, MailClient, TransportError
from gmail_tester.gmail.decoder import MessageDecoder
from gmail_tester.gmail.search import FilterOptions, build_query

__all__ = [
    "AuthContext",
    "FilterOptions",
    "GmailClient",
    "MailClient",
    "MessageDecoder",
    "TransportError",
    "build_query",
]
