"""Authorized mailbox session combining query building, search and decoding."""

from functools import partial
from typing import Any

from gmail_tester.auth.oauth import ClientSecretsRef
from gmail_tester.auth.token_storage import TokenRef
from gmail_tester.gmail.client import MailClient
from gmail_tester.gmail.decoder import MessageDecoder
from gmail_tester.gmail.search import FilterOptions, build_query
from gmail_tester.models.email import Email


class Mailbox:
    """A mail client bound to one authorized session."""

    def __init__(self, client: MailClient, auth: Any) -> None:
        """Initialize with a client and the auth context it issued.

        Args:
            client: Mail service client.
            auth: Result of ``client.authorize``.
        """
        self.client = client
        self.auth = auth
        self._decoder = MessageDecoder(partial(client.fetch_attachments, auth))

    @classmethod
    def open(cls, client: MailClient, credentials: ClientSecretsRef, token: TokenRef) -> "Mailbox":
        """Authorize ``client`` and return a mailbox for the session."""
        return cls(client, client.authorize(credentials, token))

    def search(self, options: FilterOptions) -> list[Email]:
        """Run one search and decode every result, keeping service order."""
        raw_messages = self.client.search(self.auth, build_query(options), options.label)
        return [self._decoder.decode(raw, options) for raw in raw_messages]

    def send(self, raw: str, thread_id: str) -> dict[str, Any]:
        """Send an encoded message into ``thread_id``."""
        return self.client.send(self.auth, raw, thread_id)

    def refresh_token(self) -> dict[str, Any]:
        """Refresh the session's access token."""
        return self.client.refresh_token(self.auth)
