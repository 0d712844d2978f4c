"""Gmail API client behind a small capability interface."""

from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Protocol

import httplib2
from google.auth.exceptions import RefreshError, TransportError as GoogleTransportError
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from gmail_tester.auth.oauth import AuthorizationError, ClientSecretsRef, GmailOAuth
from gmail_tester.auth.token_storage import TokenRef
from gmail_tester.gmail.decoder import decode_base64_bytes
from gmail_tester.models.email import Attachment
from gmail_tester.utils.errors import GmailTesterError
from gmail_tester.utils.logging import logger


class TransportError(GmailTesterError):
    """Raised when a Gmail API call fails."""

    code = "transport"


@dataclass
class AuthContext:
    """Authorized session: credentials plus the API resource built on them."""

    credentials: Credentials
    service: Any = None


class MailClient(Protocol):
    """Operations the inbox poller and reply composer need from a mail service."""

    def authorize(self, credentials: ClientSecretsRef, token: TokenRef) -> Any:
        ...

    def search(self, auth: Any, query: str, label: str | None) -> list[dict[str, Any]]:
        ...

    def fetch_attachments(self, auth: Any, raw_message: dict[str, Any]) -> list[Attachment]:
        ...

    def send(self, auth: Any, raw: str, thread_id: str) -> dict[str, Any]:
        ...

    def refresh_token(self, auth: Any) -> dict[str, Any]:
        ...


class GmailClient:
    """Gmail API v1 implementation of ``MailClient``.

    Every call is made on behalf of ``user_id`` ("me" is the authorized
    account). API and network failures surface as ``TransportError``;
    failed implicit token refreshes surface as ``AuthorizationError``.
    """

    def __init__(
        self,
        oauth: GmailOAuth | None = None,
        user_id: str = "me",
        num_retries: int = 0,
    ) -> None:
        """Initialize client.

        Args:
            oauth: OAuth handler used to build and refresh credentials.
            user_id: Mailbox to operate on.
            num_retries: Retries googleapiclient applies to 5xx/429 responses.
        """
        self.oauth = oauth or GmailOAuth()
        self.user_id = user_id
        self.num_retries = num_retries

    def authorize(self, credentials: ClientSecretsRef, token: TokenRef) -> AuthContext:
        """Build an authorized Gmail API session.

        Raises:
            AuthorizationError: If credentials or token are unusable.
            TransportError: If the API resource cannot be built.
        """
        creds = self.oauth.authorize(credentials, token)
        with _api_errors("Build Gmail service"):
            service = build("gmail", "v1", credentials=creds, cache_discovery=False)
        return AuthContext(credentials=creds, service=service)

    def search(self, auth: AuthContext, query: str, label: str | None) -> list[dict[str, Any]]:
        """List messages matching ``query`` and fetch each in full.

        Returns:
            Message resources in the order Gmail lists them (newest first).

        Raises:
            TransportError: If an API call fails.
        """
        messages_api = auth.service.users().messages()

        list_kwargs: dict[str, Any] = {"userId": self.user_id, "q": query}
        if label:
            list_kwargs["labelIds"] = [label]

        response = self._execute(messages_api.list(**list_kwargs), "List messages")
        refs = response.get("messages", [])
        logger.debug(f"[gmail] Query '{query}' in {label} matched {len(refs)} message(s)")

        return [
            self._execute(
                messages_api.get(userId=self.user_id, id=ref["id"], format="full"),
                f"Get message {ref['id']}",
            )
            for ref in refs
        ]

    def fetch_attachments(self, auth: AuthContext, raw_message: dict[str, Any]) -> list[Attachment]:
        """Download every attachment of a message.

        Parts are visited breadth-first; any part with a filename counts.

        Raises:
            TransportError: If an attachment download fails.
        """
        attachments: list[Attachment] = []
        queue = deque((raw_message.get("payload") or {}).get("parts") or [])

        while queue:
            part = queue.popleft()
            if part.get("parts"):
                queue.extend(part["parts"])

            filename = part.get("filename")
            if not filename:
                continue

            body = part.get("body") or {}
            data = body.get("data")
            if body.get("attachmentId"):
                request = auth.service.users().messages().attachments().get(
                    userId=self.user_id,
                    messageId=raw_message["id"],
                    id=body["attachmentId"],
                )
                data = self._execute(request, f"Get attachment {filename}").get("data")

            if data is None:
                continue

            attachments.append(
                Attachment(
                    filename=filename,
                    mime_type=part.get("mimeType", "application/octet-stream"),
                    data=decode_base64_bytes(data),
                )
            )

        return attachments

    def send(self, auth: AuthContext, raw: str, thread_id: str) -> dict[str, Any]:
        """Send a base64url-encoded RFC 2822 message into a thread.

        Returns:
            The sent message resource.

        Raises:
            TransportError: If the send fails.
        """
        request = auth.service.users().messages().send(
            userId=self.user_id,
            body={"raw": raw, "threadId": thread_id},
        )
        return self._execute(request, "Send message")

    def refresh_token(self, auth: AuthContext) -> dict[str, Any]:
        """Refresh the session's access token.

        Raises:
            AuthorizationError: If the refresh fails.
        """
        return self.oauth.refresh(auth.credentials)

    def _execute(self, request: Any, operation_name: str) -> dict[str, Any]:
        """Execute an API request, mapping library errors to ours."""
        with _api_errors(operation_name):
            return request.execute(num_retries=self.num_retries)


@contextmanager
def _api_errors(operation_name: str) -> Iterator[None]:
    """Translate googleapiclient, httplib2 and google-auth failures."""
    try:
        yield
    except HttpError as e:
        raise TransportError(f"{operation_name} failed: {e}") from e
    except RefreshError as e:
        raise AuthorizationError(f"{operation_name} failed, token refresh rejected: {e}") from e
    # DNS failures and refresh requests that never reached the token endpoint
    except (httplib2.HttpLib2Error, GoogleTransportError, OSError) as e:
        raise TransportError(f"{operation_name} failed: {e}") from e
