"""Builders and fakes shared by the test modules."""

import base64
from typing import Any

from gmail_tester.models.email import Attachment


def b64(text: str) -> str:
    """Encode text the way the Gmail API encodes part bodies."""
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii")


def make_message(
    message_id: str = "msg-1",
    thread_id: str | None = "thread-1",
    headers: list[dict[str, str]] | None = None,
    payload: dict[str, Any] | None = None,
    internal_date: str = "1705314600000",
) -> dict[str, Any]:
    """Build a Gmail API message resource."""
    if headers is None:
        headers = [
            {"name": "From", "value": "sender@example.com"},
            {"name": "Delivered-To", "value": "recipient@example.com"},
            {"name": "Subject", "value": "Order Confirmation"},
            {"name": "Message-ID", "value": "<abc123@mail.example.com>"},
        ]
    payload = dict(payload or {"mimeType": "text/plain", "body": {"size": 5, "data": "aGVsbG8="}})
    payload["headers"] = headers

    message = {"id": message_id, "payload": payload, "internalDate": internal_date}
    if thread_id is not None:
        message["threadId"] = thread_id
    return message


class FakeMailClient:
    """In-memory MailClient recording every call.

    ``search_results`` is consumed one entry per search; an entry that is
    an exception is raised instead of returned. Once exhausted, searches
    return an empty list.
    """

    def __init__(
        self,
        search_results: list[Any] | None = None,
        attachments: dict[str, list[Attachment]] | None = None,
        refresh_result: dict[str, Any] | None = None,
    ) -> None:
        self.search_results = list(search_results or [])
        self.attachments = attachments or {}
        self.refresh_result = refresh_result if refresh_result is not None else {}
        self.authorize_calls: list[tuple[Any, Any]] = []
        self.search_calls: list[tuple[str, str | None]] = []
        self.sent: list[tuple[str, str]] = []
        self.authorize_error: Exception | None = None

    def authorize(self, credentials: Any, token: Any) -> str:
        self.authorize_calls.append((credentials, token))
        if self.authorize_error:
            raise self.authorize_error
        return "auth-context"

    def search(self, auth: Any, query: str, label: str | None) -> list[dict[str, Any]]:
        assert auth == "auth-context"
        self.search_calls.append((query, label))
        if not self.search_results:
            return []
        result = self.search_results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    def fetch_attachments(self, auth: Any, raw_message: dict[str, Any]) -> list[Attachment]:
        return self.attachments.get(raw_message["id"], [])

    def send(self, auth: Any, raw: str, thread_id: str) -> dict[str, Any]:
        self.sent.append((raw, thread_id))
        return {"id": "sent-1", "threadId": thread_id, "labelIds": ["SENT"]}

    def refresh_token(self, auth: Any) -> dict[str, Any]:
        return self.refresh_result
