"""Inbox polling, listing and replying."""

from gmail_tester.inbox.mailbox import Mailbox
from gmail_tester.inbox.poller import InboxPoller, PollState
from gmail_tester.inbox.reply import MalformedEmailError, NotFoundError, ReplyComposer
from gmail_tester.inbox.service import (
    check_inbox,
    get_messages,
    refresh_access_token,
    reply_to_email,
)

__all__ = [
    "InboxPoller",
    "Mailbox",
    "MalformedEmailError",
    "NotFoundError",
    "PollState",
    "ReplyComposer",
    "check_inbox",
    "get_messages",
    "refresh_access_token",
    "reply_to_email",
]
