"""Public inbox operations: poll, list, refresh token and reply."""

import time
from dataclasses import fields
from typing import Any, Callable, Union

from gmail_tester.auth.oauth import AuthorizationError, ClientSecretsRef, GmailOAuth
from gmail_tester.auth.token_storage import TokenRef, TokenStore, default_token_store
from gmail_tester.gmail.client import GmailClient, MailClient
from gmail_tester.gmail.search import FilterOptions
from gmail_tester.inbox.mailbox import Mailbox
from gmail_tester.inbox.poller import InboxPoller
from gmail_tester.inbox.reply import ReplyComposer
from gmail_tester.models.email import Email
from gmail_tester.utils.logging import logger

OptionsArg = Union[FilterOptions, dict[str, Any], None]

# Token fields copied back to the store after a refresh
_REFRESHED_FIELDS = ("access_token", "refresh_token", "expiry_date")


def check_inbox(
    credentials: ClientSecretsRef,
    token: TokenRef,
    options: OptionsArg = None,
    *,
    client: MailClient | None = None,
    token_store: TokenStore | None = None,
    sleep: Callable[[float], None] = time.sleep,
    **filters: Any,
) -> list[Email] | None:
    """Poll the inbox until a matching message arrives.

    Args:
        credentials: Client secrets file path or parsed document.
        token: Token file path or token dict.
        options: Filter and polling options, as FilterOptions or a dict.
        client: Mail client; defaults to the Gmail API client.
        token_store: Token store; defaults by token reference type.
        sleep: Sleep function used between searches.
        **filters: Individual options, overriding ``options``.

    Returns:
        Matching emails, or None if none arrived within the wait budget.

    Raises:
        AuthorizationError: If authorization fails.
        TransportError: If a search fails; searches are not retried.
    """
    opts = resolve_options(options, filters)
    mailbox = Mailbox.open(_client(client, token_store), credentials, token)
    return InboxPoller(mailbox, sleep=sleep).poll(opts)


def get_messages(
    credentials: ClientSecretsRef,
    token: TokenRef,
    options: OptionsArg = None,
    *,
    client: MailClient | None = None,
    token_store: TokenStore | None = None,
    **filters: Any,
) -> list[Email] | None:
    """Return the messages currently matching the options, without polling.

    Unlike the other operations, failures are logged and None is returned
    instead of raising. This includes invalid options.
    """
    try:
        opts = resolve_options(options, filters)
        mailbox = Mailbox.open(_client(client, token_store), credentials, token)
        return mailbox.search(opts)
    except Exception as e:
        logger.error(f"[gmail] Error: {e}")
        return None


def refresh_access_token(
    credentials: ClientSecretsRef,
    token: TokenRef,
    *,
    client: MailClient | None = None,
    token_store: TokenStore | None = None,
) -> None:
    """Refresh the access token and write it back to the token store.

    Raises:
        AuthorizationError: If the refresh fails or returns no tokens.
    """
    store = token_store or default_token_store(token)
    mailbox = Mailbox.open(_client(client, store), credentials, token)

    refreshed = mailbox.refresh_token()
    if not refreshed:
        raise AuthorizationError(f"Refresh access token failed! Response: {refreshed}")

    new_token = store.get(token)
    for key in _REFRESHED_FIELDS:
        if refreshed.get(key):
            new_token[key] = refreshed[key]
    store.store(new_token, token)
    logger.info("[gmail] Access token refreshed")


def reply_to_email(
    credentials: ClientSecretsRef,
    token: TokenRef,
    body_text: str,
    criteria: OptionsArg = None,
    *,
    client: MailClient | None = None,
    token_store: TokenStore | None = None,
    **filters: Any,
) -> dict[str, Any]:
    """Reply to the most recent message matching ``criteria``.

    Returns:
        The sent message resource.

    Raises:
        NotFoundError: If no message matches.
        MalformedEmailError: If the match lacks sender, subject or thread id.
    """
    opts = resolve_options(criteria, filters)
    mailbox = Mailbox.open(_client(client, token_store), credentials, token)
    return ReplyComposer(mailbox).reply(opts, body_text)


def resolve_options(options: OptionsArg, overrides: dict[str, Any]) -> FilterOptions:
    """Merge ``options`` and keyword overrides into FilterOptions."""
    if isinstance(options, FilterOptions):
        if not overrides:
            return options
        base = {f.name: getattr(options, f.name) for f in fields(FilterOptions)}
    else:
        base = dict(options or {})
    return FilterOptions.from_dict({**base, **overrides})


def _client(client: MailClient | None, token_store: TokenStore | None) -> MailClient:
    return client or GmailClient(GmailOAuth(token_store=token_store))
