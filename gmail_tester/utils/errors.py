"""Base error type shared by every gmail_tester failure."""


class GmailTesterError(Exception):
    """Base class for errors surfaced to callers.

    Subclasses set ``code`` so callers can branch on the failure kind
    without matching on message text.
    """

    code = "error"
