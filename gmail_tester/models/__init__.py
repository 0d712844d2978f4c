"""Data models for email processing."""

from gmail_tester.models.email import Attachment, Email, EmailBody

__all__ = ["Attachment", "Email", "EmailBody"]
