"""
Service layer for Ledge.

Business operations that sit between the HTTP routes and the
repositories: subscriber lifecycle and email delivery.
"""

from .email_service import EmailService, EmailSendResult, render_newsletter_html
from .subscriber_service import (
    SubscriberService,
    SubscriberError,
    SubscriberNotFound,
    InvalidSubscriberInput,
    LegislationNotFound,
)

__all__ = [
    "EmailService",
    "EmailSendResult",
    "render_newsletter_html",
    "SubscriberService",
    "SubscriberError",
    "SubscriberNotFound",
    "InvalidSubscriberInput",
    "LegislationNotFound",
]
