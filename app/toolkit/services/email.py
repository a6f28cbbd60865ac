"""
Email service for centralized email sending.

This module provides the EmailService class for sending emails with:
- Django template rendering for HTML and plain text
- Raw-content messages for callers without a template

Configuration:
    Email settings are read from Django settings:
    - EMAIL_BACKEND
    - EMAIL_HOST, EMAIL_PORT
    - DEFAULT_FROM_EMAIL

Usage:
    from toolkit.services.email import EmailService

    EmailService.send(
        to="user@example.com",
        subject="Order confirmed",
        template_name="orders/emails/order_confirmation",
        context={"order_number": "ORD-20261016-9F2C1A7B"},
    )
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template import TemplateDoesNotExist
from django.template.loader import render_to_string
from django.utils.html import strip_tags

logger = logging.getLogger(__name__)


class EmailService:
    """
    Centralized email sending with template support.

    Both entry points return True when the backend accepted the message and
    False when sending failed. Failures are logged, not raised, so callers
    running after a committed transaction can treat email as best effort.

    Usage:
        success = EmailService.send(
            to="user@example.com",
            subject="Order confirmed",
            template_name="orders/emails/order_confirmation",
            context={"order_number": "ORD-1"},
        )

        success = EmailService.send_raw(
            to="user@example.com",
            subject="Quick note",
            body_text="Plain text content",
            body_html="<p>HTML content</p>",
        )
    """

    @staticmethod
    def send(
        to: str | list[str],
        subject: str,
        template_name: str,
        context: dict,
        from_email: str | None = None,
    ) -> bool:
        """
        Send email using a template.

        Args:
            to: Recipient email address(es)
            subject: Email subject line
            template_name: Name of template (without extension)
                           Looks for: {template_name}.html and {template_name}.txt
            context: Template context variables
            from_email: Sender email (defaults to DEFAULT_FROM_EMAIL)

        Returns:
            True if email was sent successfully
        """
        try:
            html_content = render_to_string(f"{template_name}.html", context)
        except TemplateDoesNotExist:
            html_content = None

        try:
            text_content = render_to_string(f"{template_name}.txt", context)
        except TemplateDoesNotExist:
            text_content = strip_tags(html_content) if html_content else ""

        return EmailService.send_raw(
            to=to,
            subject=subject,
            body_text=text_content,
            body_html=html_content,
            from_email=from_email,
        )

    @staticmethod
    def send_raw(
        to: str | list[str],
        subject: str,
        body_text: str,
        body_html: str | None = None,
        from_email: str | None = None,
    ) -> bool:
        """
        Send email with raw content (no template).

        Args:
            to: Recipient email address(es)
            subject: Email subject line
            body_text: Plain text email body
            body_html: HTML email body (optional)
            from_email: Sender email (defaults to DEFAULT_FROM_EMAIL)

        Returns:
            True if email was sent successfully
        """
        if isinstance(to, str):
            to = [to]

        email = EmailMultiAlternatives(
            subject=subject,
            body=body_text,
            from_email=from_email or settings.DEFAULT_FROM_EMAIL,
            to=to,
        )

        if body_html:
            email.attach_alternative(body_html, "text/html")

        try:
            email.send(fail_silently=False)
        except Exception:
            logger.exception(
                "Failed to send email",
                extra={"subject": subject, "recipient_count": len(to)},
            )
            return False

        logger.info(
            "Email sent",
            extra={"subject": subject, "recipient_count": len(to)},
        )
        return True
