"""
Helper functions for handling customer PII in log output.

Usage:
    from toolkit.helpers import mask_email

    logger.info("Confirmation sent", extra={"recipient": mask_email(email)})
"""

from __future__ import annotations


def mask_email(email: str | None) -> str:
    """
    Mask email for display.

    Keeps the first character and the domain visible.

    Example:
        masked = mask_email("john.doe@example.com")  # "j***@example.com"
    """
    if not email or "@" not in email:
        return "***"

    local, domain = email.rsplit("@", 1)

    if len(local) > 1:
        masked_local = local[0] + "***"
    else:
        masked_local = "***"

    return f"{masked_local}@{domain}"
