"""
Toolkit - shared outbound services and helpers.

Key components:
    - services/email.py: EmailService (template and raw email sending)
    - helpers.py: PII masking for log output

Usage:
    from toolkit.services.email import EmailService
    from toolkit.helpers import mask_email

Note:
    This app has no models.
"""
