"""
Tests for the toolkit app.

This package contains test modules for:
- test_helpers.py: PII masking helpers
- test_email.py: EmailService template rendering and sending

Usage:
    pytest toolkit/tests/
"""
