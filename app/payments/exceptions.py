"""
Payment-specific exceptions for payment operations.

Exception Hierarchy:
    PaymentError (base for payment domain)
    ├── PaymentNotFoundError - No Payment matches a webhook's references
    └── PaymentValidationError - Malformed webhook body or refund request

    WebhookSignatureError - Missing or mismatching HMAC (inherits AuthenticationError)
    UnsupportedProviderError - Webhook for a provider we do not serve (inherits NotFoundError)
    InvalidStateTransitionError - FSM transition not allowed (inherits ConflictError)

The webhook view maps these onto HTTP statuses:
    WebhookSignatureError -> 401
    PaymentValidationError -> 400
    PaymentNotFoundError, UnsupportedProviderError -> 404

Usage:
    from payments.exceptions import PaymentNotFoundError

    payment = resolve(reference)
    if payment is None:
        raise PaymentNotFoundError(
            "No payment matches webhook",
            details={"provider_payment_id": reference.provider_payment_id},
        )
"""

from __future__ import annotations

from core.exceptions import (
    AuthenticationError,
    BaseApplicationError,
    ConflictError,
    NotFoundError,
)


class PaymentError(BaseApplicationError):
    """
    Base exception for all payment operations.

    Example:
        try:
            RefundService.refund_payment(payment_id)
        except PaymentError as e:
            logger.error(f"Payment operation failed: {e}")
            return JsonResponse(e.to_dict(), status=400)
    """

    default_error_code: str = "PAYMENT_ERROR"


class PaymentNotFoundError(PaymentError):
    """
    Raised when a payment cannot be found.

    Use for:
    - Webhook references that match no Payment
    - Refunds requested for an unknown payment id
    """

    default_error_code: str = "PAYMENT_NOT_FOUND"


class PaymentValidationError(PaymentError):
    """
    Raised when payment input fails validation.

    Use for:
    - Webhook bodies that are not JSON or miss required fields
    - Refund amounts that are not positive or exceed what was paid
    """

    default_error_code: str = "PAYMENT_VALIDATION_ERROR"


class WebhookSignatureError(AuthenticationError):
    """
    Raised when a webhook signature cannot be verified.

    The message never contains the secret or the received signature.
    """

    default_error_code: str = "INVALID_SIGNATURE"


class UnsupportedProviderError(NotFoundError):
    default_error_code: str = "UNSUPPORTED_PROVIDER"


class InvalidStateTransitionError(ConflictError):
    """
    Raised when a state machine transition is not allowed.

    This exception wraps django-fsm's TransitionNotAllowed to provide
    our standard error format with additional context.

    Example:
        from django_fsm import TransitionNotAllowed

        try:
            payment.refund_full()
        except TransitionNotAllowed:
            raise InvalidStateTransitionError(
                f"Cannot refund payment from '{payment.status}' state",
                details={
                    "current_state": payment.status,
                    "transition": "refund_full",
                },
            )
    """

    default_error_code: str = "INVALID_STATE_TRANSITION"
