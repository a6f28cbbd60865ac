"""
Webhook endpoint for payment providers.

The view runs the webhook pipeline synchronously:
1. Verifies the signature over the raw body (before any database access)
2. Parses and validates the body
3. Maps the provider status; NO_OP statuses are acknowledged and dropped
4. Resolves the Payment
5. Applies the outcome in one transaction
6. Queues the post-commit work (email, delivery, conflict sweep)

Status codes tell the provider whether to retry: 2xx stops retries,
401/400/404 are permanent for that delivery, 500 asks for a retry.

Usage:
    # In urls.py
    from payments.webhooks.views import payment_webhook

    urlpatterns = [
        path("webhooks/<str:provider>/", payment_webhook, name="payment_webhook"),
    ]
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from core.exceptions import BaseApplicationError
from payments.exceptions import (
    PaymentNotFoundError,
    UnsupportedProviderError,
    WebhookSignatureError,
)
from payments.models import WebhookEvent
from payments.services.fulfillment import FulfillmentKind, FulfillmentService
from payments.state_machines import WebhookOutcome
from payments.webhooks.resolvers import extract_reference, resolve_payment
from payments.webhooks.serializers import get_webhook_serializer
from payments.webhooks.signatures import (
    WebhookSecrets,
    provider_from_slug,
    verify_signature,
)
from payments.webhooks.status_maps import CanonicalOutcome, map_status

if TYPE_CHECKING:
    from typing import Any

    from payments.models import Payment

logger = logging.getLogger(__name__)

FULFILLMENT_AUDIT_OUTCOMES = {
    FulfillmentKind.COMPLETED: WebhookOutcome.APPLIED,
    FulfillmentKind.FAILED: WebhookOutcome.APPLIED,
    FulfillmentKind.CANCELLED: WebhookOutcome.APPLIED,
    FulfillmentKind.ORDER_CLOSED: WebhookOutcome.APPLIED,
    FulfillmentKind.CAPTURED_AFTER_CANCEL: WebhookOutcome.APPLIED,
    FulfillmentKind.STOCK_CONFLICT: WebhookOutcome.STOCK_CONFLICT,
    FulfillmentKind.ALREADY_APPLIED: WebhookOutcome.ALREADY_APPLIED,
}


def _error_response(exc: BaseApplicationError, status: int) -> JsonResponse:
    return JsonResponse({"success": False, **exc.to_dict()}, status=status)


def _record_event(
    provider: str,
    payload: dict[str, Any],
    outcome: str,
    http_status: int,
    canonical: CanonicalOutcome | None = None,
    payment: Payment | None = None,
    error_message: str | None = None,
) -> None:
    """Write the audit row. Never lets a failure reach the response."""
    try:
        WebhookEvent.objects.create(
            provider=provider,
            provider_payment_id=extract_reference(provider, payload).provider_payment_id,
            provider_status=str(payload.get("status") or "")[:64],
            canonical_outcome=canonical.value if canonical else "",
            payment=payment,
            payload=payload,
            outcome=outcome,
            http_status=http_status,
            error_message=error_message,
        )
    except Exception:
        logger.exception(
            "Failed to record webhook event",
            extra={"provider": provider, "outcome": outcome},
        )


def _queue_dispatch(result) -> None:
    try:
        from payments.tasks import dispatch_post_commit

        dispatch_post_commit.delay(result.to_dict())
    except Exception:
        # Outcome is committed; the response must not change.
        logger.exception(
            "Failed to queue post-commit dispatch",
            extra={"order_id": result.order_id, "kind": result.kind.value},
        )


@csrf_exempt
@require_POST
def payment_webhook(request: HttpRequest, provider: str) -> JsonResponse:
    """
    Receive one provider webhook and apply it.

    Returns:
        JsonResponse with status:
        - 200: Applied, already applied, or ignored (NO_OP status)
        - 400: Malformed JSON or missing required fields
        - 401: Signature missing or invalid
        - 404: Unknown provider or no matching payment
        - 500: Unexpected failure; the provider should retry
    """
    try:
        method = provider_from_slug(provider)
    except UnsupportedProviderError as e:
        logger.warning("Webhook for unknown provider", extra={"provider": provider})
        return _error_response(e, status=404)

    # Step 1: Verify signature over the raw bytes
    raw_body = request.body
    try:
        verify_signature(method, raw_body, request.headers, WebhookSecrets.from_settings())
    except WebhookSignatureError as e:
        logger.warning(
            "Webhook signature rejected",
            extra={"provider": method, "error_code": e.error_code},
        )
        return JsonResponse(
            {"success": False, "error": "Invalid signature", "error_code": e.error_code},
            status=401,
        )

    # Step 2: Parse and validate
    try:
        payload = json.loads(raw_body)
    except (ValueError, UnicodeDecodeError):
        logger.warning("Webhook body is not valid JSON", extra={"provider": method})
        return JsonResponse(
            {"success": False, "error": "Malformed JSON", "error_code": "MALFORMED_PAYLOAD"},
            status=400,
        )
    if not isinstance(payload, dict):
        return JsonResponse(
            {"success": False, "error": "Expected a JSON object", "error_code": "MALFORMED_PAYLOAD"},
            status=400,
        )

    serializer = get_webhook_serializer(method)(data=payload)
    if not serializer.is_valid():
        logger.warning(
            "Webhook missing required fields",
            extra={"provider": method, "fields": sorted(serializer.errors)},
        )
        return JsonResponse(
            {
                "success": False,
                "error": "Missing required fields",
                "error_code": "VALIDATION_ERROR",
                "details": serializer.errors,
            },
            status=400,
        )
    data = serializer.validated_data

    # Step 3: Map status
    canonical = map_status(method, data["status"])
    logger.info(
        "Received payment webhook",
        extra={"provider": method, "provider_status": data["status"], "outcome": canonical.value},
    )
    if canonical is CanonicalOutcome.NO_OP:
        _record_event(method, payload, WebhookOutcome.IGNORED, 200, canonical)
        return JsonResponse({"success": True, "status": "ignored"}, status=200)

    payment = None
    try:
        # Step 4: Resolve
        try:
            reference = extract_reference(method, data)
            payment = resolve_payment(reference)
        except PaymentNotFoundError as e:
            logger.warning(
                "Webhook payment not found",
                extra={"provider": method, **e.details},
            )
            _record_event(method, payload, WebhookOutcome.NOT_FOUND, 404, canonical)
            return _error_response(e, status=404)

        # Step 5: Apply
        result = FulfillmentService.apply(
            payment_id=payment.id,
            outcome=canonical,
            provider_payment_id=reference.provider_payment_id,
            payload=payload,
            provider_status=data["status"],
            preloaded=payment,
        )
    except Exception as e:
        logger.error(
            f"Webhook processing failed: {type(e).__name__}",
            extra={"provider": method, "payment_id": str(payment.id) if payment else None},
            exc_info=True,
        )
        _record_event(method, payload, WebhookOutcome.ERROR, 500, canonical, payment, str(e))
        return JsonResponse(
            {"success": False, "error": "Internal error", "error_code": "INTERNAL_ERROR"},
            status=500,
        )

    _record_event(method, payload, FULFILLMENT_AUDIT_OUTCOMES[result.kind], 200, canonical, payment)

    # Step 6: Post-commit work
    if result.kind in (FulfillmentKind.COMPLETED, FulfillmentKind.STOCK_CONFLICT):
        _queue_dispatch(result)

    return JsonResponse(
        {
            "success": True,
            "status": result.kind.value.lower(),
            "payment_status": result.payment_status,
            "order_status": result.order_status,
        },
        status=200,
    )
