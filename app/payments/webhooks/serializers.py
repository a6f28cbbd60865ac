"""
DRF serializers validating provider webhook bodies.

Only the fields the pipeline reads are declared; providers send many more
and those are kept untouched in the stored payload.

Usage:
    serializer = get_webhook_serializer(PaymentMethod.WEEPAY)(data=payload)
    serializer.is_valid(raise_exception=False)
"""

from __future__ import annotations

from rest_framework import serializers

from payments.state_machines import PaymentMethod


class CryptomusWebhookSerializer(serializers.Serializer):
    """
    Cryptomus payment webhook.

    Fields:
        uuid: Cryptomus invoice id
        order_id: Our order number (or payment id for older invoices)
        status: Cryptomus payment status (paid, cancel, check, ...)
    """

    uuid = serializers.CharField(max_length=255)
    order_id = serializers.CharField(max_length=255)
    status = serializers.CharField(max_length=64)
    amount = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    currency = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class WeepayWebhookSerializer(serializers.Serializer):
    """
    Weepay payment webhook.

    Fields:
        order_id: Our payment id
        payment_id: Weepay transaction id
        status: Weepay payment status (success, failed, pending, ...)
    """

    order_id = serializers.CharField(max_length=255)
    payment_id = serializers.CharField(max_length=255)
    status = serializers.CharField(max_length=64)
    amount = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    currency = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate_status(self, value: str) -> str:
        return value.strip()


WEBHOOK_SERIALIZERS = {
    PaymentMethod.CRYPTOMUS: CryptomusWebhookSerializer,
    PaymentMethod.WEEPAY: WeepayWebhookSerializer,
}


def get_webhook_serializer(provider: str) -> type[serializers.Serializer]:
    return WEBHOOK_SERIALIZERS[provider]
