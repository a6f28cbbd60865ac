"""
Payments app for provider webhooks and fulfilment.

This app handles:
- Payment attempts through Cryptomus and Weepay
- Webhook verification, status mapping and payment resolution
- The fulfilment transaction and its post-commit follow-ups
- Subscriptions granted by completed payments
- Refund bookkeeping

Related apps:
    - orders: Orders, items and carts being paid for
    - catalog: Plans and stock checked during fulfilment
    - delivery: Stock hand-out and manual delivery tickets

Usage:
    from payments.services import FulfillmentService

    result = FulfillmentService.apply(payment.id, CanonicalOutcome.COMPLETED)
"""
