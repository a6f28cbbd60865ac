"""
Payment services.

This module provides:
- FulfillmentService: Applies a webhook outcome in one transaction
- PostCommitDispatcher: Email, delivery and conflict sweep after commit
- ConflictSweepService: Cancels PENDING orders that lost their stock
- RefundService: Records full and partial refunds

Usage:
    from payments.services import FulfillmentService, PostCommitDispatcher

    result = FulfillmentService.apply(payment.id, CanonicalOutcome.COMPLETED)
    PostCommitDispatcher.dispatch(result)
"""

from payments.services.conflict_sweep import ConflictSweepService, SweepReport
from payments.services.dispatcher import DispatchReport, PostCommitDispatcher
from payments.services.fulfillment import (
    FulfillmentKind,
    FulfillmentResult,
    FulfillmentService,
)
from payments.services.refund_service import RefundOutcome, RefundService

__all__ = [
    "ConflictSweepService",
    "DispatchReport",
    "FulfillmentKind",
    "FulfillmentResult",
    "FulfillmentService",
    "PostCommitDispatcher",
    "RefundOutcome",
    "RefundService",
    "SweepReport",
]
