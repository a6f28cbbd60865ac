"""
Celery tasks for payment processing.

Usage:
    from payments.tasks import dispatch_post_commit

    # Queue the follow-ups of a committed fulfilment
    dispatch_post_commit.delay(result.to_dict())
"""

from __future__ import annotations

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(acks_late=True)
def dispatch_post_commit(result_data: dict) -> dict:
    """
    Run email, delivery and the conflict sweep for a fulfilment result.

    Not retried automatically: the dispatcher already isolates each step,
    and delivery and the sweep are safe to re-run by hand.

    Args:
        result_data: FulfillmentResult.to_dict()

    Returns:
        DispatchReport as a dict
    """
    # Import here to avoid circular imports
    from payments.services.dispatcher import PostCommitDispatcher
    from payments.services.fulfillment import FulfillmentResult

    result = FulfillmentResult.from_dict(result_data)
    logger.info(
        "Dispatching post-commit work",
        extra={"order_id": result.order_id, "kind": result.kind.value},
    )
    return PostCommitDispatcher.dispatch(result).to_dict()
