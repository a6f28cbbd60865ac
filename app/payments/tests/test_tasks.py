"""
Tests for payment Celery tasks (run eagerly in tests).
"""

from unittest.mock import patch

import pytest

from payments.services.dispatcher import DispatchReport
from payments.services.fulfillment import FulfillmentKind, FulfillmentResult
from payments.tasks import dispatch_post_commit


pytestmark = pytest.mark.django_db


def test_dispatch_post_commit_rebuilds_result():
    result = FulfillmentResult(
        kind=FulfillmentKind.COMPLETED,
        payment_id="p-1",
        order_id="o-1",
        payment_status="COMPLETED",
        order_status="COMPLETED",
        order_item_ids=["i-1"],
    )

    with patch(
        "payments.services.dispatcher.PostCommitDispatcher.dispatch",
        return_value=DispatchReport(email_sent=True, delivered_item_ids=["i-1"]),
    ) as dispatch:
        report = dispatch_post_commit.delay(result.to_dict()).get()

    dispatch.assert_called_once_with(result)
    assert report["email_sent"] is True
    assert report["delivered_item_ids"] == ["i-1"]


def test_dispatch_post_commit_for_ignored_kind(pending_payment):
    result = FulfillmentResult(
        kind=FulfillmentKind.ALREADY_APPLIED,
        payment_id=str(pending_payment.id),
        order_id=str(pending_payment.order_id),
        payment_status="COMPLETED",
        order_status="COMPLETED",
    )

    report = dispatch_post_commit(result.to_dict())

    assert report == DispatchReport().to_dict()
