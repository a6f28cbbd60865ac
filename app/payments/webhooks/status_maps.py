"""
Provider status strings mapped to canonical outcomes.

Tables are exhaustive per provider. Anything not listed, including
statuses a provider adds later, maps to NO_OP: the webhook is acknowledged
so the provider stops retrying, and nothing is changed.

Usage:
    from payments.webhooks.status_maps import CanonicalOutcome, map_status

    if map_status(PaymentMethod.CRYPTOMUS, "paid") is CanonicalOutcome.COMPLETED:
        ...
"""

from __future__ import annotations

import enum
from types import MappingProxyType
from typing import TYPE_CHECKING

from payments.state_machines import PaymentMethod

if TYPE_CHECKING:
    from collections.abc import Mapping


class CanonicalOutcome(str, enum.Enum):
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    NO_OP = "NO_OP"


_CRYPTOMUS = {
    "paid": CanonicalOutcome.COMPLETED,
    "paid_over": CanonicalOutcome.COMPLETED,
    "fail": CanonicalOutcome.FAILED,
    "wrong_amount": CanonicalOutcome.FAILED,
    "system_fail": CanonicalOutcome.FAILED,
    "cancel": CanonicalOutcome.FAILED,
    "refund_paid": CanonicalOutcome.CANCELLED,
    # Transitional: acknowledge only
    "check": CanonicalOutcome.NO_OP,
    "process": CanonicalOutcome.NO_OP,
    "confirm_check": CanonicalOutcome.NO_OP,
    "wrong_amount_waiting": CanonicalOutcome.NO_OP,
    "refund_process": CanonicalOutcome.NO_OP,
    "refund_fail": CanonicalOutcome.NO_OP,
    "locked": CanonicalOutcome.NO_OP,
}

_WEEPAY = {
    "success": CanonicalOutcome.COMPLETED,
    "completed": CanonicalOutcome.COMPLETED,
    "paid": CanonicalOutcome.COMPLETED,
    "failed": CanonicalOutcome.FAILED,
    "error": CanonicalOutcome.FAILED,
    "declined": CanonicalOutcome.FAILED,
    "cancelled": CanonicalOutcome.CANCELLED,
    "canceled": CanonicalOutcome.CANCELLED,
    "refunded": CanonicalOutcome.CANCELLED,
    "pending": CanonicalOutcome.NO_OP,
    "processing": CanonicalOutcome.NO_OP,
}

STATUS_MAPS: Mapping[str, Mapping[str, CanonicalOutcome]] = MappingProxyType(
    {
        PaymentMethod.CRYPTOMUS: MappingProxyType(_CRYPTOMUS),
        PaymentMethod.WEEPAY: MappingProxyType(_WEEPAY),
    }
)


def map_status(provider: str, raw_status: str | None) -> CanonicalOutcome:
    table = STATUS_MAPS.get(provider, {})
    return table.get((raw_status or "").strip().lower(), CanonicalOutcome.NO_OP)
