"""
Stock availability queries for automatic-delivery plans.

Availability of a plan is the number of unused StockItems minus the units
already promised to COMPLETED orders whose items have not been handed a
StockItem yet (delivery runs after the payment commits, so a completed
order holds its units until provisioning consumes them).

Usage:
    from catalog.services import StockAvailability

    with transaction.atomic():
        shortfalls = StockAvailability.find_shortfalls(order.items.all(), lock=True)
        if shortfalls:
            ...

The lock=True form takes row locks on the Plans involved (in primary key
order) so that concurrent fulfilments of the same plans serialize on the
count-then-commit step.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING

from django.db.models import Sum

from core.services import BaseService

from catalog.models import DeliveryType, Plan, StockItem

if TYPE_CHECKING:
    from collections.abc import Iterable
    from typing import Any
    from uuid import UUID

    from orders.models import OrderItem


@dataclass(frozen=True)
class PlanDemand:
    """Total units of one automatic plan requested by an order."""

    plan: Plan
    requested: int


@dataclass(frozen=True)
class StockShortfall:
    """A plan whose requested units exceed what can still be delivered."""

    plan_id: str
    product_name: str
    plan_type: str
    requested: int
    available: int

    def describe(self) -> str:
        return f"{self.product_name} {self.plan_type} ({self.available}/{self.requested})"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ItemAvailability:
    """Per-item availability report used by pre-payment validation."""

    order_item_id: str
    plan_id: str
    product_name: str
    plan_type: str
    requested: int
    available: int | None
    valid: bool
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def describe_shortfalls(shortfalls: Iterable[StockShortfall]) -> str:
    return ", ".join(shortfall.describe() for shortfall in shortfalls)


class StockAvailability(BaseService):
    """Read-side queries over the StockItem pool."""

    @classmethod
    def unused_count(cls, plan_id: UUID | str) -> int:
        return StockItem.objects.filter(plan_id=plan_id, is_used=False).count()

    @classmethod
    def reserved_count(cls, plan_id: UUID | str) -> int:
        """Units promised to completed orders but not yet provisioned."""
        from orders.models import OrderItem, OrderStatus

        reserved = (
            OrderItem.objects.filter(
                plan_id=plan_id,
                plan__delivery_type=DeliveryType.AUTOMATIC,
                order__status=OrderStatus.COMPLETED,
                stock_item__isnull=True,
            ).aggregate(total=Sum("quantity"))["total"]
        )
        return reserved or 0

    @classmethod
    def available_count(cls, plan_id: UUID | str) -> int:
        return max(cls.unused_count(plan_id) - cls.reserved_count(plan_id), 0)

    @classmethod
    def automatic_demand(cls, items: Iterable[OrderItem]) -> dict[Any, PlanDemand]:
        """
        Sum requested quantities per automatic plan.

        Two lines for the same plan compete for the same pool, so they are
        checked against it together.
        """
        demand: dict[Any, PlanDemand] = {}
        for item in items:
            if item.plan.delivery_type != DeliveryType.AUTOMATIC:
                continue
            previous = demand.get(item.plan_id)
            requested = item.quantity + (previous.requested if previous else 0)
            demand[item.plan_id] = PlanDemand(plan=item.plan, requested=requested)
        return demand

    @classmethod
    def lock_plans(cls, plan_ids: Iterable[Any]) -> list[Any]:
        """
        Take row locks on the given plans, in primary key order.

        Must be called inside transaction.atomic().
        """
        return list(
            Plan.objects.select_for_update()
            .filter(id__in=list(plan_ids))
            .order_by("id")
            .values_list("id", flat=True)
        )

    @classmethod
    def find_shortfalls(
        cls,
        items: Iterable[OrderItem],
        lock: bool = False,
    ) -> list[StockShortfall]:
        """
        Recount availability for every automatic plan in ``items``.

        Args:
            items: Order items with plan and plan.product loaded
            lock: Lock the plan rows first (requires an open transaction)

        Returns:
            One StockShortfall per plan that cannot be satisfied; empty when
            the whole order can be delivered.
        """
        demand = cls.automatic_demand(items)
        if lock and demand:
            cls.lock_plans(demand.keys())

        shortfalls = []
        for plan_id, plan_demand in demand.items():
            available = cls.available_count(plan_id)
            if available < plan_demand.requested:
                shortfalls.append(
                    StockShortfall(
                        plan_id=str(plan_id),
                        product_name=plan_demand.plan.product.name,
                        plan_type=plan_demand.plan.plan_type,
                        requested=plan_demand.requested,
                        available=available,
                    )
                )
        return shortfalls

    @classmethod
    def check_items(cls, items: Iterable[OrderItem]) -> list[ItemAvailability]:
        """
        Build a per-item availability report.

        Each automatic item is judged against its plan's summed demand, the
        same way find_shortfalls judges the order at fulfilment. MANUAL
        items are always valid since they are fulfilled by hand.
        """
        items = list(items)
        demand = cls.automatic_demand(items)
        available_by_plan = {plan_id: cls.available_count(plan_id) for plan_id in demand}

        report = []
        for item in items:
            plan = item.plan
            if item.plan_id not in demand:
                report.append(
                    ItemAvailability(
                        order_item_id=str(item.id),
                        plan_id=str(plan.id),
                        product_name=plan.product.name,
                        plan_type=plan.plan_type,
                        requested=item.quantity,
                        available=None,
                        valid=True,
                    )
                )
                continue

            available = available_by_plan[item.plan_id]
            requested = demand[item.plan_id].requested
            error = None
            if available == 0:
                error = "Out of stock"
            elif available < requested:
                error = f"Only {available} available for {requested} requested"
            report.append(
                ItemAvailability(
                    order_item_id=str(item.id),
                    plan_id=str(plan.id),
                    product_name=plan.product.name,
                    plan_type=plan.plan_type,
                    requested=item.quantity,
                    available=available,
                    valid=error is None,
                    error=error,
                )
            )
        return report

    @classmethod
    def check_order(cls, order) -> list[ItemAvailability]:
        return cls.check_items(order.items.select_related("plan__product"))
