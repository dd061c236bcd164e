"""Read-side views over orders. Recomputed on every fetch."""
import json
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from cinema_orders.exceptions import ValidationError
from cinema_orders.models.order_models import OrderModel, OrderStatus
from cinema_orders.services import order_store
from cinema_orders.services.status_guard import is_active


def partition_orders(
    orders: Iterable[OrderModel],
) -> Tuple[List[OrderModel], List[OrderModel]]:
    active, history = [], []
    for order in orders:
        (active if is_active(order.status) else history).append(order)
    return active, history


def revenue(orders: Iterable[OrderModel]) -> Decimal:
    return sum(
        (Decimal(o.total_amount) for o in orders if is_active(o.status)),
        Decimal("0"),
    )


def admin_order_board(
    orders: List[OrderModel],
    show_id: Optional[int] = None,
    view: str = "active",
) -> dict:
    if view not in ("active", "history"):
        raise ValidationError("view must be 'active' or 'history'")
    if show_id is not None:
        orders = [o for o in orders if o.show_id == show_id]

    active, history = partition_orders(orders)
    selected = active if view == "active" else history
    return {
        "show_id": show_id,
        "view": view,
        "revenue": revenue(orders),
        "total": len(selected),
        "counts": {
            status.value: sum(1 for o in selected if o.status == status)
            for status in OrderStatus
        },
        "orders": selected,
    }


async def my_orders(db: AsyncSession, user) -> dict:
    orders = await order_store.list_orders(db, user_id=user.id)
    active, history = partition_orders(orders)
    return {"active": active, "history": history}


def pickup_payload(order: OrderModel) -> dict:
    """What the customer shows at the counter to collect an order."""
    if not is_active(order.status):
        raise ValidationError("Order has already been collected")
    payload = {
        "orderId": order.id,
        "paymentId": order.payment_id,
        "seats": order.seat_numbers,
        "showTime": order.show_time.isoformat() if order.show_time else None,
    }
    return {**payload, "qr_data": json.dumps(payload)}
