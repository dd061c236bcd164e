"""Pickup-counter workflow for orders.

Confirmed -> Preparing -> Ready -> Collected. Status only moves forward;
Preparing may be skipped but Collected is reachable from Ready alone.
"""
from cinema_orders.exceptions import InvalidTransitionError, ValidationError
from cinema_orders.models.order_models import OrderStatus


def parse_status(value) -> OrderStatus:
    if isinstance(value, OrderStatus):
        return value
    for status in OrderStatus:
        if value in (status.value, status.name):
            return status
    raise ValidationError(f"Unknown order status: {value!r}")


def check_transition(current: OrderStatus, requested: OrderStatus) -> bool:
    """Return True when the order must be updated, False for a no-op.

    Raises InvalidTransitionError for backward moves and for collecting an
    order that is not Ready.
    """
    if requested == current:
        return False
    if requested.rank < current.rank:
        raise InvalidTransitionError(current, requested)
    if requested == OrderStatus.collected and current != OrderStatus.ready:
        raise InvalidTransitionError(current, requested)
    return True


def is_active(status: OrderStatus) -> bool:
    return status != OrderStatus.collected
