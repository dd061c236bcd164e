import logging
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cinema_orders.exceptions import (
    ConflictError,
    NotFoundError,
    TransportError,
    ValidationError,
)
from cinema_orders.models.movie_models import MovieModel, SeatModel, ShowModel
from cinema_orders.models.order_models import (
    OrderItemModel,
    OrderModel,
    OrderSeatModel,
)
from cinema_orders.models.snack_models import SnackModel
from cinema_orders.services.notifier import ChangeKind, ChangeNotifier, notifier as default_notifier
from cinema_orders.services.status_guard import check_transition, parse_status

logger = logging.getLogger(__name__)


def _order_query():
    return select(OrderModel).options(
        selectinload(OrderModel.seats),
        selectinload(OrderModel.items),
    )


async def _read(db: AsyncSession, stmt):
    try:
        return await db.execute(stmt.execution_options(populate_existing=True))
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Order read failed: %s", e)
        raise TransportError("Could not load orders, try again") from e


async def get_order(
    db: AsyncSession, order_id: int, user_id: Optional[int] = None
) -> OrderModel:
    stmt = _order_query().where(OrderModel.id == order_id)
    if user_id is not None:
        stmt = stmt.where(OrderModel.user_id == user_id)
    result = await _read(db, stmt)
    order = result.scalar_one_or_none()
    if not order:
        raise NotFoundError("Order not found")
    return order


async def list_orders(
    db: AsyncSession,
    show_id: Optional[int] = None,
    user_id: Optional[int] = None,
) -> List[OrderModel]:
    stmt = _order_query()
    if show_id is not None:
        stmt = stmt.where(OrderModel.show_id == show_id)
    if user_id is not None:
        stmt = stmt.where(OrderModel.user_id == user_id)
    stmt = stmt.order_by(OrderModel.created_at.desc(), OrderModel.id.desc())

    result = await _read(db, stmt)
    return list(result.scalars().all())


def _validate_request(
    seat_numbers: Sequence[str],
    snack_items: Iterable[dict],
    total_amount,
    payment_id: Optional[str],
):
    if not seat_numbers:
        raise ValidationError("At least one seat is required")
    if len(set(seat_numbers)) != len(seat_numbers):
        raise ValidationError("Duplicate seats in request")
    if total_amount is None or Decimal(str(total_amount)) <= 0:
        raise ValidationError("Total amount must be positive")
    if not payment_id:
        raise ValidationError("Payment reference is required")
    for item in snack_items:
        if item["quantity"] < 1:
            raise ValidationError("Snack quantity must be at least 1")


async def create_order(
    db: AsyncSession,
    user,
    show_id: int,
    seat_numbers: Sequence[str],
    snack_items: Sequence[dict],
    total_amount,
    payment_id: str,
    notifier: ChangeNotifier = default_notifier,
) -> OrderModel:
    """Reserve seats and record the order in a single transaction.

    ``snack_items`` is a sequence of ``{"snack_id": int, "quantity": int}``.
    """
    seat_numbers = list(seat_numbers)
    snack_items = list(snack_items)
    _validate_request(seat_numbers, snack_items, total_amount, payment_id)

    show = await db.get(ShowModel, show_id)
    if not show:
        raise NotFoundError("Show not found")
    if not show.is_bookable:
        raise ValidationError("Show is not open for booking")
    movie = await db.get(MovieModel, show.movie_id)

    result = await db.execute(
        select(SeatModel).where(
            SeatModel.show_id == show_id,
            SeatModel.seat_number.in_(seat_numbers),
        )
    )
    seats = {s.seat_number: s for s in result.scalars().all()}
    missing = [n for n in seat_numbers if n not in seats]
    if missing:
        raise NotFoundError(f"Unknown seats for show {show_id}: {', '.join(missing)}")

    snacks = {}
    if snack_items:
        snack_ids = {item["snack_id"] for item in snack_items}
        result = await db.execute(select(SnackModel).where(SnackModel.id.in_(snack_ids)))
        snacks = {s.id: s for s in result.scalars().all()}
        if len(snacks) != len(snack_ids):
            raise NotFoundError("One or more snacks not found")

    seat_ids = [seats[n].id for n in seat_numbers]
    try:
        # conditional flip: only seats still free are updated
        flipped = await db.execute(
            update(SeatModel)
            .where(SeatModel.id.in_(seat_ids), SeatModel.is_booked.is_(False))
            .values(is_booked=True)
            .execution_options(synchronize_session=False)
        )
        if flipped.rowcount != len(seat_ids):
            raise ConflictError("One or more seats are already booked")

        order = OrderModel(
            user_id=user.id,
            show_id=show_id,
            total_amount=Decimal(str(total_amount)),
            payment_id=payment_id,
            movie_title=movie.title if movie else None,
            screen=show.screen,
            show_time=show.show_time,
        )
        order.seats = [
            OrderSeatModel(show_id=show_id, seat_id=seats[n].id, seat_number=n)
            for n in seat_numbers
        ]
        order.items = [
            OrderItemModel(
                snack_id=item["snack_id"],
                snack_name=snacks[item["snack_id"]].name,
                unit_price=snacks[item["snack_id"]].price,
                quantity=item["quantity"],
            )
            for item in snack_items
        ]
        db.add(order)
        await db.commit()
    except ConflictError:
        await db.rollback()
        logger.warning(
            "Seat conflict on show %s for seats %s", show_id, ", ".join(seat_numbers)
        )
        raise
    except IntegrityError as e:
        await db.rollback()
        logger.warning("Seat conflict on show %s: %s", show_id, e.orig)
        raise ConflictError("One or more seats are already booked") from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Order creation failed for show %s: %s", show_id, e)
        raise TransportError("Could not save the order, try again") from e

    logger.info(
        "Order %s created for user %s on show %s (%s)",
        order.id, user.id, show_id, ", ".join(seat_numbers),
    )
    notifier.publish("orders", ChangeKind.insert, order.id)
    notifier.publish("seats", ChangeKind.update)
    return await get_order(db, order.id)


async def update_status(
    db: AsyncSession,
    order_id: int,
    new_status,
    notifier: ChangeNotifier = default_notifier,
) -> OrderModel:
    requested = parse_status(new_status)
    order = await get_order(db, order_id)

    if not check_transition(order.status, requested):
        return order

    previous = order.status
    order.status = requested
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Status update failed for order %s: %s", order_id, e)
        raise TransportError("Could not update the order, try again") from e

    logger.info(
        "Order %s moved %s -> %s", order_id, previous.value, requested.value
    )
    notifier.publish("orders", ChangeKind.update, order_id)
    return await get_order(db, order_id)
