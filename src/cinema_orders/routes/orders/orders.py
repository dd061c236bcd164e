from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from cinema_orders.core.security import get_current_user
from cinema_orders.db.session import get_db
from cinema_orders.exceptions import BookingError
from cinema_orders.schemas.order_schema import (
    MyOrdersRead,
    OrderCreate,
    OrderRead,
    PickupPayload,
)
from cinema_orders.services import order_store, projections
from cinema_orders.services.notifier import ChangeNotifier, get_notifier

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("/", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
async def place_order(
    order_in: OrderCreate,
    current_user=Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_notifier),
):
    try:
        return await order_store.create_order(
            db,
            current_user,
            show_id=order_in.show_id,
            seat_numbers=order_in.seats,
            snack_items=[item.model_dump() for item in order_in.items],
            total_amount=order_in.total_amount,
            payment_id=order_in.payment_id,
            notifier=notifier,
        )
    except BookingError as e:
        raise e.to_http()


@router.get("/", response_model=MyOrdersRead)
async def list_my_orders(
    current_user=Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await projections.my_orders(db, current_user)


@router.get("/{order_id}", response_model=OrderRead)
async def get_my_order(
    order_id: int,
    current_user=Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await order_store.get_order(db, order_id, user_id=current_user.id)
    except BookingError as e:
        raise e.to_http()


@router.get("/{order_id}/pickup", response_model=PickupPayload)
async def pickup_code(
    order_id: int,
    current_user=Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        order = await order_store.get_order(db, order_id, user_id=current_user.id)
        return projections.pickup_payload(order)
    except BookingError as e:
        raise e.to_http()
