from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from cinema_orders.core.security import get_current_admin
from cinema_orders.db.session import get_db
from cinema_orders.exceptions import BookingError
from cinema_orders.schemas.order_schema import OrderBoardRead, OrderRead, StatusUpdate
from cinema_orders.services import order_store, projections
from cinema_orders.services.notifier import ChangeNotifier, get_notifier


router = APIRouter(
    prefix="/admin/orders",
    tags=["admin"],
    dependencies=[Depends(get_current_admin)],
)


@router.get("/", response_model=OrderBoardRead)
async def order_board(
    show_id: Optional[int] = Query(None, description="Only orders for this show"),
    view: str = Query("active", pattern="^(active|history)$"),
    db: AsyncSession = Depends(get_db),
):
    orders = await order_store.list_orders(db, show_id=show_id)
    return projections.admin_order_board(orders, show_id=show_id, view=view)


@router.patch("/{order_id}/status", response_model=OrderRead)
async def update_order_status(
    order_id: int,
    data: StatusUpdate,
    db: AsyncSession = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_notifier),
):
    try:
        return await order_store.update_status(
            db, order_id, data.status, notifier=notifier
        )
    except BookingError as e:
        raise e.to_http()
