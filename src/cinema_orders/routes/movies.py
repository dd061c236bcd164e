from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cinema_orders.core.security import get_current_user
from cinema_orders.db.session import get_db
from cinema_orders.models.movie_models import (
    MovieModel,
    SeatModel,
    SeatingStatus,
    ShowModel,
)
from cinema_orders.models.snack_models import SnackModel
from cinema_orders.routes.admin.admin_movies import show_read
from cinema_orders.schemas.movie_schema import (
    MovieRead,
    SeatRead,
    ShowRead,
    ShowSeatsRead,
)
from cinema_orders.schemas.snack_schema import SnackRead


router = APIRouter(tags=["catalog"], dependencies=[Depends(get_current_user)])


@router.get("/movies", response_model=List[MovieRead])
async def list_movies(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(MovieModel).order_by(MovieModel.title))
    return result.scalars().all()


@router.get("/shows", response_model=List[ShowRead])
async def list_bookable_shows(db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(ShowModel)
        .options(selectinload(ShowModel.movie))
        .where(ShowModel.seating_status == SeatingStatus.ready)
        .order_by(ShowModel.show_time)
    )
    return [show_read(s, s.movie.title) for s in result.scalars().all()]


@router.get("/shows/{show_id}/seats", response_model=ShowSeatsRead)
async def show_seats(show_id: int, db: AsyncSession = Depends(get_db)):
    show = await db.get(ShowModel, show_id)
    if not show or not show.is_bookable:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Show not found"
        )
    result = await db.execute(
        select(SeatModel)
        .where(SeatModel.show_id == show_id)
        .order_by(SeatModel.id)
        .execution_options(populate_existing=True)
    )
    seats = [SeatRead.model_validate(s) for s in result.scalars().all()]
    return ShowSeatsRead(show_id=show_id, seats=seats)


@router.get("/snacks", response_model=List[SnackRead])
async def list_snacks(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(SnackModel).order_by(SnackModel.category, SnackModel.name))
    return result.scalars().all()
