import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cinema_orders.core.security import get_current_admin
from cinema_orders.db.session import get_db
from cinema_orders.exceptions import BookingError
from cinema_orders.models.movie_models import MovieModel, ShowModel
from cinema_orders.schemas.movie_schema import (
    MovieCreate,
    MovieRead,
    ShowCreate,
    ShowRead,
)
from cinema_orders.services import seat_allocator
from cinema_orders.services.notifier import ChangeKind, ChangeNotifier, get_notifier

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(get_current_admin)],
)


def show_read(show: ShowModel, movie_title: str | None) -> ShowRead:
    return ShowRead(
        id=show.id,
        movie_id=show.movie_id,
        movie_title=movie_title,
        screen=show.screen,
        show_time=show.show_time,
        seating_status=show.seating_status,
    )


@router.post("/movies", response_model=MovieRead, status_code=status.HTTP_201_CREATED)
async def create_movie(
    movie_in: MovieCreate,
    db: AsyncSession = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_notifier),
):
    movie = MovieModel(**movie_in.model_dump())
    db.add(movie)
    await db.commit()
    await db.refresh(movie)
    notifier.publish("movies", ChangeKind.insert, movie.id)
    return movie


@router.get("/movies", response_model=List[MovieRead])
async def list_movies(db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(MovieModel).order_by(MovieModel.created_at.desc(), MovieModel.id.desc())
    )
    return result.scalars().all()


@router.delete("/movies/{movie_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_movie(
    movie_id: int,
    db: AsyncSession = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_notifier),
):
    movie = await db.get(MovieModel, movie_id)
    if not movie:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Movie not found"
        )
    # shows and seats go with it through ON DELETE CASCADE
    await db.delete(movie)
    await db.commit()
    logger.info("Movie %s deleted", movie_id)
    notifier.publish("movies", ChangeKind.delete, movie_id)
    notifier.publish("shows", ChangeKind.delete)
    return None


@router.post("/shows", response_model=ShowRead, status_code=status.HTTP_201_CREATED)
async def create_show(
    show_in: ShowCreate,
    db: AsyncSession = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_notifier),
):
    try:
        show = await seat_allocator.create_show_with_seats(
            db, show_in.movie_id, show_in.screen, show_in.show_time
        )
    except BookingError as e:
        raise e.to_http()

    movie = await db.get(MovieModel, show.movie_id)
    notifier.publish("shows", ChangeKind.insert, show.id)
    return show_read(show, movie.title)


@router.get("/shows", response_model=List[ShowRead])
async def list_shows(db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(ShowModel)
        .options(selectinload(ShowModel.movie))
        .order_by(ShowModel.show_time)
    )
    return [show_read(s, s.movie.title) for s in result.scalars().all()]


@router.delete("/shows/{show_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_show(
    show_id: int,
    db: AsyncSession = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_notifier),
):
    show = await db.get(ShowModel, show_id)
    if not show:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Show not found"
        )
    await db.delete(show)
    await db.commit()
    logger.info("Show %s deleted with its seats", show_id)
    notifier.publish("shows", ChangeKind.delete, show_id)
    return None


@router.post("/shows/{show_id}/seats/regenerate", response_model=ShowRead)
async def regenerate_seats(
    show_id: int,
    db: AsyncSession = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_notifier),
):
    try:
        show = await seat_allocator.reallocate_seats(db, show_id)
    except BookingError as e:
        raise e.to_http()

    movie = await db.get(MovieModel, show.movie_id)
    notifier.publish("shows", ChangeKind.update, show.id)
    return show_read(show, movie.title)
