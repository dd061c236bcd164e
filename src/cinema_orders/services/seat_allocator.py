import logging
from datetime import datetime
from typing import List

from sqlalchemy import func, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cinema_orders.core.config import settings
from cinema_orders.exceptions import ConflictError, NotFoundError, SeatingFailedError
from cinema_orders.models.movie_models import (
    MovieModel,
    SeatModel,
    SeatingStatus,
    ShowModel,
)

logger = logging.getLogger(__name__)


def seat_labels(rows: str | None = None, columns: int | None = None) -> List[str]:
    rows = rows or settings.SEAT_ROWS
    columns = columns or settings.SEAT_COLUMNS
    return [f"{row}{col}" for row in rows for col in range(1, columns + 1)]


def seat_rows(show_id: int) -> List[dict]:
    return [
        {"show_id": show_id, "seat_number": label, "is_booked": False}
        for label in seat_labels()
    ]


async def _load_seats(db: AsyncSession, show_id: int) -> List[SeatModel]:
    result = await db.execute(
        select(SeatModel).where(SeatModel.show_id == show_id).order_by(SeatModel.id)
    )
    return list(result.scalars().all())


async def allocate_seats(db: AsyncSession, show: ShowModel) -> List[SeatModel]:
    """Insert the full seat grid for a show in one transaction.

    On failure nothing is kept, the show is flagged ``failed`` and
    SeatingFailedError is raised so an operator can remediate.
    """
    show_id = show.id
    try:
        await db.execute(insert(SeatModel), seat_rows(show_id))
        show.seating_status = SeatingStatus.ready
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Seat allocation failed for show %s: %s", show_id, e)
        try:
            await db.execute(
                update(ShowModel)
                .where(ShowModel.id == show_id)
                .values(seating_status=SeatingStatus.failed)
            )
            await db.commit()
        except SQLAlchemyError as flag_error:
            await db.rollback()
            # left pending; the retry task picks up stale pending shows
            logger.error(
                "Could not flag show %s as failed: %s", show_id, flag_error
            )
        else:
            logger.info("Show %s flagged as failed", show_id)
        raise SeatingFailedError(show_id, reason=str(e)) from e

    seats = await _load_seats(db, show_id)
    logger.info("Allocated %d seats for show %s", len(seats), show_id)
    return seats


async def create_show_with_seats(
    db: AsyncSession, movie_id: int, screen: str, show_time: datetime
) -> ShowModel:
    movie = await db.get(MovieModel, movie_id)
    if not movie:
        raise NotFoundError("Movie not found")

    # stays pending, and so unbookable, until its seats exist
    show = ShowModel(
        movie_id=movie_id,
        screen=screen,
        show_time=show_time,
        seating_status=SeatingStatus.pending,
    )
    db.add(show)
    await db.commit()

    await allocate_seats(db, show)
    return show


async def reallocate_seats(db: AsyncSession, show_id: int) -> ShowModel:
    show = await db.get(ShowModel, show_id)
    if not show:
        raise NotFoundError("Show not found")

    expected = len(seat_labels())
    existing = await db.scalar(
        select(func.count()).select_from(SeatModel).where(SeatModel.show_id == show_id)
    )
    if existing == expected:
        if show.seating_status != SeatingStatus.ready:
            show.seating_status = SeatingStatus.ready
            await db.commit()
        return show
    if existing:
        raise ConflictError(
            f"Show {show_id} has {existing} of {expected} seats; fix manually"
        )

    logger.info("Retrying seat allocation for show %s", show_id)
    await allocate_seats(db, show)
    return show
