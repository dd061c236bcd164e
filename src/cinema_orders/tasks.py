import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache

from celery import shared_task
from sqlalchemy import and_, create_engine, func, insert, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from cinema_orders.core.config import settings
from cinema_orders.models.movie_models import SeatModel, SeatingStatus, ShowModel
from cinema_orders.services.change_relay import broadcast_change
from cinema_orders.services.notifier import ChangeKind
from cinema_orders.services.seat_allocator import seat_labels, seat_rows

logger = logging.getLogger(__name__)


@lru_cache
def get_session_factory():
    engine = create_engine(settings.sync_database_url)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def _shows_to_seat(db: Session) -> list[int]:
    cutoff = datetime.now(timezone.utc) - timedelta(
        seconds=settings.SEATING_PENDING_GRACE_SECONDS
    )
    return db.scalars(
        select(ShowModel.id)
        .where(
            or_(
                ShowModel.seating_status == SeatingStatus.failed,
                and_(
                    ShowModel.seating_status == SeatingStatus.pending,
                    ShowModel.created_at < cutoff,
                ),
            )
        )
        .order_by(ShowModel.id)
    ).all()


def retry_failed_seating_with(db: Session) -> list[int]:
    """Re-run seat allocation for shows flagged ``failed`` and for shows
    stuck in ``pending`` past the grace period.

    Returns the ids of shows that are bookable afterwards. Shows with a
    partial grid are left for manual repair.
    """
    expected = len(seat_labels())
    fixed = []

    for show_id in _shows_to_seat(db):
        existing = db.scalar(
            select(func.count()).select_from(SeatModel).where(SeatModel.show_id == show_id)
        )
        if existing not in (0, expected):
            logger.warning(
                "Show %s has %d of %d seats, skipping", show_id, existing, expected
            )
            continue
        try:
            if existing == 0:
                db.execute(insert(SeatModel), seat_rows(show_id))
            show = db.get(ShowModel, show_id)
            show.seating_status = SeatingStatus.ready
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Seat allocation retry failed for show %s: %s", show_id, e)
            continue
        logger.info("Show %s seated on retry", show_id)
        broadcast_change("shows", ChangeKind.update, show_id)
        fixed.append(show_id)
    return fixed


@shared_task
def retry_failed_seating():
    db = get_session_factory()()
    try:
        return retry_failed_seating_with(db)
    finally:
        db.close()
