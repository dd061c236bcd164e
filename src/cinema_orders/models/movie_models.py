import enum
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, Enum,
    ForeignKey, UniqueConstraint, DateTime
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from cinema_orders.db.base import Base


class SeatingStatus(str, enum.Enum):
    pending = "pending"
    ready = "ready"
    failed = "failed"


class MovieModel(Base):
    __tablename__ = "movies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(250), nullable=False)
    duration = Column(String(50), nullable=False)
    genre = Column(String(100), nullable=True)
    rating = Column(String(20), nullable=True)
    description = Column(Text, nullable=True)
    poster_url = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    shows = relationship(
        "ShowModel",
        back_populates="movie",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class ShowModel(Base):
    __tablename__ = "shows"

    id = Column(Integer, primary_key=True, autoincrement=True)
    movie_id = Column(
        Integer, ForeignKey("movies.id", ondelete="CASCADE"), nullable=False
    )
    screen = Column(String(50), nullable=False)
    show_time = Column(DateTime(timezone=True), nullable=False)
    seating_status = Column(
        Enum(SeatingStatus),
        nullable=False,
        default=SeatingStatus.pending,
        server_default=SeatingStatus.pending.value,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    movie = relationship("MovieModel", back_populates="shows", lazy="selectin")
    seats = relationship(
        "SeatModel",
        back_populates="show",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="SeatModel.id",
    )

    @property
    def is_bookable(self) -> bool:
        return self.seating_status == SeatingStatus.ready


class SeatModel(Base):
    __tablename__ = "seats"
    __table_args__ = (
        UniqueConstraint("show_id", "seat_number", name="uq_seat_show_number"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    show_id = Column(
        Integer, ForeignKey("shows.id", ondelete="CASCADE"), nullable=False, index=True
    )
    seat_number = Column(String(5), nullable=False)
    is_booked = Column(Boolean, nullable=False, default=False)

    show = relationship("ShowModel", back_populates="seats")
