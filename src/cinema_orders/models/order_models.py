from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Enum,
    Numeric,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship
import enum
from cinema_orders.db.base import Base


class OrderStatus(str, enum.Enum):
    confirmed = "Confirmed"
    preparing = "Preparing"
    ready = "Ready"
    collected = "Collected"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]


_STATUS_RANK = {status: i for i, status in enumerate(OrderStatus)}


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    show_id = Column(
        Integer, ForeignKey("shows.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
    status = Column(
        Enum(OrderStatus),
        nullable=False,
        default=OrderStatus.confirmed,
        server_default=OrderStatus.confirmed.name,
    )
    total_amount = Column(Numeric(10, 2), nullable=False)
    payment_id = Column(String(255), nullable=False)

    # copied from the show at booking time, survive show deletion
    movie_title = Column(String(250), nullable=True)
    screen = Column(String(50), nullable=True)
    show_time = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User", back_populates="orders")
    show = relationship("ShowModel")
    seats = relationship(
        "OrderSeatModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderSeatModel.id",
    )
    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.id",
    )

    @property
    def seat_numbers(self) -> list[str]:
        return [s.seat_number for s in self.seats]


class OrderSeatModel(Base):
    __tablename__ = "order_seats"
    __table_args__ = (
        UniqueConstraint("show_id", "seat_id", name="uq_order_seat_show_seat"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(
        Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False
    )
    show_id = Column(Integer, nullable=True)
    seat_id = Column(
        Integer, ForeignKey("seats.id", ondelete="SET NULL"), nullable=True
    )
    seat_number = Column(String(5), nullable=False)

    order = relationship("OrderModel", back_populates="seats")


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(
        Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False
    )
    snack_id = Column(
        Integer, ForeignKey("snacks.id", ondelete="SET NULL"), nullable=True
    )
    snack_name = Column(String(150), nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)

    order = relationship("OrderModel", back_populates="items")
