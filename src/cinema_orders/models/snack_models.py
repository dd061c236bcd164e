import enum
from sqlalchemy import Column, Integer, String, Enum, Numeric, DateTime
from sqlalchemy.sql import func
from cinema_orders.db.base import Base


class SnackCategory(str, enum.Enum):
    snack = "snack"
    drink = "drink"
    combo = "combo"


class SnackModel(Base):
    __tablename__ = "snacks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(150), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    category = Column(
        Enum(SnackCategory), nullable=False, default=SnackCategory.snack
    )
    image_url = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
