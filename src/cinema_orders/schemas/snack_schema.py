from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from cinema_orders.models.snack_models import SnackCategory


class SnackCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    category: SnackCategory = SnackCategory.snack
    image_url: Optional[str] = None


class SnackRead(BaseModel):
    id: int
    name: str
    price: float
    category: SnackCategory
    image_url: Optional[str]
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
