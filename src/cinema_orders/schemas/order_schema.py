from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional

from cinema_orders.models.order_models import OrderStatus


class OrderItemCreate(BaseModel):
    snack_id: int
    quantity: int = Field(1, ge=1)


class OrderCreate(BaseModel):
    show_id: int
    seats: List[str] = Field(..., min_length=1)
    items: List[OrderItemCreate] = []
    total_amount: Decimal = Field(..., gt=0)
    payment_id: str = Field(..., min_length=1)


class StatusUpdate(BaseModel):
    status: str


class OrderSeatRead(BaseModel):
    seat_number: str

    model_config = ConfigDict(from_attributes=True)


class OrderItemRead(BaseModel):
    id: int
    snack_id: Optional[int]
    snack_name: str
    unit_price: float
    quantity: int

    model_config = ConfigDict(from_attributes=True)


class OrderRead(BaseModel):
    id: int
    user_id: int
    show_id: Optional[int]
    created_at: datetime
    status: OrderStatus
    total_amount: float
    payment_id: str
    movie_title: Optional[str]
    screen: Optional[str]
    show_time: Optional[datetime]
    seats: List[OrderSeatRead]
    items: List[OrderItemRead]

    model_config = ConfigDict(from_attributes=True)


class MyOrdersRead(BaseModel):
    active: List[OrderRead]
    history: List[OrderRead]


class OrderBoardRead(BaseModel):
    show_id: Optional[int]
    view: str
    revenue: float
    total: int
    counts: Dict[str, int]
    orders: List[OrderRead]


class PickupPayload(BaseModel):
    orderId: int
    paymentId: str
    seats: List[str]
    showTime: Optional[str]
    qr_data: str
