from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

from cinema_orders.models.movie_models import SeatingStatus


class MovieCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=250)
    duration: str = Field(..., min_length=1, max_length=50)
    genre: Optional[str] = None
    rating: Optional[str] = None
    description: Optional[str] = None
    poster_url: Optional[str] = None


class MovieRead(BaseModel):
    id: int
    title: str
    duration: str
    genre: Optional[str]
    rating: Optional[str]
    description: Optional[str]
    poster_url: Optional[str]
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ShowCreate(BaseModel):
    movie_id: int
    screen: str = Field(..., min_length=1, max_length=50)
    show_time: datetime


class ShowRead(BaseModel):
    id: int
    movie_id: int
    movie_title: Optional[str] = None
    screen: str
    show_time: datetime
    seating_status: SeatingStatus

    model_config = ConfigDict(from_attributes=True)


class SeatRead(BaseModel):
    id: int
    seat_number: str
    is_booked: bool

    model_config = ConfigDict(from_attributes=True)


class ShowSeatsRead(BaseModel):
    show_id: int
    seats: List[SeatRead]
