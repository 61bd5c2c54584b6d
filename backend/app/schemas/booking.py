"""
Pydantic schemas for reservation and booking request/response validation.

Request fields are typed loosely on purpose: identifier length, seat id and
date format are checked by the reservation engine so that HTTP callers and
direct callers get the same ValidationError.
"""

import datetime as dt
from typing import Optional
from pydantic import BaseModel, Field


class ReservationCreate(BaseModel):
    identifier: str
    seat_id: str
    date: str
    notes: Optional[str] = Field(None, max_length=500)


class BookingResponse(BaseModel):
    id: int
    user_id: int
    seat_id: str
    date: dt.date
    status: str
    created_at: dt.datetime
    notes: Optional[str]

    model_config = {"from_attributes": True}


class BookingWithIdentifierResponse(BookingResponse):
    identifier: str


class SweepResponse(BaseModel):
    expired: int
    as_of: dt.date
