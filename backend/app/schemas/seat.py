"""
Pydantic schemas for the per-date seat map.
"""

from typing import Literal, Optional
from pydantic import BaseModel


class SeatStatusResponse(BaseModel):
    seat_id: str
    kind: str
    status: Literal["available", "reserved"]
    x: Optional[int] = None
    y: Optional[int] = None
