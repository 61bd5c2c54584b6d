"""
Hardcoded floor-plan catalog loaded by seat_service.initialize_seats.

Coordinates match the office floor plan rendered by the seat map and carry
no booking semantics.
"""

from typing import NamedTuple

from app.models.seat import SeatKind


class CatalogEntry(NamedTuple):
    seat_id: str
    kind: SeatKind
    x: int
    y: int


def _block(kind: SeatKind, coords: dict[str, tuple[int, int]]) -> list[CatalogEntry]:
    return [CatalogEntry(seat_id, kind, x, y) for seat_id, (x, y) in coords.items()]


WORKSTATIONS = {
    # E1/E2 block (leftmost)
    "E1-11": (100, 100), "E1-12": (150, 100),
    "E1-17": (100, 150), "E1-18": (150, 150),
    "E1-23": (100, 200), "E1-24": (150, 200),
    "E1-29": (100, 250), "E1-30": (150, 250),
    "E1-35": (100, 300),
    "E2-8": (200, 100), "E2-9": (250, 100),
    "E2-14": (200, 150), "E2-15": (250, 150),
    "E2-20": (200, 200), "E2-21": (250, 200),
    "E2-26": (200, 250), "E2-27": (250, 250),
    "E2-32": (200, 300), "E2-33": (250, 300),
    # F1/F2 block (middle)
    "F1-5": (300, 100), "F1-6": (350, 100),
    "F1-11": (300, 150), "F1-12": (350, 150),
    "F1-17": (300, 200), "F1-18": (350, 200),
    "F2-2": (400, 100), "F2-3": (450, 100),
    "F2-8": (400, 150), "F2-9": (450, 150),
    "F2-14": (400, 200), "F2-15": (450, 200),
    # F3 block (bottom right)
    "F3-8": (500, 100), "F3-4": (550, 100),
    "F3-9": (500, 150), "F3-10": (550, 150),
    "F3-15": (500, 200), "F3-16": (550, 200),
    # E3 block (rightmost)
    "E3-9": (600, 100), "E3-10": (650, 100),
    "E3-15": (600, 150), "E3-16": (650, 150),
    "E3-21": (600, 200), "E3-22": (650, 200),
    "E3-27": (600, 250), "E3-28": (650, 250),
    "E3-33": (600, 300), "E3-34": (650, 300),
}

# Huddle rooms
MEETING_ROOMS = {
    "APR207": (470, 120),
    "APR208": (470, 180),
    "APR209": (470, 240),
    "APR210": (554, 300),
    "APR211": (554, 240),
    "APR212": (554, 180),
    "APR213": (554, 120),
}

DEFAULT_CATALOG: list[CatalogEntry] = (
    _block(SeatKind.SEAT, WORKSTATIONS) + _block(SeatKind.MEETING_ROOM, MEETING_ROOMS)
)
