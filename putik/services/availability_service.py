# putik/services/availability_service.py
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from sqlalchemy import String, type_coerce
from sqlalchemy.orm import Session

from putik.db.enums import ACTIVE_STATUSES, ACTIVE_STATUS_VALUES, BookingStatus
from putik.models.booking import Booking
from putik.models.part import Part


@dataclass(frozen=True)
class PartAvailability:
    part_id: int
    stock: int
    booked_quantity: int
    available_quantity: int
    edit_booking_quantity: int = 0

    @property
    def effective_available(self) -> int:
        """Availability with the edited group's own reservation credited back."""
        return self.available_quantity + self.edit_booking_quantity

    @property
    def remaining(self) -> int:
        # stock can be lowered below outstanding reservations by an admin
        return max(0, self.effective_available)


def _status_of(booking) -> Optional[BookingStatus]:
    status = getattr(booking, "status", None)
    if status is None or isinstance(status, BookingStatus):
        return status
    return BookingStatus(status)


def compute_availability(
    parts: Iterable,
    bookings: Iterable,
    edit_group_id: Optional[int] = None,
) -> Dict[int, PartAvailability]:
    """
    available_quantity = stock - Σ(quantity of active bookings on the part)

    When edit_group_id is given, edit_booking_quantity is what that group
    already reserves on each part, so callers can credit it back.
    Bookings in a terminal status are ignored. Pure function of its inputs.

    :param parts: objects with id and stock
    :param bookings: objects with part_id, quantity, status, booking_group_id
    :param edit_group_id: booking group currently being edited, if any
    :rtype: Dict[int, PartAvailability]
    """
    booked: Dict[int, int] = {}
    own: Dict[int, int] = {}
    for booking in bookings:
        if _status_of(booking) not in ACTIVE_STATUSES:
            continue
        quantity = booking.quantity or 0
        booked[booking.part_id] = booked.get(booking.part_id, 0) + quantity
        if edit_group_id is not None and booking.booking_group_id == edit_group_id:
            own[booking.part_id] = own.get(booking.part_id, 0) + quantity

    result: Dict[int, PartAvailability] = {}
    for part in parts:
        stock = part.stock or 0
        booked_quantity = booked.get(part.id, 0)
        result[part.id] = PartAvailability(
            part_id=part.id,
            stock=stock,
            booked_quantity=booked_quantity,
            available_quantity=stock - booked_quantity,
            edit_booking_quantity=own.get(part.id, 0),
        )
    return result


class AvailabilityService:
    """
    Loads parts and active reservations and runs compute_availability.
    """

    def __init__(self, db: Session):
        self.db = db

    def active_bookings(self, part_ids: Optional[List[int]] = None) -> List[Booking]:
        # compare raw stored strings so legacy "confirmed" rows still reserve stock
        stored_status = type_coerce(Booking.status, String)
        query = self.db.query(Booking).filter(stored_status.in_(sorted(ACTIVE_STATUS_VALUES)))
        if part_ids is not None:
            query = query.filter(Booking.part_id.in_(part_ids))
        return query.all()

    def for_parts(
        self,
        parts: List[Part],
        *,
        edit_group_id: Optional[int] = None,
    ) -> Dict[int, PartAvailability]:
        bookings = self.active_bookings([p.id for p in parts])
        return compute_availability(parts, bookings, edit_group_id)

    def lock_parts(self, part_ids: Iterable[int]) -> List[Part]:
        """
        Load parts with a row lock held until the surrounding transaction
        ends. PostgreSQL honours FOR UPDATE; SQLite ignores it and
        serialises writers at commit instead.
        """
        ids = sorted(set(part_ids))
        if not ids:
            return []
        return (
            self.db.query(Part)
            .filter(Part.id.in_(ids))
            .order_by(Part.id)
            .with_for_update(of=Part)
            .all()
        )
