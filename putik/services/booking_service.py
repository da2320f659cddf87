# putik/services/booking_service.py
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from putik.db.enums import BookingStatus
from putik.logger import get_logger
from putik.models.booking import Booking
from putik.models.booking_group import BookingGroup
from putik.models.mechanic import Mechanic
from putik.services.availability_service import AvailabilityService, compute_availability
from putik.services.booking_group_service import BookingStateError, aggregate_status
from putik.services.errors import NotFoundError

logger = get_logger(__name__)


class InsufficientStockError(ValueError):
    """A cart line asks for more than is currently available."""

    def __init__(self, part_id: int, part_name: str, available: int, requested: int):
        self.part_id = part_id
        self.part_name = part_name
        self.available = available
        self.requested = requested
        super().__init__(
            f"Not enough stock for {part_name}. Available: {available}, Requested: {requested}"
        )


class BookingService:
    """
    Creates and replaces booking groups.

    Every write happens in the caller's transaction: the group row and its
    booking rows are flushed together and the route commits once, or rolls
    back everything. Stock is re-checked against freshly read reservations
    with the involved part rows locked.

    No commit here.
    """

    def __init__(self, db: Session, availability_service: AvailabilityService):
        self.db = db
        self.availability_service = availability_service

    # ======================================================
    # 🔐 Internal helpers
    # ======================================================

    def _requested_by_part(self, lines: Iterable[Tuple[int, int]]) -> Dict[int, int]:
        requested: Dict[int, int] = {}
        for part_id, quantity in lines:
            if quantity is None or int(quantity) <= 0:
                raise ValueError("Quantity must be at least 1")
            requested[part_id] = requested.get(part_id, 0) + int(quantity)
        if not requested:
            raise ValueError("Add at least one part before booking")
        return requested

    def _validate_schedule(self, *, mechanic_id: int, booking_date: date, today: date) -> Mechanic:
        if booking_date is None:
            raise ValueError("Booking date is required")
        if booking_date < today:
            raise ValueError("Booking date cannot be in the past")
        mechanic = self.db.get(Mechanic, mechanic_id) if mechanic_id is not None else None
        if mechanic is None:
            raise ValueError("Please select a mechanic")
        return mechanic

    def _check_stock(
        self,
        requested: Dict[int, int],
        *,
        edit_group_id: Optional[int] = None,
    ) -> None:
        '''
        Lock the parts, re-read active reservations and compare.

        :param requested: part_id -> total requested quantity, in cart order
        :param edit_group_id: group whose own reservation is credited back
        :raises NotFoundError: a part no longer exists
        :raises InsufficientStockError: first part that is over-requested
        '''
        parts = self.availability_service.lock_parts(requested.keys())
        parts_by_id = {p.id: p for p in parts}
        missing = [pid for pid in requested if pid not in parts_by_id]
        if missing:
            raise NotFoundError(f"Part(s) not found: {missing}")

        vehicle_ids = {p.vehicle_id for p in parts}
        if len(vehicle_ids) > 1:
            raise ValueError("A booking can only contain parts for one vehicle")

        bookings = self.availability_service.active_bookings(list(parts_by_id))
        availability = compute_availability(parts, bookings, edit_group_id)

        for part_id, quantity in requested.items():
            entry = availability[part_id]
            available_now = entry.effective_available if edit_group_id is not None else entry.available_quantity
            if quantity > available_now:
                raise InsufficientStockError(
                    part_id=part_id,
                    part_name=parts_by_id[part_id].name,
                    available=available_now,
                    requested=quantity,
                )

    def _insert_rows(
        self,
        *,
        group_id: int,
        user_id: str,
        mechanic_id: int,
        booking_date: date,
        requested: Dict[int, int],
    ) -> List[Booking]:
        rows = [
            Booking(
                part_id=part_id,
                mechanic_id=mechanic_id,
                user_id=user_id,
                quantity=quantity,
                date=booking_date,
                status=BookingStatus.pending,
                booking_group_id=group_id,
            )
            for part_id, quantity in requested.items()
        ]
        self.db.add_all(rows)
        self.db.flush()
        return rows

    def _load_owned_pending_group(self, group_id: int, user_id: str) -> Tuple[BookingGroup, List[Booking]]:
        group = self.db.get(BookingGroup, group_id)
        if group is None:
            raise NotFoundError(f"Booking group {group_id} not found")
        if group.user_id != user_id:
            raise PermissionError("Booking belongs to another customer")
        rows = (
            self.db.query(Booking)
            .filter(Booking.booking_group_id == group_id)
            .order_by(Booking.id)
            .all()
        )
        if rows and aggregate_status(r.status for r in rows) != BookingStatus.pending.value:
            raise BookingStateError("Only pending bookings can be changed")
        return group, rows

    # ======================================================
    # 🧾 Create
    # ======================================================

    def submit_booking(
        self,
        *,
        user_id: str,
        mechanic_id: int,
        booking_date: date,
        lines: Iterable[Tuple[int, int]],
        today: Optional[date] = None,
    ) -> Tuple[BookingGroup, List[Booking]]:
        """
        Create a booking group with one pending booking per cart line.

        :param user_id: customer id
        :type user_id: str
        :param mechanic_id: chosen mechanic
        :type mechanic_id: int
        :param booking_date: installation date, not before today
        :type booking_date: date
        :param lines: (part_id, quantity) pairs
        :type lines: Iterable[Tuple[int, int]]
        :param today: local date, defaults to date.today()
        :type today: Optional[date]
        :return: the new group and its rows
        """
        today = today or date.today()
        requested = self._requested_by_part(lines)
        self._validate_schedule(mechanic_id=mechanic_id, booking_date=booking_date, today=today)

        # 1️⃣ re-validate against current reservations
        self._check_stock(requested)

        # 2️⃣ group + rows in one transaction
        group = BookingGroup(user_id=user_id)
        self.db.add(group)
        self.db.flush()

        rows = self._insert_rows(
            group_id=group.id,
            user_id=user_id,
            mechanic_id=mechanic_id,
            booking_date=booking_date,
            requested=requested,
        )
        logger.info(
            f"[booking] created group_id={group.id} user_id={user_id} "
            f"mechanic_id={mechanic_id} date={booking_date} lines={len(rows)}"
        )
        return group, rows

    # ======================================================
    # ✍️ Edit
    # ======================================================

    def load_group_for_edit(self, *, group_id: int, user_id: str) -> Tuple[List[Booking], Optional[int]]:
        '''
        Rows used to pre-seed the cart, plus the vehicle id of their parts.
        '''
        _, rows = self._load_owned_pending_group(group_id, user_id)
        vehicle_id = rows[0].part.vehicle_id if rows else None
        return rows, vehicle_id

    def update_booking_group(
        self,
        *,
        group_id: int,
        user_id: str,
        mechanic_id: int,
        booking_date: date,
        lines: Iterable[Tuple[int, int]],
        today: Optional[date] = None,
    ) -> Tuple[BookingGroup, List[Booking]]:
        """
        Replace the bookings of a pending group with the current cart.
        The group's own reservation is credited back before the stock check;
        the delete and the re-insert share one transaction.
        """
        today = today or date.today()
        requested = self._requested_by_part(lines)
        self._validate_schedule(mechanic_id=mechanic_id, booking_date=booking_date, today=today)
        group, old_rows = self._load_owned_pending_group(group_id, user_id)

        self._check_stock(requested, edit_group_id=group_id)

        (
            self.db.query(Booking)
            .filter(Booking.booking_group_id == group_id)
            .delete(synchronize_session=False)
        )
        for row in old_rows:
            self.db.expunge(row)

        rows = self._insert_rows(
            group_id=group.id,
            user_id=user_id,
            mechanic_id=mechanic_id,
            booking_date=booking_date,
            requested=requested,
        )
        logger.info(
            f"[booking] replaced group_id={group.id} rows {len(old_rows)} -> {len(rows)} "
            f"mechanic_id={mechanic_id} date={booking_date}"
        )
        return group, rows
