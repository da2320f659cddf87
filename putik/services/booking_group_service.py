# putik/services/booking_group_service.py
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from math import ceil
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from putik.db.enums import BookingStatus, GroupAction, MIXED_STATUS, UserRole
from putik.logger import get_logger
from putik.models.booking import Booking
from putik.models.booking_group import BookingGroup
from putik.models.mechanic import Mechanic
from putik.services.errors import NotFoundError

logger = get_logger(__name__)

# Listing order; lower first. Unknown statuses sort last.
STATUS_PRIORITY: Dict[str, int] = {
    BookingStatus.pending.value: 1,
    BookingStatus.accepted.value: 2,
    BookingStatus.in_progress.value: 3,
    BookingStatus.completed.value: 4,
    MIXED_STATUS: 5,
    BookingStatus.cancelled.value: 6,
    BookingStatus.rejected.value: 7,
}
UNKNOWN_PRIORITY = 99

DEFAULT_PER_PAGE = 6


class BookingStateError(ValueError):
    """The group is in a status that does not allow the requested change."""


# action -> (statuses it applies to, resulting status)
TRANSITIONS: Dict[GroupAction, Tuple[frozenset, BookingStatus]] = {
    GroupAction.accept: (frozenset({BookingStatus.pending.value}), BookingStatus.accepted),
    GroupAction.reject: (frozenset({BookingStatus.pending.value}), BookingStatus.rejected),
    GroupAction.start: (frozenset({BookingStatus.accepted.value}), BookingStatus.in_progress),
    GroupAction.complete: (frozenset({BookingStatus.in_progress.value}), BookingStatus.completed),
    GroupAction.cancel: (frozenset({BookingStatus.pending.value}), BookingStatus.cancelled),
}


def _status_value(status) -> str:
    if isinstance(status, BookingStatus):
        return status.value
    return BookingStatus(status).value


def aggregate_status(statuses: Iterable) -> str:
    """
    The shared status of every row, or "mixed" when they disagree.
    """
    unique = {_status_value(s) for s in statuses}
    if len(unique) == 1:
        return unique.pop()
    return MIXED_STATUS


@dataclass
class BookingGroupView:
    booking_group_id: int
    bookings: List[Any] = field(default_factory=list)
    vehicle: Any = None
    mechanic: Any = None
    customer: Any = None
    date: Optional[date] = None
    total_price: Decimal = Decimal("0")
    total_quantity: int = 0
    status: str = MIXED_STATUS

    @property
    def parts_count(self) -> int:
        return len(self.bookings)


def group_bookings(bookings: Iterable) -> List[BookingGroupView]:
    """
    Partition booking rows by booking_group_id, keeping first-seen order.
    Vehicle, mechanic, customer and date come from the first row of each
    group. Rows without a group are skipped.
    """
    groups: Dict[int, List[Any]] = {}
    for booking in bookings:
        group_id = booking.booking_group_id
        if not group_id:
            continue
        groups.setdefault(group_id, []).append(booking)

    views = []
    for group_id, rows in groups.items():
        first = rows[0]
        part = getattr(first, "part", None)
        total_price = Decimal("0")
        for row in rows:
            price = getattr(getattr(row, "part", None), "price", None) or 0
            total_price += Decimal(str(price)) * (row.quantity or 1)
        views.append(BookingGroupView(
            booking_group_id=group_id,
            bookings=rows,
            vehicle=getattr(part, "vehicle", None),
            mechanic=getattr(first, "mechanic", None),
            customer=getattr(first, "user", None),
            date=first.date,
            total_price=total_price,
            total_quantity=sum(row.quantity or 1 for row in rows),
            status=aggregate_status(row.status for row in rows),
        ))
    return views


def sort_groups(groups: Sequence[BookingGroupView]) -> List[BookingGroupView]:
    """status priority, then newest date first; undated groups go last within a status"""
    def key(group: BookingGroupView):
        priority = STATUS_PRIORITY.get(group.status, UNKNOWN_PRIORITY)
        ordinal = group.date.toordinal() if group.date else 0
        return (priority, -ordinal)
    return sorted(groups, key=key)


def paginate(items: Sequence, page: int, per_page: int = DEFAULT_PER_PAGE) -> Tuple[List, int, int]:
    '''
    :return: (items on the page, clamped page number, total pages)
    '''
    total_pages = max(1, ceil(len(items) / per_page)) if per_page > 0 else 1
    page = min(max(1, page), total_pages)
    start = (page - 1) * per_page
    return list(items[start:start + per_page]), page, total_pages


class BookingGroupService:
    """
    Listing of booking groups per role and bulk status changes.

    Responsibilities:
    - load booking rows with their part / vehicle / mechanic / customer
    - group and order them
    - apply accept / reject / start / complete / cancel to every row of a group
    """

    def __init__(self, db: Session):
        self.db = db

    # ======================================================
    # 🔎 Listing
    # ======================================================

    def _grouped(self, query) -> List[BookingGroupView]:
        rows = query.order_by(Booking.booking_group_id, Booking.id).all()
        return sort_groups(group_bookings(rows))

    def list_for_customer(self, user_id: str) -> List[BookingGroupView]:
        return self._grouped(self.db.query(Booking).filter(Booking.user_id == user_id))

    def list_for_mechanic(self, mechanic_id: int) -> List[BookingGroupView]:
        return self._grouped(self.db.query(Booking).filter(Booking.mechanic_id == mechanic_id))

    def list_all(self) -> List[BookingGroupView]:
        return self._grouped(self.db.query(Booking))

    def get_rows(self, group_id: int) -> List[Booking]:
        return (
            self.db.query(Booking)
            .filter(Booking.booking_group_id == group_id)
            .order_by(Booking.id)
            .all()
        )

    def get_group(self, group_id: int) -> BookingGroupView:
        if self.db.get(BookingGroup, group_id) is None:
            raise NotFoundError(f"Booking group {group_id} not found")
        views = group_bookings(self.get_rows(group_id))
        if not views:
            # a group whose rows were all removed still exists
            return BookingGroupView(booking_group_id=group_id)
        return views[0]

    # ======================================================
    # 🔁 Status transitions
    # ======================================================

    def _check_actor(
        self,
        action: GroupAction,
        rows: List[Booking],
        group: BookingGroup,
        actor_id: str,
        actor_role: UserRole,
    ) -> None:
        if action == GroupAction.cancel:
            if actor_role != UserRole.user or group.user_id != actor_id:
                raise PermissionError("Only the customer who booked can cancel")
            return
        if actor_role == UserRole.admin:
            return
        if actor_role != UserRole.mechanic:
            raise PermissionError(f"Customers cannot {action.value} bookings")
        mechanic = (
            self.db.query(Mechanic)
            .filter(Mechanic.profile_id == actor_id)
            .first()
        )
        if mechanic is None or any(row.mechanic_id != mechanic.id for row in rows):
            raise PermissionError("Booking is assigned to another mechanic")

    def change_status(
        self,
        *,
        group_id: int,
        action: GroupAction,
        actor_id: str,
        actor_role: UserRole,
    ) -> BookingGroupView:
        """
        Move every booking of a group to the status implied by action, in
        one UPDATE statement.

        :param group_id: booking group id
        :type group_id: int
        :param action: accept / reject / start / complete / cancel
        :type action: GroupAction
        :param actor_id: id of the signed-in user
        :type actor_id: str
        :param actor_role: role of the signed-in user
        :type actor_role: UserRole
        :return: the regrouped view after the update
        :rtype: BookingGroupView
        """
        group = self.db.get(BookingGroup, group_id)
        if group is None:
            raise NotFoundError(f"Booking group {group_id} not found")
        rows = self.get_rows(group_id)
        if not rows:
            raise ValueError(f"Booking group {group_id} has no bookings")

        self._check_actor(action, rows, group, actor_id, actor_role)

        current = aggregate_status(row.status for row in rows)
        allowed_from, target = TRANSITIONS[action]
        if current not in allowed_from:
            raise BookingStateError(f"Cannot {action.value} a booking that is {current}")

        (
            self.db.query(Booking)
            .filter(Booking.booking_group_id == group_id)
            .update({Booking.status: target}, synchronize_session=False)
        )
        self.db.flush()
        for row in rows:
            self.db.refresh(row)

        logger.info(
            f"[booking_group] {action.value} group_id={group_id} "
            f"{current} -> {target.value} by={actor_id} ({actor_role.value})"
        )
        return group_bookings(rows)[0]
