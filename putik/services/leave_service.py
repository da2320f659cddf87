# putik/services/leave_service.py
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from putik.logger import get_logger
from putik.models.mechanic import Mechanic
from putik.models.mechanic_unavailable_day import MechanicUnavailableDay
from putik.services.errors import NotFoundError

logger = get_logger(__name__)

UPCOMING_LIMIT = 10


def month_bounds(month: str) -> Tuple[date, date]:
    '''
    "2026-10" -> (2026-10-01, 2026-11-01), end exclusive
    '''
    try:
        year, mon = (int(x) for x in month.split("-"))
        start = date(year, mon, 1)
    except (ValueError, TypeError):
        raise ValueError(f"Invalid month: {month!r}, expected YYYY-MM")
    end = date(year + 1, 1, 1) if mon == 12 else date(year, mon + 1, 1)
    return start, end


class LeaveService:
    """
    A mechanic's unavailable days. Advisory only: the mechanic picker shows
    them, booking submission does not consult them.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_mechanic_by_profile(self, user_id: str) -> Optional[Mechanic]:
        return (
            self.db.query(Mechanic)
            .filter(Mechanic.profile_id == user_id)
            .first()
        )

    def list_days(self, mechanic_id: int, month: Optional[str] = None) -> List[MechanicUnavailableDay]:
        query = self.db.query(MechanicUnavailableDay).filter(
            MechanicUnavailableDay.mechanic_id == mechanic_id
        )
        if month:
            start, end = month_bounds(month)
            query = query.filter(
                MechanicUnavailableDay.date >= start,
                MechanicUnavailableDay.date < end,
            )
        return query.order_by(MechanicUnavailableDay.date).all()

    def find_day(self, mechanic_id: int, day: date) -> Optional[MechanicUnavailableDay]:
        return (
            self.db.query(MechanicUnavailableDay)
            .filter(
                MechanicUnavailableDay.mechanic_id == mechanic_id,
                MechanicUnavailableDay.date == day,
            )
            .first()
        )

    def add_day(
        self,
        *,
        mechanic_id: int,
        day: date,
        reason: Optional[str] = None,
        today: Optional[date] = None,
    ) -> MechanicUnavailableDay:
        """
        Mark day as unavailable.

        :param mechanic_id: mechanic id
        :param day: date to block
        :param reason: free text, "leave" when empty
        :param today: local date; days before it are refused
        """
        today = today or date.today()
        if day < today:
            raise ValueError("Cannot mark a past date as unavailable")
        # check-then-insert; the unique constraint catches a concurrent duplicate
        if self.find_day(mechanic_id, day) is not None:
            raise ValueError(f"{day.isoformat()} is already marked unavailable")

        record = MechanicUnavailableDay(
            mechanic_id=mechanic_id,
            date=day,
            reason=(reason or "").strip() or "leave",
        )
        self.db.add(record)
        self.db.flush()
        logger.info(f"[leave] add mechanic_id={mechanic_id} date={day} reason={record.reason}")
        return record

    def remove_day(self, *, mechanic_id: int, day_id: int) -> None:
        record = self.db.get(MechanicUnavailableDay, day_id)
        if record is None:
            raise NotFoundError(f"Unavailable day {day_id} not found")
        if record.mechanic_id != mechanic_id:
            raise PermissionError("Unavailable day belongs to another mechanic")
        self.db.delete(record)
        self.db.flush()
        logger.info(f"[leave] remove mechanic_id={mechanic_id} date={record.date}")

    def toggle_day(
        self,
        *,
        mechanic_id: int,
        day: date,
        reason: Optional[str] = None,
        today: Optional[date] = None,
    ) -> Optional[MechanicUnavailableDay]:
        '''
        Calendar click: remove the day if already marked, otherwise add it.
        Returns the new record, or None when the day was removed.
        '''
        today = today or date.today()
        if day < today:
            raise ValueError("Past dates cannot be changed")
        existing = self.find_day(mechanic_id, day)
        if existing is not None:
            self.remove_day(mechanic_id=mechanic_id, day_id=existing.id)
            return None
        return self.add_day(mechanic_id=mechanic_id, day=day, reason=reason, today=today)

    def mechanic_availability(
        self,
        mechanics: Iterable[Mechanic],
        day: date,
        *,
        today: Optional[date] = None,
    ) -> Dict[int, dict]:
        """
        Advisory availability of each mechanic on day, for the picker.

        :return: mechanic_id -> {is_available, unavailable_reason, upcoming_unavailable_days}
        """
        today = today or date.today()
        mechanic_ids = [m.id for m in mechanics]
        if not mechanic_ids:
            return {}

        records = (
            self.db.query(MechanicUnavailableDay)
            .filter(
                MechanicUnavailableDay.mechanic_id.in_(mechanic_ids),
                MechanicUnavailableDay.date >= min(today, day),
            )
            .order_by(MechanicUnavailableDay.date)
            .all()
        )

        result: Dict[int, dict] = {
            mid: {"is_available": True, "unavailable_reason": None, "upcoming_unavailable_days": []}
            for mid in mechanic_ids
        }
        for record in records:
            entry = result[record.mechanic_id]
            if record.date == day:
                entry["is_available"] = False
                entry["unavailable_reason"] = record.reason
            if record.date >= today and len(entry["upcoming_unavailable_days"]) < UPCOMING_LIMIT:
                entry["upcoming_unavailable_days"].append(
                    {"date": record.date.isoformat(), "reason": record.reason}
                )
        return result
