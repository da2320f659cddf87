import datetime
from typing import List, Optional
from putik.schemas.dto.base_dto import BaseDTO


class UnavailableDayDTO(BaseDTO):
    id: int
    mechanic_id: int
    date: datetime.date
    reason: str

    @classmethod
    def from_orm_model(cls, record) -> "UnavailableDayDTO":
        return cls.model_validate(record)


class UpcomingDayDTO(BaseDTO):
    date: datetime.date
    reason: Optional[str] = None


class MechanicAvailabilityDTO(BaseDTO):
    mechanic_id: int
    name: Optional[str] = None
    url: Optional[str] = None
    is_available: bool
    unavailable_reason: Optional[str] = None
    upcoming_unavailable_days: List[UpcomingDayDTO] = []

    @classmethod
    def from_orm_model(cls, mechanic, availability: Optional[dict] = None) -> "MechanicAvailabilityDTO":
        availability = availability or {}
        return cls(
            mechanic_id=mechanic.id,
            name=mechanic.name,
            url=mechanic.url,
            is_available=availability.get("is_available", True),
            unavailable_reason=availability.get("unavailable_reason"),
            upcoming_unavailable_days=availability.get("upcoming_unavailable_days", []),
        )
