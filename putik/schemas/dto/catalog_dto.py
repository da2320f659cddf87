from typing import Optional, List
from putik.schemas.dto.base_dto import BaseDTO
from putik.services.availability_service import PartAvailability


class VehicleDTO(BaseDTO):
    id: int
    name: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[str] = None
    url: Optional[str] = None

    @classmethod
    def from_orm_model(cls, vehicle) -> "VehicleDTO":
        return cls.model_validate(vehicle)


class PartTypeDTO(BaseDTO):
    id: int
    name: Optional[str] = None

    @classmethod
    def from_orm_model(cls, part_type) -> "PartTypeDTO":
        return cls.model_validate(part_type)


class MechanicDTO(BaseDTO):
    id: int
    name: Optional[str] = None
    email: Optional[str] = None
    contact_number: Optional[str] = None
    url: Optional[str] = None

    @classmethod
    def from_orm_model(cls, mechanic) -> "MechanicDTO":
        return cls.model_validate(mechanic)


class PartDTO(BaseDTO):
    id: int
    name: str
    description: Optional[str] = None
    price: float
    stock: int
    url: Optional[str] = None
    vehicle_id: Optional[int] = None
    type_id: Optional[int] = None
    type_name: Optional[str] = None

    # live availability, present when computed for the request
    booked_quantity: Optional[int] = None
    available_quantity: Optional[int] = None
    edit_booking_quantity: Optional[int] = None
    remaining: Optional[int] = None
    max_allowed: Optional[int] = None

    @classmethod
    def from_orm_model(
        cls,
        part,
        availability: Optional[PartAvailability] = None,
        max_allowed: Optional[int] = None,
    ) -> "PartDTO":
        return cls(
            id=part.id,
            name=part.name,
            description=part.description,
            price=float(part.price or 0),
            stock=part.stock or 0,
            url=part.url,
            vehicle_id=part.vehicle_id,
            type_id=part.type_id,
            type_name=part.part_type.name if part.part_type else None,
            booked_quantity=availability.booked_quantity if availability else None,
            available_quantity=availability.available_quantity if availability else None,
            edit_booking_quantity=availability.edit_booking_quantity if availability else None,
            remaining=availability.remaining if availability else None,
            max_allowed=max_allowed,
        )


class PartFilterDTO(BaseDTO):
    vehicle_id: Optional[int] = None
    search_term: str = ""
    type_ids: List[int] = []

    @classmethod
    def from_orm_model(cls, part_filter) -> "PartFilterDTO":
        return cls(
            vehicle_id=part_filter.vehicle_id,
            search_term=part_filter.search_term,
            type_ids=list(part_filter.type_ids),
        )
