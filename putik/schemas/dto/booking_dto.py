import datetime
from typing import List, Optional
from putik.schemas.dto.base_dto import BaseDTO
from putik.schemas.dto.catalog_dto import VehicleDTO, MechanicDTO


class CustomerDTO(BaseDTO):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    contact_number: Optional[str] = None

    @classmethod
    def from_orm_model(cls, user) -> "CustomerDTO":
        return cls(id=user.id, name=user.name, email=user.email, contact_number=user.contact_number)


class BookingDTO(BaseDTO):
    id: int
    booking_group_id: int
    part_id: int
    part_name: Optional[str] = None
    part_description: Optional[str] = None
    unit_price: float
    quantity: int
    subtotal: float
    date: Optional[datetime.date] = None
    status: str
    mechanic_id: Optional[int] = None

    @classmethod
    def from_orm_model(cls, booking) -> "BookingDTO":
        price = float(booking.part.price or 0) if booking.part else 0.0
        quantity = booking.quantity or 1
        return cls(
            id=booking.id,
            booking_group_id=booking.booking_group_id,
            part_id=booking.part_id,
            part_name=booking.part.name if booking.part else None,
            part_description=booking.part.description if booking.part else None,
            unit_price=price,
            quantity=quantity,
            subtotal=price * quantity,
            date=booking.date,
            status=booking.status.value,
            mechanic_id=booking.mechanic_id,
        )


class BookingGroupDTO(BaseDTO):
    booking_group_id: int
    status: str
    date: Optional[datetime.date] = None
    total_price: float
    total_quantity: int
    parts_count: int
    can_modify: bool
    vehicle: Optional[VehicleDTO] = None
    mechanic: Optional[MechanicDTO] = None
    customer: Optional[CustomerDTO] = None
    bookings: List[BookingDTO] = []

    @classmethod
    def from_orm_model(cls, view) -> "BookingGroupDTO":
        return cls(
            booking_group_id=view.booking_group_id,
            status=view.status,
            date=view.date,
            total_price=float(view.total_price),
            total_quantity=view.total_quantity,
            parts_count=view.parts_count,
            can_modify=view.status == "pending",
            vehicle=VehicleDTO.from_orm_model(view.vehicle) if view.vehicle else None,
            mechanic=MechanicDTO.from_orm_model(view.mechanic) if view.mechanic else None,
            customer=CustomerDTO.from_orm_model(view.customer) if view.customer else None,
            bookings=[BookingDTO.from_orm_model(b) for b in view.bookings],
        )


class BookingGroupPageDTO(BaseDTO):
    groups: List[BookingGroupDTO]
    page: int
    total_pages: int
    per_page: int
    total_groups: int
