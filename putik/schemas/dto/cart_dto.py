import datetime
from typing import List, Optional
from putik.schemas.dto.base_dto import BaseDTO


class CustomizationLineDTO(BaseDTO):
    part_id: int
    name: str
    unit_price: float
    quantity: int
    line_total: float
    max_allowed: Optional[int] = None
    at_max: bool = False


class CustomizationDTO(BaseDTO):
    vehicle_id: Optional[int] = None
    edit_booking_group_id: Optional[int] = None
    lines: List[CustomizationLineDTO] = []
    total_price: float = 0.0

    @classmethod
    def from_orm_model(cls, customization, max_allowed_by_part=None, edit_group_id=None) -> "CustomizationDTO":
        max_allowed_by_part = max_allowed_by_part or {}
        lines = []
        for line in customization.lines_for_vehicle():
            price = float(line.part.price or 0)
            max_allowed = max_allowed_by_part.get(line.part.id)
            lines.append(CustomizationLineDTO(
                part_id=line.part.id,
                name=line.part.name,
                unit_price=price,
                quantity=line.quantity,
                line_total=price * line.quantity,
                max_allowed=max_allowed,
                at_max=max_allowed is not None and line.quantity >= max_allowed,
            ))
        return cls(
            vehicle_id=customization.vehicle_id,
            edit_booking_group_id=edit_group_id,
            lines=lines,
            total_price=float(customization.total_price()),
        )


class WizardDTO(BaseDTO):
    state: str
    date: Optional[datetime.date] = None
    mechanic_id: Optional[int] = None

    @classmethod
    def from_orm_model(cls, wizard) -> "WizardDTO":
        return cls(state=wizard.state.value, date=wizard.selected_date, mechanic_id=wizard.mechanic_id)
