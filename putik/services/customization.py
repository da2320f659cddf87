# putik/services/customization.py
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional


@dataclass
class CustomizationLine:
    part: Any  # Part, or anything with id / name / price / vehicle_id
    quantity: int


class Customization:
    """
    The customer's cart: an ordered list of (part, quantity) lines plus the
    vehicle currently selected in the editor.

    Lives in the server-side session only. Quantities are bounded by the
    caller-supplied max_allowed, which comes from availability.
    """

    def __init__(self, vehicle_id: Optional[int] = None, lines: Optional[List[CustomizationLine]] = None):
        self.vehicle_id = vehicle_id
        self.lines: List[CustomizationLine] = list(lines or [])

    # ======================================================
    # 🔎 Lookup
    # ======================================================

    def _index_of(self, part_id: int) -> int:
        for i, line in enumerate(self.lines):
            if line.part.id == part_id:
                return i
        return -1

    def quantity_of(self, part_id: int) -> int:
        i = self._index_of(part_id)
        return self.lines[i].quantity if i != -1 else 0

    def lines_for_vehicle(self, vehicle_id: Optional[int] = None) -> List[CustomizationLine]:
        vehicle_id = self.vehicle_id if vehicle_id is None else vehicle_id
        return [line for line in self.lines if line.part.vehicle_id == vehicle_id]

    def total_price(self, vehicle_id: Optional[int] = None) -> Decimal:
        total = Decimal("0")
        for line in self.lines_for_vehicle(vehicle_id):
            total += Decimal(str(line.part.price or 0)) * line.quantity
        return total

    def is_empty(self, vehicle_id: Optional[int] = None) -> bool:
        return not self.lines_for_vehicle(vehicle_id)

    # ======================================================
    # ✍️ Mutations
    # ======================================================

    def add_part(self, part, max_allowed: int) -> bool:
        """
        One more unit of part. Silently ignored when already at max_allowed.
        Returns True when the cart changed.
        """
        current = self.quantity_of(part.id)
        if current >= max_allowed:
            return False
        i = self._index_of(part.id)
        if i == -1:
            self.lines.append(CustomizationLine(part=part, quantity=1))
        else:
            self.lines[i] = CustomizationLine(part=part, quantity=current + 1)
        return True

    def update_quantity(self, part, new_quantity: int, max_allowed: int) -> bool:
        """
        Set the quantity of part, clamped to [0, max_allowed]. 0 removes the
        line; negative input is ignored. Returns True when the cart changed.
        """
        if new_quantity < 0:
            return False
        quantity = min(new_quantity, max(0, max_allowed))
        i = self._index_of(part.id)
        if quantity == 0:
            if i == -1:
                return False
            del self.lines[i]
            return True
        if i == -1:
            self.lines.append(CustomizationLine(part=part, quantity=quantity))
            return True
        if self.lines[i].quantity == quantity:
            return False
        self.lines[i] = CustomizationLine(part=part, quantity=quantity)
        return True

    def clear(self) -> None:
        self.lines = []

    # ======================================================
    # 💾 Session round trip
    # ======================================================

    def to_session(self) -> Dict[str, Any]:
        return {
            "vehicle_id": self.vehicle_id,
            "lines": [{"part_id": l.part.id, "quantity": l.quantity} for l in self.lines],
        }

    @classmethod
    def from_session(cls, data: Optional[Mapping[str, Any]], parts_by_id: Mapping[int, Any]) -> "Customization":
        '''
        Rebuild a cart from its session form. Lines whose part no longer
        exists are dropped.

        :param data: output of to_session(), or None for an empty cart
        :param parts_by_id: current parts keyed by id
        '''
        if not data:
            return cls()
        lines = []
        for raw in data.get("lines") or []:
            part = parts_by_id.get(raw.get("part_id"))
            quantity = int(raw.get("quantity") or 0)
            if part is None or quantity <= 0:
                continue
            lines.append(CustomizationLine(part=part, quantity=quantity))
        return cls(vehicle_id=data.get("vehicle_id"), lines=lines)

    @staticmethod
    def part_ids_in(data: Optional[Mapping[str, Any]]) -> List[int]:
        if not data:
            return []
        return [raw.get("part_id") for raw in data.get("lines") or [] if raw.get("part_id") is not None]


def max_allowed_for(availability, edit_mode: bool) -> int:
    """
    Upper bound for one cart line.

    create mode: available_quantity
    edit mode:   stock - booked_quantity + edit_booking_quantity
    Negative availability counts as nothing left.
    """
    if availability is None:
        return 0
    if edit_mode:
        return max(0, availability.stock - availability.booked_quantity + availability.edit_booking_quantity)
    return max(0, availability.available_quantity)
