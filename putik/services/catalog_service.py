# putik/services/catalog_service.py
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.orm import Session

from putik.models.vehicle import Vehicle
from putik.models.part_type import PartType
from putik.models.part import Part
from putik.models.mechanic import Mechanic


@dataclass
class PartFilter:
    """
    Search term and type filters shared by the editor header and the
    parts list. Built once per request and handed to both.
    """
    vehicle_id: Optional[int] = None
    search_term: str = ""
    type_ids: List[int] = field(default_factory=list)

    @classmethod
    def from_args(cls, args) -> "PartFilter":
        '''
        Build from request query args: vehicle_id, search, types (comma separated ids).
        '''
        vehicle_id = (args.get("vehicle_id") or "").strip()
        types_str = (args.get("types") or "").strip()
        type_ids = []
        for raw in types_str.split(","):
            raw = raw.strip()
            if not raw:
                continue
            if not raw.isdigit():
                raise ValueError(f"Invalid type id: {raw}")
            type_ids.append(int(raw))
        if vehicle_id and not vehicle_id.isdigit():
            raise ValueError(f"Invalid vehicle id: {vehicle_id}")
        return cls(
            vehicle_id=int(vehicle_id) if vehicle_id else None,
            search_term=(args.get("search") or "").strip(),
            type_ids=type_ids,
        )

    def set_search_term(self, term: str) -> None:
        self.search_term = (term or "").strip()

    def toggle_type(self, type_id: int) -> None:
        if type_id in self.type_ids:
            self.type_ids.remove(type_id)
        else:
            self.type_ids.append(type_id)

    def clear_types(self) -> None:
        self.type_ids = []

    def to_session(self) -> dict:
        return {"search_term": self.search_term, "type_ids": list(self.type_ids)}

    @classmethod
    def from_session(cls, data, vehicle_id: Optional[int] = None) -> "PartFilter":
        data = data or {}
        return cls(
            vehicle_id=vehicle_id,
            search_term=data.get("search_term") or "",
            type_ids=[int(t) for t in data.get("type_ids") or []],
        )

    def matches(self, part) -> bool:
        if self.vehicle_id is not None and part.vehicle_id != self.vehicle_id:
            return False
        if self.search_term and self.search_term.lower() not in (part.name or "").lower():
            return False
        if self.type_ids and part.type_id not in self.type_ids:
            return False
        return True


class CatalogService:
    """
    Read side of the catalog: vehicles, part types, parts and mechanics.
    Admin maintenance of these tables is not part of this service.
    """

    def __init__(self, db: Session):
        self.db = db

    def list_vehicles(self) -> List[Vehicle]:
        return self.db.query(Vehicle).order_by(Vehicle.id).all()

    def list_types(self) -> List[PartType]:
        return self.db.query(PartType).order_by(PartType.id).all()

    def list_mechanics(self) -> List[Mechanic]:
        return self.db.query(Mechanic).order_by(Mechanic.id).all()

    def get_vehicle(self, vehicle_id: int) -> Optional[Vehicle]:
        return self.db.get(Vehicle, vehicle_id)

    def get_part(self, part_id: int) -> Optional[Part]:
        return self.db.get(Part, part_id)

    def get_mechanic(self, mechanic_id: int) -> Optional[Mechanic]:
        return self.db.get(Mechanic, mechanic_id)

    def list_parts(self, part_filter: Optional[PartFilter] = None) -> List[Part]:
        """
        Parts ordered by id, narrowed by the filter when one is given.

        :param part_filter: vehicle / search term / type filter
        :type part_filter: Optional[PartFilter]
        """
        query = self.db.query(Part)
        if part_filter is not None:
            if part_filter.vehicle_id is not None:
                query = query.filter(Part.vehicle_id == part_filter.vehicle_id)
            if part_filter.type_ids:
                query = query.filter(Part.type_id.in_(part_filter.type_ids))
        parts = query.order_by(Part.id).all()
        # name matching stays in Python so every backend lower-cases the same way
        if part_filter is not None and part_filter.search_term:
            parts = [p for p in parts if part_filter.matches(p)]
        return parts

    def parts_by_id(self, part_ids) -> dict:
        ids = list(set(part_ids))
        if not ids:
            return {}
        parts = self.db.query(Part).filter(Part.id.in_(ids)).all()
        return {p.id: p for p in parts}
