# putik/models/part.py
from sqlalchemy import (
    String,
    Text,
    Numeric,
    Integer,
    ForeignKey,
)
from putik.db.base import Base
from putik.models.vehicle import Vehicle
from putik.models.part_type import PartType
from sqlalchemy.orm import Mapped, mapped_column, relationship
from decimal import Decimal
from typing import Optional


class Part(Base):
    """
    A part that can be installed on one vehicle.

    `stock` is the authoritative on-hand count. Bookings never mutate it;
    reservations are subtracted at read time.
    """

    __tablename__ = "parts"

    id :Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # =========
    # 🔤 Description
    # =========
    name :Mapped[str] = mapped_column(String(255), nullable=False, default="")
    description :Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    url :Mapped[Optional[str]] = mapped_column(String(500), nullable=True, comment="Image url")

    # =========
    # 🔢 Stock & pricing
    # =========
    price :Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0"),
        comment="Unit price (PHP)",
    )
    stock :Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="On-hand count, changed only by admins",
    )

    # =========
    # 🔗 Catalog placement
    # =========
    vehicle_id :Mapped[Optional[int]] = mapped_column(ForeignKey("vehicles.id"), nullable=True)
    type_id :Mapped[Optional[int]] = mapped_column(ForeignKey("types.id"), nullable=True)

    vehicle :Mapped[Optional[Vehicle]] = relationship(Vehicle, lazy="joined")
    part_type :Mapped[Optional[PartType]] = relationship(PartType, lazy="joined")

    def __repr__(self) -> str:
        return f"<Part id={self.id} name={self.name} stock={self.stock}>"
