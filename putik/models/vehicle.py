# putik/models/vehicle.py
from sqlalchemy import Integer, String
from putik.db.base import Base
from sqlalchemy.orm import Mapped, mapped_column
from typing import Optional


class Vehicle(Base):
    """
    Reference data, managed by admins.
    """

    __tablename__ = "vehicles"

    id :Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name :Mapped[Optional[str]] = mapped_column(String(255), nullable=True, comment="Display name")
    make :Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    model :Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    year :Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    url :Mapped[Optional[str]] = mapped_column(String(500), nullable=True, comment="Image url")

    def __repr__(self) -> str:
        return f"<Vehicle id={self.id} name={self.name}>"
