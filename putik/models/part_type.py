# putik/models/part_type.py
from sqlalchemy import Integer, String
from putik.db.base import Base
from sqlalchemy.orm import Mapped, mapped_column
from typing import Optional


class PartType(Base):
    """Part category tag."""

    __tablename__ = "types"

    id :Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name :Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
