# putik/models/mechanic.py
from sqlalchemy import Integer, String, ForeignKey
from putik.db.base import Base
from sqlalchemy.orm import Mapped, mapped_column
from typing import Optional


class Mechanic(Base):
    __tablename__ = "mechanics"

    id :Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    profile_id :Mapped[Optional[str]] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
        unique=True,
        comment="Sign-in identity of the mechanic",
    )
    name :Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    email :Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    contact_number :Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    url :Mapped[Optional[str]] = mapped_column(String(500), nullable=True, comment="Profile picture url")

    def __repr__(self) -> str:
        return f"<Mechanic id={self.id} name={self.name}>"
