# putik/models/mechanic_unavailable_day.py
from sqlalchemy import Integer, String, Date, ForeignKey, UniqueConstraint
from putik.db.base import Base
from sqlalchemy.orm import Mapped, mapped_column
import datetime


class MechanicUnavailableDay(Base):
    """
    Advisory leave record. Shown in the mechanic picker, never blocks a
    booking at the database level.
    """

    __tablename__ = "mechanic_unavailable_days"
    __table_args__ = (
        UniqueConstraint("mechanic_id", "date", name="uq_mechanic_unavailable_day"),
    )

    id :Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    mechanic_id :Mapped[int] = mapped_column(ForeignKey("mechanics.id"), nullable=False, index=True)
    date :Mapped[datetime.date] = mapped_column(Date, nullable=False)
    reason :Mapped[str] = mapped_column(String(255), nullable=False, default="leave")

    def __repr__(self) -> str:
        return f"<MechanicUnavailableDay mechanic_id={self.mechanic_id} date={self.date}>"
