# putik/models/booking_group.py
from sqlalchemy import Integer, DateTime, ForeignKey, func
from putik.db.base import Base
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime


class BookingGroup(Base):
    """
    One checkout. Has no status of its own; see
    putik.services.booking_group_service.aggregate_status.
    """

    __tablename__ = "booking_groups"

    id :Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id :Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    created_at :Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<BookingGroup id={self.id} user_id={self.user_id}>"
