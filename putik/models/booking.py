# putik/models/booking.py
from sqlalchemy import Integer, Date, String, ForeignKey, TypeDecorator
from putik.db.base import Base
from putik.db.enums import BookingStatus
from putik.models.part import Part
from putik.models.mechanic import Mechanic
from putik.models.user import User
from sqlalchemy.orm import Mapped, mapped_column, relationship
import datetime
from typing import Any, Optional


class BookingStatusType(TypeDecorator):
    """
    Booking status stored as its plain string value.
    Reading goes through BookingStatus(...) so the legacy "confirmed"
    comes back as accepted.
    """
    impl = String
    cache_ok = True

    def __init__(self):
        super().__init__(length=20)

    def process_bind_param(self, value: Any, dialect) -> Optional[str]:
        if value is None:
            return None
        if isinstance(value, BookingStatus):
            return value.value
        return BookingStatus(value).value

    def process_result_value(self, value: Any, dialect) -> Optional[BookingStatus]:
        if value is None:
            return None
        return BookingStatus(value)


class Booking(Base):
    """
    Reservation of `quantity` units of one part, for one date, with one
    mechanic. Rows submitted together share a booking_group_id.
    """

    __tablename__ = "bookings"

    id :Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    part_id :Mapped[int] = mapped_column(ForeignKey("parts.id"), nullable=False, index=True)
    mechanic_id :Mapped[Optional[int]] = mapped_column(ForeignKey("mechanics.id"), nullable=True, index=True)
    user_id :Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    booking_group_id :Mapped[int] = mapped_column(
        ForeignKey("booking_groups.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    quantity :Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    date :Mapped[Optional[datetime.date]] = mapped_column(Date, nullable=True, comment="Installation date")

    status :Mapped[BookingStatus] = mapped_column(
        BookingStatusType(),
        nullable=False,
        default=BookingStatus.pending,
        index=True,
    )

    part :Mapped[Part] = relationship(Part, lazy="joined")
    mechanic :Mapped[Optional[Mechanic]] = relationship(Mechanic, lazy="joined")
    user :Mapped[User] = relationship(User, lazy="joined")

    def __repr__(self) -> str:
        return (
            f"<Booking id={self.id} group={self.booking_group_id} "
            f"part_id={self.part_id} qty={self.quantity} status={self.status.value}>"
        )
