# putik/db/enums.py
import enum


class UserRole(enum.Enum):
    user = "user"
    mechanic = "mechanic"
    admin = "admin"


# Older rows were written with "confirmed" for an accepted booking
LEGACY_ACCEPTED = "confirmed"


# Booking related enums
class BookingStatus(enum.Enum):
    pending = "pending"
    accepted = "accepted"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"
    rejected = "rejected"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            value = value.strip().lower()
            if value == LEGACY_ACCEPTED:
                return cls.accepted
            for member in cls:
                if member.value == value:
                    return member
        return None


# still reserve stock
ACTIVE_STATUSES = frozenset({
    BookingStatus.pending,
    BookingStatus.accepted,
    BookingStatus.in_progress,
})

# stored values of ACTIVE_STATUSES, legacy spelling included
ACTIVE_STATUS_VALUES = frozenset({s.value for s in ACTIVE_STATUSES} | {LEGACY_ACCEPTED})

# Derived group status when member bookings disagree
MIXED_STATUS = "mixed"


class GroupAction(enum.Enum):
    accept = "accept"
    reject = "reject"
    start = "start"
    complete = "complete"
    cancel = "cancel"
