# putik/services/booking_wizard.py
import enum
from datetime import date
from typing import Any, Dict, Mapping, Optional


class WizardState(enum.Enum):
    idle = "idle"
    date_selected = "date_selected"
    mechanic_selected = "mechanic_selected"
    confirmed = "confirmed"
    submitted = "submitted"


class BookingWizard:
    """
    date -> mechanic -> confirm, for both a new booking and an edit.

    idle -> date_selected -> mechanic_selected -> confirmed -> submitted
    cancel() from any state before submitted returns to idle and forgets
    the date and mechanic. The cart is not owned here and survives cancel.
    """

    def __init__(
        self,
        state: WizardState = WizardState.idle,
        selected_date: Optional[date] = None,
        mechanic_id: Optional[int] = None,
    ):
        self.state = state
        self.selected_date = selected_date
        self.mechanic_id = mechanic_id

    def _require(self, *states: WizardState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise ValueError(f"Booking step not allowed in state '{self.state.value}' (expected {allowed})")

    def select_date(self, selected: date, *, today: date, cart_empty: bool = False) -> None:
        '''
        Pick the installation date.

        :param selected: chosen calendar date
        :param today: local date; anything before it is refused
        :param cart_empty: True when there is nothing to book
        '''
        self._require(WizardState.idle, WizardState.date_selected)
        if cart_empty:
            raise ValueError("Add at least one part before booking")
        if selected < today:
            raise ValueError("Booking date cannot be in the past")
        self.selected_date = selected
        self.mechanic_id = None
        self.state = WizardState.date_selected

    def select_mechanic(self, mechanic_id: int, *, is_available: Optional[bool] = True) -> None:
        """
        is_available is the advisory leave check for the selected date.
        A mechanic explicitly marked unavailable cannot be picked.
        """
        self._require(WizardState.date_selected, WizardState.mechanic_selected)
        if is_available is False:
            raise ValueError("Mechanic is unavailable on the selected date")
        self.mechanic_id = mechanic_id
        self.state = WizardState.mechanic_selected

    def back(self) -> None:
        self._require(WizardState.mechanic_selected, WizardState.date_selected)
        self.mechanic_id = None
        self.state = WizardState.date_selected

    def confirm(self) -> None:
        self._require(WizardState.mechanic_selected)
        self.state = WizardState.confirmed

    def fail(self) -> None:
        # submission refused; keep choices so the customer can retry
        self._require(WizardState.confirmed)
        self.state = WizardState.mechanic_selected

    def mark_submitted(self) -> None:
        self._require(WizardState.confirmed)
        self.state = WizardState.submitted

    def cancel(self) -> None:
        if self.state == WizardState.submitted:
            raise ValueError("Booking already submitted")
        self.reset()

    def reset(self) -> None:
        self.state = WizardState.idle
        self.selected_date = None
        self.mechanic_id = None

    # session round trip
    def to_session(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "date": self.selected_date.isoformat() if self.selected_date else None,
            "mechanic_id": self.mechanic_id,
        }

    @classmethod
    def from_session(cls, data: Optional[Mapping[str, Any]]) -> "BookingWizard":
        if not data:
            return cls()
        raw_date = data.get("date")
        return cls(
            state=WizardState(data.get("state") or WizardState.idle.value),
            selected_date=date.fromisoformat(raw_date) if raw_date else None,
            mechanic_id=data.get("mechanic_id"),
        )
