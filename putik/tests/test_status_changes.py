# putik/tests/test_status_changes.py
import pytest

from putik.db.enums import BookingStatus, GroupAction, UserRole
from putik.models.booking import Booking
from putik.services.availability_service import AvailabilityService
from putik.services.booking_group_service import BookingGroupService, BookingStateError
from putik.services.booking_service import BookingService
from putik.services.errors import NotFoundError


@pytest.fixture()
def group(db, seeded, future):
    group, _ = BookingService(db, AvailabilityService(db)).submit_booking(
        user_id=seeded.customer.id,
        mechanic_id=seeded.mechanic.id,
        booking_date=future,
        lines=[(seeded.lift_kit.id, 2), (seeded.light_bar.id, 1)],
    )
    db.commit()
    return group


def _change(db, group_id, action, user, role):
    view = BookingGroupService(db).change_status(
        group_id=group_id,
        action=action,
        actor_id=user.id,
        actor_role=role,
    )
    db.commit()
    return view


def test_mechanic_walks_group_to_completed(db, seeded, group):
    for action, expected in [
        (GroupAction.accept, "accepted"),
        (GroupAction.start, "in_progress"),
        (GroupAction.complete, "completed"),
    ]:
        view = _change(db, group.id, action, seeded.mechanic_user, UserRole.mechanic)
        assert view.status == expected
        assert {b.status.value for b in view.bookings} == {expected}

    # completed frees the stock again
    availability = AvailabilityService(db).for_parts([seeded.lift_kit])[seeded.lift_kit.id]
    assert availability.available_quantity == 5


def test_reject_and_cancel_release_stock(db, seeded, group, future):
    _change(db, group.id, GroupAction.reject, seeded.admin, UserRole.admin)
    assert AvailabilityService(db).for_parts([seeded.lift_kit])[seeded.lift_kit.id].available_quantity == 5

    second, _ = BookingService(db, AvailabilityService(db)).submit_booking(
        user_id=seeded.customer.id,
        mechanic_id=seeded.mechanic.id,
        booking_date=future,
        lines=[(seeded.bumper.id, 2)],
    )
    db.commit()
    view = _change(db, second.id, GroupAction.cancel, seeded.customer, UserRole.user)
    assert view.status == "cancelled"
    assert AvailabilityService(db).for_parts([seeded.bumper])[seeded.bumper.id].available_quantity == 2


@pytest.mark.parametrize("action", [GroupAction.start, GroupAction.complete])
def test_out_of_order_transition(db, seeded, group, action):
    with pytest.raises(BookingStateError):
        _change(db, group.id, action, seeded.mechanic_user, UserRole.mechanic)


def test_cancel_only_while_pending(db, seeded, group):
    _change(db, group.id, GroupAction.accept, seeded.mechanic_user, UserRole.mechanic)
    with pytest.raises(BookingStateError):
        _change(db, group.id, GroupAction.cancel, seeded.customer, UserRole.user)


def test_actor_checks(db, seeded, group):
    with pytest.raises(PermissionError):
        _change(db, group.id, GroupAction.accept, seeded.mechanic2_user, UserRole.mechanic)
    with pytest.raises(PermissionError):
        _change(db, group.id, GroupAction.accept, seeded.customer, UserRole.user)
    with pytest.raises(PermissionError):
        _change(db, group.id, GroupAction.cancel, seeded.other, UserRole.user)
    with pytest.raises(PermissionError):
        _change(db, group.id, GroupAction.cancel, seeded.admin, UserRole.admin)


def test_mixed_group_cannot_transition(db, seeded, group):
    first = db.query(Booking).filter(Booking.booking_group_id == group.id).order_by(Booking.id).first()
    first.status = BookingStatus.accepted
    db.commit()

    assert BookingGroupService(db).get_group(group.id).status == "mixed"
    with pytest.raises(BookingStateError):
        _change(db, group.id, GroupAction.accept, seeded.admin, UserRole.admin)


def test_unknown_group(db, seeded):
    with pytest.raises(NotFoundError):
        _change(db, 4242, GroupAction.accept, seeded.admin, UserRole.admin)


def test_listings_per_role(db, seeded, group, future):
    other_group, _ = BookingService(db, AvailabilityService(db)).submit_booking(
        user_id=seeded.other.id,
        mechanic_id=seeded.mechanic2.id,
        booking_date=future,
        lines=[(seeded.coilover.id, 1)],
    )
    db.commit()
    _change(db, group.id, GroupAction.accept, seeded.mechanic_user, UserRole.mechanic)

    service = BookingGroupService(db)
    assert [g.booking_group_id for g in service.list_for_customer(seeded.customer.id)] == [group.id]
    assert [g.booking_group_id for g in service.list_for_mechanic(seeded.mechanic2.id)] == [other_group.id]
    # pending before accepted
    assert [g.booking_group_id for g in service.list_all()] == [other_group.id, group.id]
