# putik/routes/bookings.py
from flask import Blueprint, current_app, request, session
from putik.db.session import get_session
from putik.db.enums import GroupAction, UserRole
from putik.routes.common import ok, fail, fail_from_exception, require_role, current_role
from putik.schemas.dto.booking_dto import BookingGroupDTO, BookingGroupPageDTO
from putik.schemas.error_type import ErrorType
from putik.services.booking_group_service import BookingGroupService, paginate
from putik.services.leave_service import LeaveService

bookings_bp = Blueprint('bookings', __name__)


# ======================================================
# 🔐 Internal helpers
# ======================================================

def _page_payload(groups) -> dict:
    raw_page = request.args.get('page', '1')
    try:
        page = int(raw_page)
    except (TypeError, ValueError):
        page = 1
    per_page = current_app.config.get('BOOKINGS_PER_PAGE', 6)
    items, page, total_pages = paginate(groups, page, per_page)
    return BookingGroupPageDTO(
        groups=[BookingGroupDTO.from_orm_model(g) for g in items],
        page=page,
        total_pages=total_pages,
        per_page=per_page,
        total_groups=len(groups),
    ).model_dump(mode='json')


def _change_status(group_id: int, action: str):
    """Run a status change for the signed-in actor and commit it"""
    try:
        group_action = GroupAction(action)
    except ValueError:
        return fail(ErrorType.INPUT_ERROR, f"Unknown action: {action}")

    db = get_session()
    try:
        view = BookingGroupService(db).change_status(
            group_id=group_id,
            action=group_action,
            actor_id=session['user_id'],
            actor_role=current_role(),
        )
        db.commit()
        return ok(BookingGroupDTO.from_orm_model(view).model_dump(mode='json'))
    except Exception as e:
        db.rollback()
        return fail_from_exception(e, f"{group_action.value} booking")
    finally:
        db.close()


# ======================================================
# 👤 Customer
# ======================================================

@bookings_bp.route('/user/bookings', methods=['GET'])
def user_bookings():
    check = require_role(UserRole.user)
    if check:
        return check

    db = get_session()
    try:
        groups = BookingGroupService(db).list_for_customer(session['user_id'])
        return ok(_page_payload(groups))
    except Exception as e:
        return fail_from_exception(e, 'load bookings')
    finally:
        db.close()


@bookings_bp.route('/user/bookings/<int:group_id>/cancel', methods=['POST'])
def cancel_booking(group_id):
    check = require_role(UserRole.user)
    if check:
        return check
    return _change_status(group_id, GroupAction.cancel.value)


# ======================================================
# 🔧 Mechanic
# ======================================================

@bookings_bp.route('/mechanic/bookings', methods=['GET'])
def mechanic_bookings():
    """Groups assigned to the signed-in mechanic"""
    check = require_role(UserRole.mechanic)
    if check:
        return check

    db = get_session()
    try:
        mechanic = LeaveService(db).get_mechanic_by_profile(session['user_id'])
        if mechanic is None:
            return fail(ErrorType.NOT_FOUND, 'No mechanic profile for this account')
        groups = BookingGroupService(db).list_for_mechanic(mechanic.id)
        return ok(_page_payload(groups))
    except Exception as e:
        return fail_from_exception(e, 'load bookings')
    finally:
        db.close()


@bookings_bp.route('/mechanic/bookings/<int:group_id>/<action>', methods=['POST'])
def mechanic_change_status(group_id, action):
    check = require_role(UserRole.mechanic)
    if check:
        return check
    if action == GroupAction.cancel.value:
        return fail(ErrorType.PERMISSION_DENIED, 'Only the customer who booked can cancel')
    return _change_status(group_id, action)


# ======================================================
# 🛠 Admin
# ======================================================

@bookings_bp.route('/admin/bookings', methods=['GET'])
def admin_bookings():
    check = require_role(UserRole.admin)
    if check:
        return check

    db = get_session()
    try:
        groups = BookingGroupService(db).list_all()
        return ok(_page_payload(groups))
    except Exception as e:
        return fail_from_exception(e, 'load bookings')
    finally:
        db.close()


@bookings_bp.route('/admin/bookings/<int:group_id>', methods=['GET'])
def admin_booking_detail(group_id):
    check = require_role(UserRole.admin)
    if check:
        return check

    db = get_session()
    try:
        view = BookingGroupService(db).get_group(group_id)
        return ok(BookingGroupDTO.from_orm_model(view).model_dump(mode='json'))
    except Exception as e:
        return fail_from_exception(e, 'load booking')
    finally:
        db.close()


@bookings_bp.route('/admin/bookings/<int:group_id>/<action>', methods=['POST'])
def admin_change_status(group_id, action):
    check = require_role(UserRole.admin)
    if check:
        return check
    return _change_status(group_id, action)
