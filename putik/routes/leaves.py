# putik/routes/leaves.py
from flask import Blueprint, request, session
from putik.db.session import get_session
from putik.db.enums import UserRole
from putik.routes.common import ok, fail_from_exception, require_role, request_payload, parse_date, today
from putik.schemas.dto.leave_dto import UnavailableDayDTO
from putik.services.leave_service import LeaveService
from putik.services.errors import NotFoundError

leaves_bp = Blueprint('leaves', __name__, url_prefix='/mechanic/leaves')


def _own_mechanic(leave_service: LeaveService):
    mechanic = leave_service.get_mechanic_by_profile(session['user_id'])
    if mechanic is None:
        raise NotFoundError('No mechanic profile for this account')
    return mechanic


@leaves_bp.route('', methods=['GET'])
def list_leaves():
    """Unavailable days of the signed-in mechanic; ?month=YYYY-MM narrows the list"""
    check = require_role(UserRole.mechanic)
    if check:
        return check

    month = request.args.get('month', '').strip() or None
    db = get_session()
    try:
        leave_service = LeaveService(db)
        mechanic = _own_mechanic(leave_service)
        days = leave_service.list_days(mechanic.id, month)
        return ok({
            'mechanic_id': mechanic.id,
            'month': month,
            'days': [UnavailableDayDTO.from_orm_model(d).model_dump(mode='json') for d in days],
        })
    except Exception as e:
        return fail_from_exception(e, 'load unavailable days')
    finally:
        db.close()


@leaves_bp.route('', methods=['POST'])
def add_leave():
    check = require_role(UserRole.mechanic)
    if check:
        return check

    payload = request_payload(request)
    db = get_session()
    try:
        leave_service = LeaveService(db)
        mechanic = _own_mechanic(leave_service)
        record = leave_service.add_day(
            mechanic_id=mechanic.id,
            day=parse_date(payload.get('date')),
            reason=payload.get('reason'),
            today=today(),
        )
        db.commit()
        return ok(UnavailableDayDTO.from_orm_model(record).model_dump(mode='json'), 201)
    except Exception as e:
        db.rollback()
        return fail_from_exception(e, 'save unavailable day')
    finally:
        db.close()


@leaves_bp.route('/toggle', methods=['POST'])
def toggle_leave():
    """Calendar click: mark the day, or unmark it when already marked"""
    check = require_role(UserRole.mechanic)
    if check:
        return check

    payload = request_payload(request)
    db = get_session()
    try:
        leave_service = LeaveService(db)
        mechanic = _own_mechanic(leave_service)
        day = parse_date(payload.get('date'))
        record = leave_service.toggle_day(
            mechanic_id=mechanic.id,
            day=day,
            reason=payload.get('reason'),
            today=today(),
        )
        db.commit()
        return ok({
            'date': day.isoformat(),
            'unavailable': record is not None,
            'day': UnavailableDayDTO.from_orm_model(record).model_dump(mode='json') if record else None,
        })
    except Exception as e:
        db.rollback()
        return fail_from_exception(e, 'update unavailable day')
    finally:
        db.close()


@leaves_bp.route('/<int:day_id>', methods=['DELETE'])
def delete_leave(day_id):
    check = require_role(UserRole.mechanic)
    if check:
        return check

    db = get_session()
    try:
        leave_service = LeaveService(db)
        mechanic = _own_mechanic(leave_service)
        leave_service.remove_day(mechanic_id=mechanic.id, day_id=day_id)
        db.commit()
        return ok({'id': day_id})
    except Exception as e:
        db.rollback()
        return fail_from_exception(e, 'remove unavailable day')
    finally:
        db.close()
