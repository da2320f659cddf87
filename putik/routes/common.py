# putik/routes/common.py
from datetime import date
from typing import Any, Optional

from flask import jsonify, session
from sqlalchemy.exc import SQLAlchemyError

from putik.db.enums import UserRole
from putik.logger import get_logger
from putik.schemas.api_result import ApiResult
from putik.schemas.error_type import ErrorType, HTTP_STATUS
from putik.services.booking_group_service import BookingStateError
from putik.services.booking_service import InsufficientStockError
from putik.services.errors import NotFoundError

logger = get_logger(__name__)


def ok(data: Any = None, status: int = 200):
    return jsonify(ApiResult.success(data).model_dump(mode="json")), status


def fail(error_type: ErrorType, message: str, data: Any = None, status: Optional[int] = None):
    result = ApiResult.failure(error_type, message, data)
    return jsonify(result.model_dump(mode="json")), status or HTTP_STATUS[error_type]


def fail_from_exception(e: Exception, action: str):
    """
    Map a service exception onto the error taxonomy.

    :param e: the exception raised while handling the request
    :param action: what the request was doing, e.g. "load bookings"
    """
    if isinstance(e, InsufficientStockError):
        return fail(ErrorType.VALIDATION_ERROR, str(e), {
            "part_id": e.part_id,
            "available": e.available,
            "requested": e.requested,
        })
    if isinstance(e, BookingStateError):
        return fail(ErrorType.BUSINESS_RULE_ERROR, str(e))
    if isinstance(e, PermissionError):
        return fail(ErrorType.PERMISSION_DENIED, str(e) or "Access denied")
    if isinstance(e, NotFoundError):
        return fail(ErrorType.NOT_FOUND, str(e))
    if isinstance(e, ValueError):
        return fail(ErrorType.INPUT_ERROR, str(e))
    if isinstance(e, SQLAlchemyError):
        logger.exception(f"Database error while trying to {action}")
        return fail(ErrorType.DATABASE_ERROR, f"Unable to {action}. Please try again later.")
    logger.exception(f"Unexpected error while trying to {action}")
    return fail(ErrorType.SYSTEM_ERROR, f"Unable to {action}. Please try again later.")


def require_login():
    """Check sign-in; returns an error response or None"""
    if 'user_id' not in session:
        return fail(ErrorType.PERMISSION_DENIED, "Please log in first", status=401)
    return None


def require_role(*roles: UserRole):
    """Check sign-in and role; returns an error response or None"""
    check = require_login()
    if check:
        return check
    if session.get('role') not in {r.value for r in roles}:
        return fail(ErrorType.PERMISSION_DENIED, "Access denied")
    return None


def current_role() -> Optional[UserRole]:
    role = session.get('role')
    return UserRole(role) if role else None


def parse_date(raw: Any, field: str = "date") -> date:
    if not raw:
        raise ValueError(f"{field} is required")
    try:
        return date.fromisoformat(str(raw).strip())
    except ValueError:
        raise ValueError(f"Invalid {field}: {raw!r}, expected YYYY-MM-DD")


def parse_int(raw: Any, field: str) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid {field}: {raw!r}")


def request_payload(request) -> dict:
    """JSON body, falling back to form fields"""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def today() -> date:
    return date.today()
