# putik/routes/auth.py
from flask import Blueprint, request, session
from putik.db.session import get_session
from putik.db.enums import UserRole
from putik.logger import get_logger
from putik.routes.common import ok, fail, fail_from_exception, request_payload
from putik.schemas.dto.user_dto import UserDTO
from putik.schemas.error_type import ErrorType
from putik.services.user_service import UserService

auth_bp = Blueprint('auth', __name__, url_prefix='')

logger = get_logger(__name__)

# landing page per role
ROLE_HOME = {
    UserRole.user.value: '/user/editor',
    UserRole.mechanic.value: '/mechanic/bookings',
    UserRole.admin.value: '/admin/bookings',
}


def _start_session(user):
    session.clear()
    session['user_id'] = user.id
    session['user_name'] = user.name or user.email
    session['role'] = user.role.value


@auth_bp.route('/register', methods=['POST'])
def register():
    """Customer sign-up; mechanic and admin accounts are created by scripts"""
    payload = request_payload(request)
    email = (payload.get('email') or '').strip()
    password = payload.get('password') or ''
    confirm_password = payload.get('confirm_password')
    name = (payload.get('name') or '').strip() or None
    contact_number = (payload.get('contact_number') or '').strip() or None

    if not email or not password:
        return fail(ErrorType.INPUT_ERROR, 'Email and password are required')
    if confirm_password is not None and confirm_password != password:
        return fail(ErrorType.INPUT_ERROR, 'Passwords do not match')

    db = get_session()
    try:
        user_service = UserService(db)
        user = user_service.create_user(
            email=email,
            password=password,
            name=name,
            contact_number=contact_number,
            role=UserRole.user,
        )
        db.commit()
        _start_session(user)
        logger.info(f"[auth] registered user_id={user.id}")
        return ok({'user': UserDTO.from_orm_model(user).model_dump(mode='json'), 'home': ROLE_HOME[user.role.value]}, 201)
    except Exception as e:
        db.rollback()
        return fail_from_exception(e, 'register')
    finally:
        db.close()


@auth_bp.route('/login', methods=['POST'])
def login():
    payload = request_payload(request)
    email = (payload.get('email') or '').strip()
    password = payload.get('password') or ''

    if not email or not password:
        return fail(ErrorType.INPUT_ERROR, 'Please enter email and password')

    db = get_session()
    try:
        user_service = UserService(db)
        user = user_service.authenticate(email=email, password=password)
        _start_session(user)
        return ok({'user': UserDTO.from_orm_model(user).model_dump(mode='json'), 'home': ROLE_HOME[user.role.value]})
    except ValueError:
        return fail(ErrorType.INPUT_ERROR, 'Invalid email or password', status=401)
    except PermissionError:
        return fail(ErrorType.PERMISSION_DENIED, 'Account is deactivated, please contact the shop')
    except Exception as e:
        return fail_from_exception(e, 'sign in')
    finally:
        db.close()


@auth_bp.route('/logout', methods=['POST'])
def logout():
    session.clear()
    return ok()


@auth_bp.route('/')
def index():
    """Where the signed-in user should land"""
    role = session.get('role')
    if role is None:
        return ok({'home': '/login'})
    return ok({'home': ROLE_HOME.get(role, '/login'), 'name': session.get('user_name'), 'role': role})
