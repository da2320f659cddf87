# putik/tests/test_users.py
import pytest

from putik.db.enums import UserRole
from putik.services.errors import NotFoundError
from putik.services.leave_service import LeaveService
from putik.services.user_service import UserService


def test_create_and_authenticate(db):
    service = UserService(db)
    user = service.create_user(email="  Ana@Example.COM ", password="pw", name="Ana")
    db.commit()

    assert user.email == "ana@example.com"
    assert user.role == UserRole.user
    assert user.password_hash != "pw"
    assert service.authenticate(email="ANA@example.com", password="pw").id == user.id
    assert service.get_user_by_id(user.id).email == "ana@example.com"

    with pytest.raises(ValueError):
        service.authenticate(email="ana@example.com", password="nope")
    with pytest.raises(ValueError):
        service.create_user(email="ana@example.com", password="other")


def test_mechanic_account_gets_mechanic_row(db):
    user = UserService(db).create_user(
        email="tech@example.com",
        password="pw",
        name="Tech",
        contact_number="0917",
        role=UserRole.mechanic,
    )
    db.commit()

    mechanic = LeaveService(db).get_mechanic_by_profile(user.id)
    assert (mechanic.name, mechanic.email, mechanic.contact_number) == ("Tech", "tech@example.com", "0917")


def test_deactivated_user_cannot_sign_in(db):
    service = UserService(db)
    user = service.create_user(email="gone@example.com", password="pw")
    service.deactivate_user(user_id=user.id)
    db.commit()

    with pytest.raises(PermissionError):
        service.authenticate(email="gone@example.com", password="pw")
    with pytest.raises(NotFoundError):
        service.deactivate_user(user_id="missing")


def test_deactivate_account_command(db, seeded):
    from create_admin import deactivate_account

    deactivate_account("JUAN@example.com")
    db.expire_all()

    with pytest.raises(PermissionError):
        UserService(db).authenticate(email="juan@example.com", password="secret123")
    with pytest.raises(NotFoundError):
        deactivate_account("nobody@example.com")


def test_auto_init_is_idempotent(db_url):
    from putik.db.auto_init import ADMIN_EMAIL, auto_init
    from putik.db.session import get_session

    auto_init()
    auto_init()

    db = get_session()
    try:
        admin = UserService(db).get_user_by_email(ADMIN_EMAIL)
        assert admin.role == UserRole.admin
    finally:
        db.close()
