# putik/tests/conftest.py
import datetime
from decimal import Decimal
from types import SimpleNamespace

import bcrypt
import pytest

from putik.db.enums import UserRole
from putik.db.init_db import init_db
from putik.db.session import get_session, reset_engine
from putik.models.part import Part
from putik.models.part_type import PartType
from putik.models.vehicle import Vehicle
from putik.services.leave_service import LeaveService
from putik.services.user_service import UserService

PASSWORD = "secret123"

_gensalt = bcrypt.gensalt


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    # minimum cost factor keeps password hashing out of the test runtime
    monkeypatch.setattr(bcrypt, "gensalt", lambda rounds=4, prefix=b"2b": _gensalt(4, prefix))


@pytest.fixture()
def db_url(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'putik_test.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    reset_engine()
    init_db()
    yield url
    reset_engine()


@pytest.fixture()
def db(db_url):
    session = get_session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture()
def seeded(db):
    """
    Two vehicles, three part types, four parts, two customers, two
    mechanics and an admin.
    """
    hilux = Vehicle(name="Toyota Hilux 2021", make="Toyota", model="Hilux", year="2021")
    ranger = Vehicle(name="Ford Ranger 2020", make="Ford", model="Ranger", year="2020")
    suspension = PartType(name="Suspension")
    bumpers = PartType(name="Bumpers")
    lighting = PartType(name="Lighting")
    db.add_all([hilux, ranger, suspension, bumpers, lighting])
    db.flush()

    lift_kit = Part(name="2in Lift Kit", price=Decimal("45000.00"), stock=5, vehicle_id=hilux.id, type_id=suspension.id)
    bumper = Part(name="Steel Front Bumper", price=Decimal("38000.00"), stock=2, vehicle_id=hilux.id, type_id=bumpers.id)
    light_bar = Part(name="LED Light Bar", price=Decimal("9500.00"), stock=10, vehicle_id=hilux.id, type_id=lighting.id)
    coilover = Part(name="Coilover Set", price=Decimal("62000.00"), stock=3, vehicle_id=ranger.id, type_id=suspension.id)
    db.add_all([lift_kit, bumper, light_bar, coilover])
    db.flush()

    users = UserService(db)
    customer = users.create_user(email="juan@example.com", password=PASSWORD, name="Juan", role=UserRole.user)
    other = users.create_user(email="maria@example.com", password=PASSWORD, name="Maria", role=UserRole.user)
    mechanic_user = users.create_user(email="jun@example.com", password=PASSWORD, name="Mang Jun", role=UserRole.mechanic)
    mechanic2_user = users.create_user(email="rico@example.com", password=PASSWORD, name="Rico", role=UserRole.mechanic)
    admin = users.create_user(email="admin@example.com", password=PASSWORD, name="Admin", role=UserRole.admin)
    db.commit()

    leaves = LeaveService(db)

    return SimpleNamespace(
        hilux=hilux,
        ranger=ranger,
        suspension=suspension,
        bumpers=bumpers,
        lighting=lighting,
        lift_kit=lift_kit,
        bumper=bumper,
        light_bar=light_bar,
        coilover=coilover,
        customer=customer,
        other=other,
        mechanic_user=mechanic_user,
        mechanic=leaves.get_mechanic_by_profile(mechanic_user.id),
        mechanic2_user=mechanic2_user,
        mechanic2=leaves.get_mechanic_by_profile(mechanic2_user.id),
        admin=admin,
    )


@pytest.fixture()
def today():
    return datetime.date.today()


@pytest.fixture()
def future(today):
    return today + datetime.timedelta(days=7)


@pytest.fixture()
def app(seeded, tmp_path):
    from putik.app_factory import create_app
    return create_app("testing", {"SESSION_FILE_DIR": str(tmp_path / "sessions")})


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def login_as(client):
    """Sign the test client in; returns the login payload"""
    def _login(email, password=PASSWORD):
        resp = client.post("/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.get_json()
        return resp.get_json()["data"]
    return _login
