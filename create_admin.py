# create_admin.py
"""
Seed demo accounts and a small catalog.
Development / manual maintenance only.
"""
import sys
from decimal import Decimal

from putik.db.enums import UserRole
from putik.db.init_db import init_db
from putik.db.session import get_session
from putik.logger import get_logger
from putik.models.part import Part
from putik.models.part_type import PartType
from putik.models.vehicle import Vehicle
from putik.services.errors import NotFoundError
from putik.services.user_service import UserService
from run import configure_database

logger = get_logger(__name__)

USERS = [
    {"email": "admin@putik.local", "password": "admin123", "name": "Administrator", "role": UserRole.admin},
    {"email": "mechanic1@putik.local", "password": "mechanic123", "name": "Mang Jun", "role": UserRole.mechanic},
    {"email": "mechanic2@putik.local", "password": "mechanic123", "name": "Rico", "role": UserRole.mechanic},
    {"email": "customer@putik.local", "password": "customer123", "name": "Demo Customer", "role": UserRole.user},
]

VEHICLES = [
    {"name": "Toyota Hilux 2021", "make": "Toyota", "model": "Hilux", "year": "2021"},
    {"name": "Ford Ranger 2020", "make": "Ford", "model": "Ranger", "year": "2020"},
]

TYPES = ["Suspension", "Bumpers", "Lighting", "Wheels & Tires"]

# (vehicle index, type name, part name, price, stock)
PARTS = [
    (0, "Suspension", "2in Lift Kit", "45000.00", 4),
    (0, "Bumpers", "Steel Front Bumper", "38000.00", 2),
    (0, "Lighting", "LED Light Bar 32in", "9500.00", 10),
    (1, "Suspension", "Coilover Set", "62000.00", 3),
    (1, "Wheels & Tires", "All-Terrain Tire 265/70R17", "8200.00", 16),
]


def seed_users(user_service: UserService):
    for u in USERS:
        if user_service.get_user_by_email(u["email"]):
            logger.info(f"User '{u['email']}' already exists, skipping")
            continue
        user_service.create_user(**u)


def seed_catalog(db):
    if db.query(Vehicle).first() is not None:
        logger.info("Catalog already seeded, skipping")
        return

    vehicles = [Vehicle(**v) for v in VEHICLES]
    types = {name: PartType(name=name) for name in TYPES}
    db.add_all(vehicles + list(types.values()))
    db.flush()

    for vehicle_index, type_name, name, price, stock in PARTS:
        db.add(Part(
            name=name,
            price=Decimal(price),
            stock=stock,
            vehicle_id=vehicles[vehicle_index].id,
            type_id=types[type_name].id,
        ))
    db.flush()


def create_admin():
    configure_database()
    init_db()
    db = get_session()
    try:
        seed_users(UserService(db))
        seed_catalog(db)
        db.commit()
        logger.info("Demo accounts and catalog created")
    except Exception:
        db.rollback()
        logger.exception("Seeding failed")
        raise
    finally:
        db.close()


def deactivate_account(email: str):
    """
    Soft-delete an account so it can no longer sign in.

    :param email: account email
    :type email: str
    """
    configure_database()
    db = get_session()
    try:
        user_service = UserService(db)
        user = user_service.get_user_by_email(email)
        if user is None:
            raise NotFoundError(f"User '{email}' not found")
        user_service.deactivate_user(user_id=user.id)
        db.commit()
        logger.info(f"Account '{user.email}' deactivated")
    except Exception:
        db.rollback()
        logger.exception(f"Deactivating '{email}' failed")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    # python create_admin.py deactivate <email>
    if len(sys.argv) == 3 and sys.argv[1] == "deactivate":
        deactivate_account(sys.argv[2])
    else:
        create_admin()
