"""
Database bootstrap run at startup: create missing tables and make sure an
admin account exists.
"""
import os
from sqlalchemy import inspect
from putik.db.enums import UserRole
from putik.db.session import get_engine, get_session
from putik.db.init_db import init_db
from putik.logger import get_logger
from putik.services.user_service import UserService

logger = get_logger(__name__)

REQUIRED_TABLES = {"users", "parts", "bookings", "booking_groups"}

ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@putik.local")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")


def check_tables_exist() -> bool:
    """All core tables present?"""
    try:
        inspector = inspect(get_engine())
        tables = set(inspector.get_table_names())
        return REQUIRED_TABLES.issubset(tables)
    except Exception as e:
        logger.warning(f"Could not inspect database tables: {e}")
        return False


def check_admin_user_exists() -> bool:
    db = get_session()
    try:
        return UserService(db).get_user_by_email(ADMIN_EMAIL) is not None
    finally:
        db.close()


def create_admin_user():
    db = get_session()
    try:
        user_service = UserService(db)
        if user_service.get_user_by_email(ADMIN_EMAIL):
            logger.info("Admin account already exists, skipping")
            return

        user_service.create_user(
            email=ADMIN_EMAIL,
            password=ADMIN_PASSWORD,
            name="Administrator",
            role=UserRole.admin,
        )
        db.commit()
        logger.info(f"Admin account created: {ADMIN_EMAIL} (change the password after first login)")
    except Exception:
        db.rollback()
        logger.exception("Failed to create admin account")
        raise
    finally:
        db.close()


def auto_init():
    """
    Create tables when missing (create_all is a no-op for existing ones),
    then seed the admin account when missing.
    """
    logger.info("Checking database initialization")

    if not check_tables_exist():
        logger.info("Tables missing, creating")
        init_db()
    else:
        logger.info("Tables present")

    if not check_admin_user_exists():
        create_admin_user()

    logger.info("Database initialization check done")


if __name__ == "__main__":
    auto_init()
