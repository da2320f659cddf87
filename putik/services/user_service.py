# putik/services/user_service.py
from uuid import uuid4
from typing import Optional
import bcrypt
from sqlalchemy.orm import Session
from putik.db.enums import UserRole
from putik.models.user import User
from putik.models.mechanic import Mechanic
from putik.services.errors import NotFoundError


class UserService:
    """
    Accounts for customers, mechanics and admins.
    Provides:
    - registration (a mechanic account also gets its mechanics row)
    - authentication
    - user lookup
    - deactivation

    Session handling lives in the routes.
    """

    def __init__(self, db: Session):
        self.db = db

    # ======================================================
    # 🔐 Internal helpers
    # ======================================================

    def _hash_password(self, password: str) -> str:
        '''Hash a password using bcrypt'''
        return bcrypt.hashpw(
            password.encode("utf-8"),
            bcrypt.gensalt(),
        ).decode("utf-8")

    def _verify_password(self, password: str, password_hash: str) -> bool:
        '''verify a password against its hash'''
        return bcrypt.checkpw(
            password.encode("utf-8"),
            password_hash.encode("utf-8"),
        )

    def _normalize_email(self, email: str) -> str:
        return (email or "").strip().lower()

    # ======================================================
    # 👤 User CRUD
    # ======================================================

    def create_user(
        self,
        *,
        email: str,
        password: str,
        name: Optional[str] = None,
        contact_number: Optional[str] = None,
        role: UserRole = UserRole.user,
    ) -> User:
        """
        Register a new user.

        :param email: Login email (unique)
        :type email: str
        :param password: Plaintext password
        :type password: str
        :param name: Display name
        :type name: Optional[str]
        :param contact_number: Phone number
        :type contact_number: Optional[str]
        :param role: user / mechanic / admin
        :type role: UserRole
        """
        email = self._normalize_email(email)
        if not email or not password:
            raise ValueError("Email and password are required")

        # 1️⃣ email must be unique
        if self.get_user_by_email(email):
            raise ValueError(f"Account '{email}' already exists")

        # 2️⃣ user row
        user = User(
            id=str(uuid4()),
            email=email,
            name=name,
            password_hash=self._hash_password(password),
            contact_number=contact_number,
            role=role,
            is_active=True,
        )
        self.db.add(user)
        self.db.flush()

        # 3️⃣ mechanic profile
        if role == UserRole.mechanic:
            self.db.add(Mechanic(
                profile_id=user.id,
                name=name,
                email=email,
                contact_number=contact_number,
            ))
            self.db.flush()

        return user

    def authenticate(
        self,
        *,
        email: str,
        password: str,
    ) -> User:
        """
        Authenticate user by email + password.
        Returns User if successful.
        """
        user = self.get_user_by_email(email)

        if not user:
            raise ValueError("Invalid email or password")

        if not user.is_active:
            raise PermissionError("User account is deactivated")

        if not self._verify_password(password, user.password_hash):
            raise ValueError("Invalid email or password")

        return user

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        return (
            self.db.query(User)
            .filter(User.email == self._normalize_email(email))
            .first()
        )

    # ======================================================
    # 🔁 Account maintenance
    # ======================================================

    def deactivate_user(self, *, user_id: str) -> None:
        """
        Deactivate (soft delete) user.
        """
        user = self.get_user_by_id(user_id)
        if not user:
            raise NotFoundError(f"User {user_id} not found")

        user.is_active = False
