# docbook/services/auth_service.py

from datetime import datetime, timezone
from typing import Any, Dict

from pymongo.errors import DuplicateKeyError

from docbook.core.errors import AuthenticationError, ConflictError, NotFoundError
from docbook.core.logger import logger
from docbook.core.security import create_access_token, hash_password, verify_password
from docbook.crud import user_crud


class AuthService:
    """
    Registration, login and current-user lookups
    """

    def __init__(self, db):
        if db is None:
            raise ValueError("Database connection is required")
        self.db = db

    def register(self, name: str, email: str, password: str, role: str) -> Dict[str, Any]:
        """
        Create a user and issue a token bound to (id, role).

        Input shape (name length, email format, password length, role) is
        validated by ``UserRegisterModel`` before this is called.
        """
        if user_crud.get_user_by_email(self.db, email):
            raise ConflictError("User already exists")

        current_time = datetime.now(timezone.utc)
        user_doc = {
            "name": name,
            "email": email,
            "password": hash_password(password),
            "role": role,
            "created_at": current_time,
            "updated_at": current_time,
            "last_login_at": None,
        }

        try:
            user_id = user_crud.create_user(self.db, user_doc)
        except DuplicateKeyError:
            # Lost a race with a concurrent registration for the same email
            raise ConflictError("User already exists")

        logger.info(f"Registered {role} {user_id}")

        return {
            "user": user_crud.serialize_user(user_doc),
            "token": create_access_token(user_id, role),
        }

    def login(self, email: str, password: str) -> Dict[str, Any]:
        user = user_crud.get_user_by_email(self.db, email)
        # Same message for unknown email and wrong password
        if not user or not verify_password(password, user.get("password", "")):
            logger.info("Rejected login attempt")
            raise AuthenticationError("Invalid credentials")

        user_id = str(user["_id"])
        try:
            user_crud.update_user(self.db, user_id, {"last_login_at": datetime.now(timezone.utc)})
        except Exception as e:
            logger.error(f"Failed to update login time for {user_id}: {str(e)}")
            # Continue with login even if update fails

        logger.info(f"User {user_id} logged in successfully")
        return {
            "user": user_crud.serialize_user(user),
            "token": create_access_token(user_id, user["role"]),
        }

    def get_current_user(self, user_id: str) -> Dict[str, Any]:
        user = user_crud.get_user_by_id(self.db, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user_crud.serialize_user(user)
