# docbook/core/security.py

from datetime import datetime, timedelta, timezone
from typing import Literal, Optional, Union

import bcrypt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import BaseModel

from docbook.core.config import ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALGORITHM, JWT_SECRET_KEY
from docbook.core.errors import AuthenticationError, AuthorizationError

bearer_scheme = HTTPBearer(auto_error=False)


class PatientPrincipal(BaseModel):
    user_id: str
    role: Literal["patient"] = "patient"


class DoctorPrincipal(BaseModel):
    user_id: str
    role: Literal["doctor"] = "doctor"


Principal = Union[PatientPrincipal, DoctorPrincipal]


# Hash password using bcrypt
def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


# Create JWT token bound to (user id, role) with expiration
def create_access_token(user_id: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
    if expires_delta is None:
        expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode = {"sub": user_id, "role": role, "exp": expire}
    return jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Principal:
    """Validate signature and expiry and resolve the token to a typed principal."""
    try:
        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except JWTError:
        raise AuthenticationError("Invalid token")

    user_id = payload.get("sub")
    role = payload.get("role")
    if not user_id or not isinstance(user_id, str):
        raise AuthenticationError("Invalid token")

    if role == "patient":
        return PatientPrincipal(user_id=user_id)
    if role == "doctor":
        return DoctorPrincipal(user_id=user_id)
    raise AuthenticationError("Invalid token")


# Get current principal from the Authorization header
def get_current_principal(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("No token provided, authorization denied")
    return decode_access_token(credentials.credentials)


#  Role-based access control
def require_role(*allowed_roles: str):
    def _role_checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in allowed_roles:
            raise AuthorizationError("Access forbidden: insufficient role")
        return principal
    return _role_checker
