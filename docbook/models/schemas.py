# docbook/models/schemas.py
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Literal

Role = Literal["patient", "doctor"]


class APIModel(BaseModel):
    """Base for request/response bodies: camelCase on the wire, snake_case accepted too."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserRegisterModel(APIModel):
    name: str
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Role

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v):
        # bcrypt refuses inputs over 72 bytes
        if len(v.encode("utf-8")) > 72:
            raise ValueError("Password must be at most 72 bytes long")
        return v

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Please provide a valid name (minimum 2 characters)")
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower()


class UserLoginModel(APIModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower()


class UserPublic(APIModel):
    id: str
    name: str
    email: str
    role: Role


class AuthResponse(APIModel):
    message: str
    user: UserPublic
    token: str
    token_type: str = "bearer"
