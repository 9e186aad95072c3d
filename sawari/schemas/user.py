from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field

from sawari.schemas.base import CamelModel

Role = Literal["user", "admin"]
PHONE_PATTERN = r"^\d{10}$"


class RegisterIn(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    name: str = Field(..., min_length=2)
    phone_number: Optional[str] = Field(None, pattern=PHONE_PATTERN)


class TokenOut(BaseModel):
    # OAuth2 clients expect snake_case here
    access_token: str
    token_type: str = "bearer"


class UserOut(CamelModel):
    id: str
    name: str
    email: str
    phone_number: Optional[str] = None
    role: Role
    photo_url: Optional[str] = None
    dob: Optional[date] = None


class ProfileUpdate(CamelModel):
    name: str = Field(..., min_length=2)
    phone_number: str = Field(..., pattern=PHONE_PATTERN)
    dob: Optional[date] = None


class PasswordChange(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8)


class RoleUpdate(CamelModel):
    role: Role
