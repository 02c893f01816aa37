from datetime import datetime
from typing import Optional
from pydantic import EmailStr
from travel_app.models.user import Role
from travel_app.schemas.base import CamelModel


class UserCreate(CamelModel):
    first_name: str
    last_name: str
    email: EmailStr
    password: str
    phone: Optional[str] = None
    role: Role = Role.USER


class UserLogin(CamelModel):
    email: str
    password: str


class UserResponse(CamelModel):
    id: int
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    role: Role
    created_at: Optional[datetime] = None


class SignupResponse(CamelModel):
    message: str
    user: UserResponse


class TokenPair(CamelModel):
    access_token: str
    refresh_token: str


class RefreshRequest(CamelModel):
    refresh_token: str


class AccessToken(CamelModel):
    access_token: str
