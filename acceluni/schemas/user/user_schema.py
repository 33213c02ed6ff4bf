from pydantic import BaseModel, EmailStr
from typing import Optional
from datetime import datetime


# --- Shared fields ---
class UserBase(BaseModel):
    email: EmailStr
    username: str
    full_name: Optional[str] = None


# --- POST /auth/register body ---
class UserCreate(UserBase):
    password: str


class UserLogin(BaseModel):
    # Either the username or the email address.
    username: str
    password: str


# --- API response; never carries the password hash ---
class User(UserBase):
    id: int
    is_active: bool
    created_at: Optional[datetime] = None
    stripe_customer_id: Optional[str] = None

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
