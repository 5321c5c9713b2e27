from pydantic import BaseModel, EmailStr
from typing import Optional, Literal


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    full_name: Optional[str] = None
    user_type: Literal["customer", "business", "sales_agent", "corporate"] = "customer"


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    user_type: str
    message: str


class SetAdminRequest(BaseModel):
    user_id: str
    is_admin: bool = True
