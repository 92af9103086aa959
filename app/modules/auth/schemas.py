from pydantic import BaseModel, EmailStr
from typing import Optional


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    user_id: str
    email: str


class SignupRequest(BaseModel):
    email: EmailStr
    password: str
    username: Optional[str] = None
    display_name: Optional[str] = None


class SignupResponse(BaseModel):
    user_id: str
    email: str
    access_token: Optional[str] = None  # None until the e-mail is confirmed
    message: str


class CurrentUserResponse(BaseModel):
    id: str
    email: Optional[str] = None
    oauth_username: Optional[str] = None
    user_metadata: dict = {}
    app_metadata: dict = {}
