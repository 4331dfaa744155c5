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


class SignUpResult(BaseModel):
    user_id: Optional[str] = None
    email: str
    access_token: Optional[str] = None


class CurrentUser(BaseModel):
    id: str
    email: str
    role: Literal["member", "superuser"] = "member"
    team_id: Optional[str] = None
    team_name: Optional[str] = None


class SessionResponse(BaseModel):
    user: Optional[CurrentUser] = None
    timed_out: bool = False
