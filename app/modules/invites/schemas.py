from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Literal
from datetime import datetime
from app.modules.auth.schemas import CurrentUser

InviteStatus = Literal["pending", "accepted", "expired"]


class InviteCreate(BaseModel):
    email: Optional[EmailStr] = None
    invited_by: Optional[str] = None


class InviteResponse(BaseModel):
    id: str
    email: str
    invited_by: str
    team_id: Optional[str] = None
    status: InviteStatus
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class InviteCreateResponse(BaseModel):
    success: bool = True
    invite: InviteResponse
    invite_url: str = Field(alias="inviteUrl")
    message: str

    class Config:
        populate_by_name = True


class InviteDetails(BaseModel):
    invite: InviteResponse
    requires_team_name: bool
    team_name: Optional[str] = None


class InviteAccept(BaseModel):
    password: str
    team_name: Optional[str] = None


class InviteAcceptResponse(BaseModel):
    user_id: str
    email: str
    team_id: str
    access_token: Optional[str] = None
    invite_accepted: bool
    user: Optional[CurrentUser] = None
