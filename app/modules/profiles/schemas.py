from pydantic import BaseModel
from typing import Optional, Literal


class ProfileUpsert(BaseModel):
    id: str
    team_id: Optional[str] = None
    invited_by: Optional[str] = None
    role: Literal["member", "superuser"] = "member"


class ProfileResponse(BaseModel):
    id: str
    team_id: Optional[str] = None
    role: str = "member"
    invited_by: Optional[str] = None

    class Config:
        from_attributes = True
