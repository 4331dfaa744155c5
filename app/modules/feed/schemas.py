from enum import Enum
from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class FeedMode(str, Enum):
    ALL = "all"
    FOLLOWING = "following"


class PostCreate(BaseModel):
    content: str


class PostTeam(BaseModel):
    name: str
    avatar_url: Optional[str] = None


class PostResponse(BaseModel):
    id: str
    content: str
    team_id: str
    created_at: datetime
    teams: Optional[PostTeam] = None

    class Config:
        from_attributes = True
