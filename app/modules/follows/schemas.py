from pydantic import BaseModel
from typing import List


class FollowingResponse(BaseModel):
    team_id: str
    following_team_ids: List[str]


class FollowToggleResponse(BaseModel):
    team_id: str
    following: bool
    applied: bool = True
