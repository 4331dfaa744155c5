from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.auth.schemas import CurrentUser
from app.modules.feed.schemas import FeedMode, PostCreate, PostResponse
from app.modules.feed.service import FeedService
from app.core.dependencies import get_current_user, get_optional_user
from supabase import Client
from typing import List, Optional

router = APIRouter(prefix="/posts", tags=["feed"])


def get_feed_service(supabase: Client = Depends(get_supabase)) -> FeedService:
    return FeedService(supabase)


@router.get("", response_model=List[PostResponse])
async def list_posts(
    mode: FeedMode = FeedMode.ALL,
    current_user: Optional[CurrentUser] = Depends(get_optional_user),
    service: FeedService = Depends(get_feed_service)
):
    """List the newest posts; following mode only shows teams the caller's team follows"""
    team_id = current_user.team_id if current_user else None
    return service.list_posts(mode=mode, team_id=team_id)


@router.post("", response_model=PostResponse, status_code=201)
async def create_post(
    post_data: PostCreate,
    current_user: CurrentUser = Depends(get_current_user),
    service: FeedService = Depends(get_feed_service)
):
    """Post on behalf of the caller's team"""
    return service.create_post(current_user.team_id, post_data.content)
