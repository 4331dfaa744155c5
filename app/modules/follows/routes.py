from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.core.errors import ValidationFailed
from app.modules.auth.schemas import CurrentUser
from app.modules.follows.schemas import FollowingResponse, FollowToggleResponse
from app.modules.follows.service import FollowService
from app.core.dependencies import get_current_user
from supabase import Client

router = APIRouter(prefix="/follows", tags=["follows"])


def get_follow_service(supabase: Client = Depends(get_supabase)) -> FollowService:
    return FollowService(supabase)


@router.get("", response_model=FollowingResponse)
async def list_following(
    current_user: CurrentUser = Depends(get_current_user),
    service: FollowService = Depends(get_follow_service)
):
    """Teams the caller's team follows"""
    if not current_user.team_id:
        raise ValidationFailed("You must be part of a team to follow other teams")
    following = service.list_following(current_user.team_id)
    return FollowingResponse(team_id=current_user.team_id, following_team_ids=sorted(following))


@router.post("/{team_id}/toggle", response_model=FollowToggleResponse)
async def toggle_follow(
    team_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: FollowService = Depends(get_follow_service)
):
    """Follow the team if not followed yet, otherwise unfollow it"""
    return service.toggle(current_user.team_id, team_id)
