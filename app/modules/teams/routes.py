from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.teams.schemas import TeamResponse
from app.modules.teams.service import TeamService
from app.core.dependencies import get_current_user
from app.modules.auth.schemas import CurrentUser
from supabase import Client

router = APIRouter(prefix="/teams", tags=["teams"])


def get_team_service(supabase: Client = Depends(get_supabase)) -> TeamService:
    return TeamService(supabase)


@router.get("/{team_id}", response_model=TeamResponse)
async def get_team(
    team_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: TeamService = Depends(get_team_service)
):
    """Get team by ID"""
    return service.get_team(team_id)
