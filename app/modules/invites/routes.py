import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from app.config.settings import settings
from app.database.supabase_client import get_supabase
from app.core.dependencies import get_session_state
from app.core.limiter import limiter
from app.core.session import SessionState, SIGNED_IN
from app.modules.invites.schemas import (
    InviteCreate, InviteCreateResponse, InviteDetails, InviteAccept, InviteAcceptResponse
)
from app.modules.invites.service import InviteService
from supabase import Client

logger = logging.getLogger(__name__)

router = APIRouter(tags=["invites"])


def get_invite_service(supabase: Client = Depends(get_supabase)) -> InviteService:
    return InviteService(supabase)


@router.post("/invite", response_model=InviteCreateResponse)
@limiter.limit(settings.invite_rate_limit)
async def create_invite(
    request: Request,
    invite_data: InviteCreate,
    service: InviteService = Depends(get_invite_service)
):
    """Issue an invite link for an email"""
    return service.create_invite(invite_data.email, invite_data.invited_by)


@router.get("/invites/{invite_id}", response_model=InviteDetails)
async def get_invite(
    invite_id: str,
    service: InviteService = Depends(get_invite_service)
):
    """Pending invite details for the acceptance form"""
    return service.describe_invite(invite_id)


@router.post("/invites/{invite_id}/accept", response_model=InviteAcceptResponse)
async def accept_invite(
    invite_id: str,
    accept_data: InviteAccept,
    service: InviteService = Depends(get_invite_service),
    session_state: SessionState = Depends(get_session_state)
):
    """Create or sign in the invited account, join or found its team, close the invite"""
    result = service.accept_invite(invite_id, accept_data.password, accept_data.team_name)
    if result.access_token:
        try:
            result.user = session_state.handle_auth_event(SIGNED_IN, result.access_token)
        except HTTPException as e:
            logger.warning(f"Could not refresh session after accepting invite {invite_id}: {e.detail}")
    return result
