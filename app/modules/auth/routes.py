from fastapi import APIRouter, Depends
from app.config.settings import settings
from app.core.dependencies import (
    get_auth_service, get_current_token, get_current_user, get_session_state
)
from app.core.session import SessionState, SIGNED_IN, SIGNED_OUT
from app.modules.auth.schemas import (
    LoginRequest, TokenResponse, CurrentUser, SessionResponse
)
from app.modules.auth.service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service),
    session_state: SessionState = Depends(get_session_state)
):
    """Login and get access token"""
    token = service.sign_in(login_data)
    session_state.handle_auth_event(SIGNED_IN, token.access_token)
    return token


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service),
    session_state: SessionState = Depends(get_session_state)
):
    """Logout and drop the cached identity"""
    service.sign_out(token)
    session_state.handle_auth_event(SIGNED_OUT, token)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=CurrentUser)
async def get_me(current_user: CurrentUser = Depends(get_current_user)):
    """Get current authenticated user with team and role"""
    return current_user


@router.get("/session", response_model=SessionResponse)
async def get_session(
    token: str = Depends(get_current_token),
    session_state: SessionState = Depends(get_session_state)
):
    """Initial load: stop waiting after the configured timeout instead of blocking the UI"""
    user, timed_out = await session_state.load(token, settings.session_load_timeout_sec)
    return SessionResponse(user=user, timed_out=timed_out)


@router.post("/refresh", response_model=CurrentUser)
async def refresh_me(
    token: str = Depends(get_current_token),
    session_state: SessionState = Depends(get_session_state)
):
    """Re-resolve the caller after a mutating action"""
    return session_state.refresh(token)
