"""
Core dependencies for caller resolution
"""

from fastapi import Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.config.settings import settings
from app.core.session import SessionState, Resolver
from app.database.supabase_client import get_supabase
from app.modules.auth.schemas import CurrentUser
from app.modules.auth.service import AuthService
from app.modules.profiles.service import ProfileService
from supabase import Client
from typing import Optional
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)

_session_state: Optional[SessionState] = None


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_profile_service(supabase: Client = Depends(get_supabase)) -> ProfileService:
    return ProfileService(supabase)


def build_resolver(supabase: Client) -> Resolver:
    """Token -> account -> profile/team -> CurrentUser"""
    auth_service = AuthService(supabase)
    profile_service = ProfileService(supabase)

    def resolve(token: str) -> CurrentUser:
        return profile_service.resolve_user(auth_service.get_account(token))

    return resolve


def _log_session_change(key: str, user: Optional[CurrentUser]) -> None:
    if user is None:
        logger.info(f"Session {key[:8]} cleared")
    else:
        logger.info(f"Session {key[:8]} -> {user.email} (team={user.team_id}, role={user.role})")


def get_session_state() -> SessionState:
    """Process-wide identity cache, created on first use"""
    global _session_state
    if _session_state is None:
        _session_state = SessionState(
            build_resolver(get_supabase()),
            ttl_sec=settings.auth_cache_ttl_sec,
            max_size=settings.auth_cache_max_size,
        )
        _session_state.subscribe(_log_session_change)
    return _session_state


def get_current_token(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    return credentials.credentials


def get_current_user(
    token: str = Depends(get_current_token),
    session_state: SessionState = Depends(get_session_state)
) -> CurrentUser:
    """Resolve the caller from the identity cache"""
    return session_state.get(token)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(optional_security),
    session_state: SessionState = Depends(get_session_state)
) -> Optional[CurrentUser]:
    """Caller if a bearer token was sent, else None"""
    if credentials is None:
        return None
    return session_state.get(credentials.credentials)
