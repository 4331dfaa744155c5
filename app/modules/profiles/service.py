import logging
from supabase import Client
from app.config.settings import settings
from app.core.errors import UpstreamError, error_message
from app.modules.auth.schemas import CurrentUser
from app.modules.profiles.schemas import ProfileResponse, ProfileUpsert
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_profile(self, user_id: str) -> Optional[ProfileResponse]:
        """Get profile by ID, or None when the account has no profile yet"""
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .eq("id", user_id)\
                .limit(1)\
                .execute()
            if not result.data:
                return None
            return ProfileResponse(**result.data[0])
        except Exception as e:
            raise UpstreamError(error_message(e))

    def upsert_profile(self, profile: ProfileUpsert) -> ProfileResponse:
        """Insert or replace the profile keyed on id"""
        try:
            result = self.supabase.table("profiles")\
                .upsert(profile.model_dump(), on_conflict="id")\
                .execute()
        except Exception as e:
            raise UpstreamError(f"Failed to create profile: {error_message(e)}")
        if not result.data:
            raise UpstreamError("Failed to create profile")
        return ProfileResponse(**result.data[0])

    def resolve_user(self, account: Dict[str, Any]) -> CurrentUser:
        """Combine an auth account with its profile, team name and derived role"""
        team_id = None
        try:
            profile = self.get_profile(account["id"])
            if profile is None:
                logger.warning(f"No profile for user {account['id']}")
            else:
                team_id = profile.team_id
        except UpstreamError as e:
            # Missing or unreadable profile still yields a signed-in user without a team
            logger.error(f"Profile fetch error for {account['id']}: {e.detail}")

        team_name = None
        if team_id:
            try:
                team_result = self.supabase.table("teams")\
                    .select("name")\
                    .eq("id", team_id)\
                    .limit(1)\
                    .execute()
                if team_result.data:
                    team_name = team_result.data[0].get("name")
            except Exception as e:
                logger.error(f"Team fetch error for {team_id}: {e}")

        email = account.get("email") or ""
        return CurrentUser(
            id=account["id"],
            email=email,
            role="superuser" if settings.is_superuser_email(email) else "member",
            team_id=team_id,
            team_name=team_name,
        )
