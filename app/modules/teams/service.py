import logging
from supabase import Client
from app.modules.teams.schemas import TeamResponse
from app.core.errors import NotFoundError, ValidationFailed, UpstreamError, error_message
from typing import Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)

MIN_TEAM_NAME_LENGTH = 2


class TeamService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_team(self, team_id: str) -> TeamResponse:
        """Get team by ID"""
        try:
            result = self.supabase.table("teams")\
                .select("*")\
                .eq("id", team_id)\
                .limit(1)\
                .execute()

            if not result.data:
                raise NotFoundError("Team not found")

            return TeamResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise UpstreamError(error_message(e))

    def find_team_by_name(self, name: str) -> Optional[TeamResponse]:
        """Get team by exact name, or None"""
        try:
            result = self.supabase.table("teams")\
                .select("*")\
                .eq("name", name)\
                .limit(1)\
                .execute()
            if not result.data:
                return None
            return TeamResponse(**result.data[0])
        except Exception as e:
            raise UpstreamError(error_message(e))

    def create_team(self, name: str) -> TeamResponse:
        """Create a team. Name uniqueness is a read-then-write check, not a constraint."""
        team_name = (name or "").strip()
        if len(team_name) < MIN_TEAM_NAME_LENGTH:
            raise ValidationFailed("Team name must be at least 2 characters")

        if self.find_team_by_name(team_name):
            raise ValidationFailed("Team name already exists, please choose another")

        try:
            result = self.supabase.table("teams").insert({"name": team_name}).execute()
        except Exception as e:
            raise UpstreamError(f"Failed to create team: {error_message(e)}")

        if not result.data:
            raise UpstreamError("Failed to create team")

        logger.info(f"Created team {result.data[0]['id']} ({team_name})")
        return TeamResponse(**result.data[0])
