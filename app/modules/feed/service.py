import logging
from supabase import Client
from app.config.settings import settings
from app.core.errors import ValidationFailed, UpstreamError, error_message
from app.modules.feed.schemas import FeedMode, PostResponse
from app.modules.follows.service import FollowService
from typing import List, Optional, Dict, Any

logger = logging.getLogger(__name__)

POST_COLUMNS = "id, content, created_at, team_id, teams!inner(name, avatar_url)"


class FeedService:
    def __init__(self, supabase: Client, follow_service: Optional[FollowService] = None):
        self.supabase = supabase
        self.follow_service = follow_service or FollowService(supabase)

    def list_posts(
        self,
        mode: FeedMode = FeedMode.ALL,
        team_id: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[PostResponse]:
        """Newest posts with their team's name/avatar. Following mode without a team falls back to all."""
        followed_team_ids = None
        if mode == FeedMode.FOLLOWING and team_id:
            followed_team_ids = self.follow_service.list_following(team_id)
            if not followed_team_ids:
                return []

        try:
            query = self.supabase.table("posts").select(POST_COLUMNS)
            if followed_team_ids is not None:
                query = query.in_("team_id", sorted(followed_team_ids))
            result = query.order("created_at", desc=True)\
                .limit(limit or settings.feed_limit)\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching posts: {e}")
            raise UpstreamError(error_message(e))

        return [self._to_post(row) for row in result.data or []]

    def create_post(self, team_id: Optional[str], content: str) -> PostResponse:
        """Create a post attributed to the caller's team"""
        if not content or not content.strip():
            raise ValidationFailed("Post cannot be empty")

        max_length = settings.post_max_length
        if len(content) > max_length:
            raise ValidationFailed(f"Post is too long (max {max_length} characters)")

        if not team_id:
            raise ValidationFailed("You must be part of a team to post")

        try:
            result = self.supabase.table("posts").insert({
                "content": content.strip(),
                "team_id": team_id
            }).execute()
        except Exception as e:
            logger.error(f"Post creation error: {e}")
            raise UpstreamError(f"Failed to create post: {error_message(e)}")

        if not result.data:
            raise UpstreamError("Failed to create post")

        return self._to_post(result.data[0])

    @staticmethod
    def _to_post(row: Dict[str, Any]) -> PostResponse:
        data = dict(row)
        teams = data.get("teams")
        # PostgREST may return the embedded team as a one-element list
        if isinstance(teams, list):
            data["teams"] = teams[0] if teams else None
        return PostResponse(**data)
