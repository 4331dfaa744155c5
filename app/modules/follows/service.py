import logging
import threading
from supabase import Client
from app.core.errors import ValidationFailed, UpstreamError, error_message
from app.modules.follows.schemas import FollowToggleResponse
from typing import Callable, Dict, Iterable, Set

logger = logging.getLogger(__name__)


class FollowSet:
    """
    Local set of followed team ids for one follower team.

    toggle() mutates the set before the remote call and re-applies the
    inverse mutation if the call fails. A toggle requested while another is
    in flight is ignored, not queued.
    """

    def __init__(self, team_ids: Iterable[str] = ()):
        self._lock = threading.Lock()
        self.following: Set[str] = set(team_ids)
        self.busy = False

    def is_following(self, team_id: str) -> bool:
        with self._lock:
            return team_id in self.following

    def sync(self, team_ids: Iterable[str]) -> bool:
        """Replace the local set with the stored edges unless a toggle is in flight"""
        with self._lock:
            if self.busy:
                return False
            self.following = set(team_ids)
            return True

    def toggle(
        self,
        team_id: str,
        follow: Callable[[str], None],
        unfollow: Callable[[str], None],
    ) -> bool:
        """Returns False when ignored because another toggle is in flight"""
        with self._lock:
            if self.busy:
                return False
            self.busy = True
            was_following = team_id in self.following
            self._set(team_id, not was_following)

        try:
            if was_following:
                unfollow(team_id)
            else:
                follow(team_id)
        except Exception:
            with self._lock:
                self._set(team_id, was_following)
            raise
        finally:
            with self._lock:
                self.busy = False
        return True

    def _set(self, team_id: str, following: bool) -> None:
        if following:
            self.following.add(team_id)
        else:
            self.following.discard(team_id)


_registry_lock = threading.Lock()
_follow_sets: Dict[str, FollowSet] = {}


def get_follow_set(follower_team_id: str) -> FollowSet:
    with _registry_lock:
        if follower_team_id not in _follow_sets:
            _follow_sets[follower_team_id] = FollowSet()
        return _follow_sets[follower_team_id]


def reset_follow_sets() -> None:
    with _registry_lock:
        _follow_sets.clear()


class FollowService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_following(self, follower_team_id: str) -> Set[str]:
        """Team ids the given team follows"""
        try:
            result = self.supabase.table("follows")\
                .select("following_team_id")\
                .eq("follower_team_id", follower_team_id)\
                .execute()
        except Exception as e:
            raise UpstreamError(error_message(e))
        return {row["following_team_id"] for row in result.data or []}

    def follow(self, follower_team_id: str, following_team_id: str) -> None:
        try:
            self.supabase.table("follows").insert({
                "follower_team_id": follower_team_id,
                "following_team_id": following_team_id
            }).execute()
        except Exception as e:
            logger.error(f"Follow error: {e}")
            raise UpstreamError(error_message(e))

    def unfollow(self, follower_team_id: str, following_team_id: str) -> None:
        try:
            self.supabase.table("follows")\
                .delete()\
                .eq("follower_team_id", follower_team_id)\
                .eq("following_team_id", following_team_id)\
                .execute()
        except Exception as e:
            logger.error(f"Unfollow error: {e}")
            raise UpstreamError(error_message(e))

    def toggle(self, follower_team_id: str, team_id: str) -> FollowToggleResponse:
        """Delete the edge if it exists, else insert it"""
        if not follower_team_id:
            raise ValidationFailed("You must be part of a team to follow other teams")

        follow_set = get_follow_set(follower_team_id)
        if not follow_set.busy:
            follow_set.sync(self.list_following(follower_team_id))

        applied = follow_set.toggle(
            team_id,
            follow=lambda target: self.follow(follower_team_id, target),
            unfollow=lambda target: self.unfollow(follower_team_id, target),
        )
        if not applied:
            logger.info(f"Ignoring follow toggle for {team_id}: another toggle for team {follower_team_id} is in flight")

        return FollowToggleResponse(
            team_id=team_id,
            following=follow_set.is_following(team_id),
            applied=applied
        )
