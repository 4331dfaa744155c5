import logging
from supabase import Client
from fastapi import HTTPException
from app.config.settings import settings
from app.core.errors import NotFoundError, ValidationFailed, UpstreamError, error_message
from app.modules.auth.schemas import LoginRequest
from app.modules.auth.service import AuthService
from app.modules.invites.schemas import (
    InviteResponse, InviteCreateResponse, InviteDetails, InviteAcceptResponse
)
from app.modules.profiles.schemas import ProfileUpsert
from app.modules.profiles.service import ProfileService
from app.modules.teams.service import TeamService, MIN_TEAM_NAME_LENGTH
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

# Sign-up failures that mean "try signing in with the same credentials instead"
SIGN_IN_FALLBACK_MARKERS = ("already registered", "rate limit")


class InviteService:
    def __init__(
        self,
        supabase: Client,
        auth_service: Optional[AuthService] = None,
        profile_service: Optional[ProfileService] = None,
        team_service: Optional[TeamService] = None,
    ):
        self.supabase = supabase
        self.auth_service = auth_service or AuthService(supabase)
        self.profile_service = profile_service or ProfileService(supabase)
        self.team_service = team_service or TeamService(supabase)

    def create_invite(self, email: Optional[str], invited_by: Optional[str]) -> InviteCreateResponse:
        """Issue a pending invite for email, expiring any earlier pending invite for it"""
        if not email or not invited_by:
            raise ValidationFailed("Email and invited_by are required")

        try:
            inviter = self.profile_service.get_profile(invited_by)
        except UpstreamError as e:
            # A malformed inviter id fails the lookup instead of matching no row
            logger.warning(f"Inviter lookup failed for {invited_by}: {e.detail}")
            inviter = None
        if inviter is None:
            raise NotFoundError("Inviter profile not found")

        try:
            self.supabase.table("invites")\
                .update({"status": "expired"})\
                .eq("email", email)\
                .eq("status", "pending")\
                .execute()
        except Exception as e:
            raise UpstreamError(error_message(e))

        try:
            result = self.supabase.table("invites").insert({
                "email": email,
                "invited_by": invited_by,
                "team_id": inviter.team_id,  # None when a superuser invites a team founder
                "status": "pending"
            }).execute()
        except Exception as e:
            raise ValidationFailed(error_message(e))

        if not result.data:
            raise ValidationFailed("Failed to create invite")

        invite = InviteResponse(**result.data[0])
        invite_url = f"{settings.site_url}?invite_id={invite.id}"

        # Email delivery is disabled; the link is logged and returned instead
        logger.info(f"Invite created for {email}: {invite_url}")

        return InviteCreateResponse(
            success=True,
            invite=invite,
            invite_url=invite_url,
            message="Invite created (email delivery disabled, share the link instead)"
        )

    def get_pending_invite(self, invite_id: str) -> InviteResponse:
        try:
            result = self.supabase.table("invites")\
                .select("*")\
                .eq("id", invite_id)\
                .eq("status", "pending")\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.warning(f"Invite lookup failed for {invite_id}: {e}")
            raise NotFoundError("Invalid or expired invite")

        if not result.data:
            raise NotFoundError("Invalid or expired invite")
        return InviteResponse(**result.data[0])

    def describe_invite(self, invite_id: str) -> InviteDetails:
        """Pending invite plus whether the invitee must name a new team"""
        invite = self.get_pending_invite(invite_id)
        if not invite.team_id:
            return InviteDetails(invite=invite, requires_team_name=True)

        team_name = None
        try:
            team_name = self.team_service.get_team(invite.team_id).name
        except HTTPException as e:
            logger.warning(f"Team {invite.team_id} for invite {invite_id} not readable: {e.detail}")
        return InviteDetails(invite=invite, requires_team_name=False, team_name=team_name)

    def accept_invite(self, invite_id: str, password: str, team_name: Optional[str] = None) -> InviteAcceptResponse:
        """
        Turn a pending invite into an account with a profile.

        Steps run in order: fetch invite, validate input, create or sign in
        the account, create the team when the invite has none, upsert the
        profile, mark the invite accepted. Earlier steps are not rolled back
        when a later one fails.
        """
        invite = self.get_pending_invite(invite_id)
        requires_team_name = invite.team_id is None

        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationFailed("Password must be at least 6 characters")

        if requires_team_name and (not team_name or len(team_name.strip()) < MIN_TEAM_NAME_LENGTH):
            raise ValidationFailed("Team name must be at least 2 characters")

        user_id, access_token = self._create_or_sign_in(invite.email, password)

        team_id = invite.team_id
        if requires_team_name:
            try:
                team_id = self.team_service.create_team(team_name).id
            except HTTPException:
                logger.error(f"Invite {invite_id}: account {user_id} exists but team creation failed")
                raise

        try:
            self.profile_service.upsert_profile(ProfileUpsert(
                id=user_id,
                team_id=team_id,
                invited_by=invite.invited_by,
                role="member"
            ))
        except HTTPException:
            logger.error(f"Invite {invite_id}: account {user_id} exists but profile was not written")
            raise

        invite_accepted = self._close_invite(invite_id)

        logger.info(f"Invite {invite_id} accepted by {invite.email} (team={team_id})")
        return InviteAcceptResponse(
            user_id=user_id,
            email=invite.email,
            team_id=team_id,
            access_token=access_token,
            invite_accepted=invite_accepted
        )

    def _create_or_sign_in(self, email: str, password: str) -> Tuple[str, Optional[str]]:
        try:
            signed_up = self.auth_service.sign_up(email, password)
            user_id, access_token = signed_up.user_id, signed_up.access_token
        except Exception as e:
            message = error_message(e)
            if not any(marker in message.lower() for marker in SIGN_IN_FALLBACK_MARKERS):
                logger.error(f"Unexpected signup error for {email}: {message}")
                raise UpstreamError(message)

            logger.info(f"Signup for {email} refused ({message}), trying to sign in")
            try:
                token = self.auth_service.sign_in(LoginRequest(email=email, password=password))
            except HTTPException as sign_in_error:
                logger.error(f"Sign in failed for {email}: {sign_in_error.detail}")
                raise ValidationFailed("Invalid credentials or user already exists with different password")
            user_id, access_token = token.user_id, token.access_token

        if not user_id:
            logger.error(f"No user id obtained for {email}")
            raise UpstreamError("Failed to create user")
        return user_id, access_token

    def _close_invite(self, invite_id: str) -> bool:
        """Mark the invite accepted. Failure is logged only; the account and profile stay."""
        try:
            result = self.supabase.table("invites")\
                .update({"status": "accepted"})\
                .eq("id", invite_id)\
                .eq("status", "pending")\
                .execute()
        except Exception as e:
            logger.error(f"Invite update error for {invite_id}: {e}")
            return False
        if not result.data:
            logger.warning(f"Invite {invite_id} was no longer pending when closing it")
            return False
        return True
