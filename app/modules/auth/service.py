import logging
from supabase import Client
from app.modules.auth.schemas import LoginRequest, TokenResponse, SignUpResult
from app.database.supabase_client import SupabaseClient
from fastapi import HTTPException
from typing import Callable, Dict, Any

logger = logging.getLogger(__name__)

SESSION_MISSING_MARKER = "auth session missing"


class AuthService:
    def __init__(
        self,
        supabase: Client,
        auth_client_factory: Callable[[], Client] = SupabaseClient.create_auth_client,
    ):
        self.supabase = supabase
        self.auth_client_factory = auth_client_factory

    def sign_in(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user using Supabase Auth"""
        try:
            auth_response = self.auth_client_factory().auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })

            if not auth_response.user or not auth_response.session:
                raise HTTPException(status_code=401, detail="Invalid credentials")

            return TokenResponse(
                access_token=auth_response.session.access_token,
                token_type="bearer",
                user_id=auth_response.user.id,
                email=auth_response.user.email or login_data.email
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise HTTPException(status_code=401, detail="Invalid email or password")
            raise HTTPException(status_code=500, detail=f"Login failed: {error_message}")

    def sign_up(self, email: str, password: str) -> SignUpResult:
        """Create an account. Provider errors are raised unchanged so callers can inspect the message."""
        auth_response = self.auth_client_factory().auth.sign_up({
            "email": email,
            "password": password,
        })
        user = auth_response.user
        session = auth_response.session
        return SignUpResult(
            user_id=user.id if user else None,
            email=(user.email if user and user.email else email),
            access_token=session.access_token if session else None,
        )

    def get_account(self, token: str) -> Dict[str, Any]:
        """Get the Supabase account behind an access token"""
        try:
            user_response = self.supabase.auth.get_user(jwt=token)
            if not user_response or not user_response.user:
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            user = user_response.user
            return {
                "id": user.id,
                "email": user.email,
                "user_metadata": user.user_metadata or {},
                "app_metadata": user.app_metadata or {},
            }
        except HTTPException:
            raise
        except Exception as e:
            error_msg = str(e)
            if SESSION_MISSING_MARKER in error_msg.lower():
                logger.info("No active session")
                raise HTTPException(status_code=401, detail="Not authenticated")
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            logger.error(f"Auth error: {error_msg}")
            raise HTTPException(status_code=401, detail="Authentication failed")

    def sign_out(self, token: str) -> bool:
        """Logout user using Supabase Auth"""
        try:
            # Tokens are stateless JWTs; revoking the refresh chain is the admin API's job
            self.supabase.auth.admin.sign_out(token)
            return True
        except Exception as e:
            logger.error(f"Logout error: {e}")
            return False
