import logging
from typing import Any, Dict, Optional, Tuple

import httpx
from supabase import Client

from app.core.errors import (
    Conflict, InvalidInput, ServiceUnavailable, StoreFailure, Unauthorized,
    translate_store_error,
)
from app.modules.auth.schemas import LoginRequest, SignupRequest, TokenResponse

logger = logging.getLogger(__name__)


def identity_from_user(user: Any) -> Dict[str, Any]:
    """Flatten a Supabase auth user into the identity dict used by every route."""
    user_metadata = user.user_metadata or {}
    return {
        "id": user.id,
        "email": user.email,
        "oauth_username": user_metadata.get("user_name") or user_metadata.get("preferred_username"),
        "user_metadata": user_metadata,
        "app_metadata": user.app_metadata or {},
    }


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def signup(self, signup_data: SignupRequest) -> Tuple[Dict[str, Any], Optional[str]]:
        """Create the identity. Returns the identity dict and the access token, if a session was issued."""
        user_metadata = {}
        if signup_data.username:
            user_metadata["user_name"] = signup_data.username
        if signup_data.display_name:
            user_metadata["full_name"] = signup_data.display_name
        try:
            auth_response = self.supabase.auth.sign_up({
                "email": signup_data.email,
                "password": signup_data.password,
                "options": {
                    "data": user_metadata
                }
            })
        except httpx.TimeoutException:
            raise ServiceUnavailable()
        except Exception as e:
            error_message = str(e)
            if "already registered" in error_message.lower() or "already exists" in error_message.lower():
                raise Conflict("User already exists")
            raise InvalidInput(error_message or "Signup failed")

        if not auth_response.user:
            raise StoreFailure("Failed to register user")
        access_token = auth_response.session.access_token if auth_response.session else None
        logger.info(f"Registered user {auth_response.user.id}")
        return identity_from_user(auth_response.user), access_token

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user using Supabase Auth"""
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })
        except httpx.TimeoutException:
            raise ServiceUnavailable()
        except Exception as e:
            logger.info(f"Login failed for {login_data.email}: {e}")
            raise InvalidInput("Invalid email or password")

        if not auth_response.user or not auth_response.session:
            raise InvalidInput("Invalid email or password")

        return TokenResponse(
            access_token=auth_response.session.access_token,
            refresh_token=auth_response.session.refresh_token,
            token_type="bearer",
            user_id=auth_response.user.id,
            email=auth_response.user.email or login_data.email
        )

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Resolve the identity behind a bearer token; the provider is asked on every call."""
        try:
            user_response = self.supabase.auth.get_user(jwt=token)
        except httpx.TimeoutException:
            raise ServiceUnavailable()
        except Exception as e:
            logger.debug(f"Token rejected by identity provider: {e}")
            raise Unauthorized()
        if not user_response or not user_response.user:
            raise Unauthorized()
        return identity_from_user(user_response.user)

    def discard_identity(self, user_id: str, admin: Client) -> None:
        """Delete an identity created by a signup that could not be completed."""
        try:
            admin.auth.admin.delete_user(user_id)
        except Exception as e:
            logger.error(f"Could not roll back signup of user {user_id}: {e}")
            raise translate_store_error(e)
        logger.info(f"Rolled back signup of user {user_id}")
