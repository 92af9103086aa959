from fastapi import APIRouter, Depends
from app.core.errors import UsernameTaken
from app.modules.auth.schemas import (
    LoginRequest, SignupRequest, TokenResponse, SignupResponse, CurrentUserResponse,
)
from app.modules.auth.service import AuthService
from app.modules.profiles.schemas import ProfileUpdate, UsernameAvailability
from app.modules.profiles.service import ProfileService
from app.core.dependencies import (
    get_auth_service, get_current_user, get_profile_service, get_optional_admin_supabase,
)
from supabase import Client
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


@router.post("/signup", response_model=SignupResponse, status_code=201)
def signup(
    signup_data: SignupRequest,
    service: AuthService = Depends(get_auth_service),
    profile_service: ProfileService = Depends(get_profile_service),
    admin: Optional[Client] = Depends(get_optional_admin_supabase),
):
    """Register a new user, optionally seeding the profile with a username"""
    if signup_data.username is not None:
        if not profile_service.check_availability(signup_data.username).available:
            raise UsernameTaken()

    user_data, access_token = service.signup(signup_data)
    message = "User registered successfully"

    if signup_data.username is not None or signup_data.display_name:
        try:
            # The unique index decides if the name was claimed since the check above
            profile_service.upsert_profile(user_data, ProfileUpdate(
                username=signup_data.username,
                display_name=signup_data.display_name,
            ))
        except UsernameTaken:
            if admin is not None:
                service.discard_identity(user_data["id"], admin)
                raise
            # Without the admin key the identity cannot be removed; keep it usable instead
            logger.warning(f"Username for user {user_data['id']} was claimed during signup; assigned a default")
            profile_service.ensure_profile(user_data)
            message = "User registered; the requested username was taken, a default was assigned"
    else:
        profile_service.ensure_profile(user_data)

    return SignupResponse(
        user_id=user_data["id"],
        email=user_data.get("email") or signup_data.email,
        access_token=access_token,
        message=message,
    )


@router.post("/login", response_model=TokenResponse)
def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.get("/check-username/{username}", response_model=UsernameAvailability)
def check_username(
    username: str,
    profile_service: ProfileService = Depends(get_profile_service),
):
    """Advisory availability check; does not reserve the name"""
    return profile_service.check_availability(username)


@router.get("/me", response_model=CurrentUserResponse)
def get_me(current_user: Dict = Depends(get_current_user)):
    """Get the identity behind the bearer token"""
    return current_user
