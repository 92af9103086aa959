from fastapi import APIRouter, Depends
from app.modules.profiles.schemas import (
    ProfileUpdate, AvatarUpdate, ProfileResponse, PublicProfileResponse,
)
from app.modules.profiles.service import ProfileService
from app.core.dependencies import (
    get_current_user, get_profile_service, get_admin_supabase,
)
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/profile", tags=["profiles"])


@router.get("", response_model=ProfileResponse)
def get_own_profile(
    user_data: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
):
    """Get the caller's profile (created on first access)"""
    return service.get_own_profile(user_data)


@router.post("", response_model=ProfileResponse)
def upsert_profile(
    profile_data: ProfileUpdate,
    user_data: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
):
    """Create or update the caller's profile"""
    return service.upsert_profile(user_data, profile_data)


@router.post("/avatar", response_model=ProfileResponse)
def set_avatar(
    avatar_data: AvatarUpdate,
    user_data: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
):
    """Set the caller's avatar (image URL or size-limited base64 data URI)"""
    return service.set_avatar(user_data, avatar_data.avatar_url)


@router.delete("", status_code=204)
def delete_account(
    user_data: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
    admin: Client = Depends(get_admin_supabase),
):
    """Delete the caller's account: repositories, files, profile and identity"""
    service.delete_account(user_data, admin)
    return None


@router.get("/{user_id}", response_model=PublicProfileResponse)
def get_public_profile(
    user_id: str,
    user_data: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
):
    """Get another user's public profile (no e-mail)"""
    return service.get_public_profile(user_id)
