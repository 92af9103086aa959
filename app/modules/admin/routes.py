from fastapi import APIRouter, Depends
from app.modules.profiles.schemas import BackfillReport
from app.modules.profiles.service import ProfileService
from app.core.dependencies import require_super_user, get_profile_service, get_admin_supabase
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/create-missing-profiles", response_model=BackfillReport)
def create_missing_profiles(
    user_data: Dict = Depends(require_super_user),
    service: ProfileService = Depends(get_profile_service),
    admin: Client = Depends(get_admin_supabase),
):
    """Create a default profile for every identity that has none (super users only)"""
    return service.backfill_missing_profiles(admin)
