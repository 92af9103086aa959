"""
Core dependencies for route protection
"""

from fastapi import Depends, Request, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.config.settings import settings
from app.core.errors import Forbidden, ServiceUnavailable, Unauthenticated
from app.database.supabase_client import get_supabase, get_service_supabase
from app.modules.auth.service import AuthService
from app.modules.profiles.service import ProfileService
from supabase import Client
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is reported as Unauthenticated (403) by us
security = HTTPBearer(auto_error=False)


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_profile_service(supabase: Client = Depends(get_supabase)) -> ProfileService:
    return ProfileService(supabase)


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> str:
    """Extract the bearer token from the Authorization header"""
    if credentials is None or not credentials.credentials:
        raise Unauthenticated()
    return credentials.credentials


def get_current_user(
    request: Request,
    token: str = Depends(get_bearer_token),
    auth_service: AuthService = Depends(get_auth_service),
    profile_service: ProfileService = Depends(get_profile_service),
) -> Dict:
    """
    Authentication gate run before every protected route.

    Resolves the identity, backfills the user's profile if it is missing
    (failures are logged, never surfaced) and binds the identity to
    request.state.user.
    """
    user_data = auth_service.get_current_user(token)
    profile_service.ensure_profile(user_data)
    request.state.user = user_data
    return user_data


def is_super_user(user_data: Dict) -> bool:
    """Check if user is a super user from app_metadata"""
    # app_metadata is set server-side and cannot be modified by users
    app_metadata = user_data.get("app_metadata") or {}
    return app_metadata.get("type") == "super_user"


def require_super_user(user_data: Dict = Depends(get_current_user)) -> Dict:
    if not is_super_user(user_data):
        raise Forbidden("Only super users can perform this action")
    return user_data


def get_admin_supabase() -> Client:
    """Service-role client for auth admin calls; refuses to fall back to the anon key."""
    if not settings.supabase_service_role_key:
        logger.error("SUPABASE_SERVICE_ROLE_KEY is not configured")
        raise ServiceUnavailable("Account administration is not configured")
    return get_service_supabase()


def get_optional_admin_supabase() -> Optional[Client]:
    """Service-role client when configured, else None."""
    if not settings.supabase_service_role_key:
        return None
    return get_service_supabase()
