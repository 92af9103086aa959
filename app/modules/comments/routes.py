from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.comments.schemas import CommentCreate, CommentResponse
from app.modules.comments.service import CommentService
from app.modules.profiles.service import ProfileService
from app.core.dependencies import get_current_user, get_profile_service
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/repos/{repo_id}/comments", tags=["comments"])


def get_comment_service(
    supabase: Client = Depends(get_supabase),
    profile_service: ProfileService = Depends(get_profile_service),
) -> CommentService:
    return CommentService(supabase, profile_service)


@router.get("", response_model=List[CommentResponse])
def list_comments(
    repo_id: str,
    user_data: Dict = Depends(get_current_user),
    service: CommentService = Depends(get_comment_service),
):
    """List comments on a repository the caller can read"""
    return service.list_comments(repo_id, user_data)


@router.post("", response_model=CommentResponse, status_code=201)
def add_comment(
    repo_id: str,
    comment_data: CommentCreate,
    user_data: Dict = Depends(get_current_user),
    service: CommentService = Depends(get_comment_service),
):
    """Comment on a repository the caller can read"""
    return service.add_comment(repo_id, comment_data, user_data)


@router.delete("/{comment_id}", status_code=204)
def delete_comment(
    repo_id: str,
    comment_id: str,
    user_data: Dict = Depends(get_current_user),
    service: CommentService = Depends(get_comment_service),
):
    """Delete one of the caller's own comments"""
    service.delete_comment(repo_id, comment_id, user_data)
    return None
