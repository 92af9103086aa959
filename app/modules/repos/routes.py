from fastapi import APIRouter, Depends, Query
from app.database.supabase_client import get_supabase
from app.modules.repos.schemas import (
    RepoCreate, RepoResponse, EnrichedRepoResponse,
    FileUpload, FileResponse, UploadResponse, StarResponse,
)
from app.modules.repos.service import RepoService
from app.modules.profiles.service import ProfileService
from app.core.dependencies import get_current_user, get_profile_service
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(tags=["repos"])


def get_repo_service(
    supabase: Client = Depends(get_supabase),
    profile_service: ProfileService = Depends(get_profile_service),
) -> RepoService:
    return RepoService(supabase, profile_service)


@router.get("/repos", response_model=List[EnrichedRepoResponse])
def list_repos(
    search: Optional[str] = None,
    tag: Optional[str] = None,
    owner: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    user_data: Dict = Depends(get_current_user),
    service: RepoService = Depends(get_repo_service),
):
    """List public repositories and the caller's own repositories"""
    return service.list_visible_repos(
        user_data,
        search=search,
        tag=tag,
        owner=owner,
        limit=limit,
        offset=offset,
    )


@router.post("/repos", response_model=RepoResponse, status_code=201)
def create_repo(
    repo_data: RepoCreate,
    user_data: Dict = Depends(get_current_user),
    service: RepoService = Depends(get_repo_service),
):
    """Create a repository owned by the caller"""
    return service.create_repo(repo_data, user_data)


@router.delete("/repos/{repo_id}", status_code=204)
def delete_repo(
    repo_id: str,
    user_data: Dict = Depends(get_current_user),
    service: RepoService = Depends(get_repo_service),
):
    """Delete a repository and its files (owner only)"""
    service.delete_repo(repo_id, user_data)
    return None


@router.post("/repos/{repo_id}/star", response_model=StarResponse)
def star_repo(
    repo_id: str,
    user_data: Dict = Depends(get_current_user),
    service: RepoService = Depends(get_repo_service),
):
    """Star a repository the caller can read (idempotent per user)"""
    return service.star_repo(repo_id, user_data)


@router.get("/repos/{repo_id}/files", response_model=List[FileResponse])
def list_files(
    repo_id: str,
    user_data: Dict = Depends(get_current_user),
    service: RepoService = Depends(get_repo_service),
):
    """List files of a repository the caller can read"""
    return service.list_files(repo_id, user_data)


@router.post("/upload", response_model=UploadResponse, status_code=201)
def upload_file(
    file_data: FileUpload,
    user_data: Dict = Depends(get_current_user),
    service: RepoService = Depends(get_repo_service),
):
    """Add a file to a repository owned by the caller"""
    return service.upload_file(file_data, user_data)
