import logging
from typing import Dict, List, Optional

from fastapi import HTTPException
from supabase import Client

from app.core.access import get_owned_repo, get_readable_repo
from app.core.errors import (
    InvalidInput, StoreFailure, is_unique_violation, translate_store_error,
)
from app.modules.profiles.service import ProfileService
from app.modules.repos.schemas import (
    RepoCreate, RepoResponse, EnrichedRepoResponse,
    FileUpload, FileResponse, UploadResponse, StarResponse,
)

logger = logging.getLogger(__name__)


def _matches_search(repo: Dict, search: str) -> bool:
    needle = search.lower()
    haystack = [repo.get("name") or "", repo.get("description") or ""]
    haystack.extend(repo.get("tags") or [])
    return any(needle in value.lower() for value in haystack)


class RepoService:
    def __init__(self, supabase: Client, profile_service: ProfileService):
        self.supabase = supabase
        self.profile_service = profile_service

    def list_visible_repos(
        self,
        user_data: Dict,
        search: Optional[str] = None,
        tag: Optional[str] = None,
        owner: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[EnrichedRepoResponse]:
        """All public repositories plus the requester's own, newest first, enriched with owner labels."""
        try:
            public_result = self.supabase.table("repos")\
                .select("*")\
                .eq("is_public", True)\
                .execute()
            own_result = self.supabase.table("repos")\
                .select("*")\
                .eq("user_id", user_data["id"])\
                .execute()
        except Exception as e:
            raise translate_store_error(e)

        # The two result sets overlap on the requester's public repositories
        repos: Dict[str, Dict] = {}
        for repo in (public_result.data or []) + (own_result.data or []):
            repos.setdefault(repo["id"], repo)
        rows = list(repos.values())

        if owner:
            rows = [r for r in rows if r.get("user_id") == owner]
        if tag:
            rows = [r for r in rows if tag in (r.get("tags") or [])]
        if search:
            rows = [r for r in rows if _matches_search(r, search)]

        rows.sort(key=lambda r: r.get("created_at") or "", reverse=True)
        rows = rows[offset:offset + limit] if limit is not None else rows[offset:]
        return [EnrichedRepoResponse(**row) for row in self.profile_service.enrich(rows)]

    def create_repo(self, repo_data: RepoCreate, user_data: Dict) -> RepoResponse:
        """Create a repository owned by the requester"""
        try:
            result = self.supabase.table("repos").insert({
                "name": repo_data.name,
                "description": repo_data.description,
                "tags": repo_data.tags or [],
                "is_public": repo_data.is_public,
                "user_id": user_data["id"],
            }).execute()
            if not result.data:
                raise StoreFailure("Failed to create repository")
            logger.info(f"User {user_data['id']} created repository {result.data[0]['id']}")
            return RepoResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise translate_store_error(e)

    def delete_repo(self, repo_id: str, user_data: Dict) -> None:
        """Delete an owned repository; files, comments and stars cascade in the store."""
        get_owned_repo(repo_id, user_data, self.supabase)
        try:
            self.supabase.table("repos")\
                .delete()\
                .eq("id", repo_id)\
                .eq("user_id", user_data["id"])\
                .execute()
        except Exception as e:
            raise translate_store_error(e)
        logger.info(f"User {user_data['id']} deleted repository {repo_id}")

    def upload_file(self, file_data: FileUpload, user_data: Dict) -> UploadResponse:
        if not file_data.repo_id:
            raise InvalidInput("Missing repo_id")
        get_owned_repo(file_data.repo_id, user_data, self.supabase)
        try:
            result = self.supabase.table("files").insert({
                "repo_id": file_data.repo_id,
                "name": file_data.name,
                "content": file_data.content,
            }).execute()
            if not result.data:
                raise StoreFailure("Failed to upload file")
            return UploadResponse(success=True, file=FileResponse(**result.data[0]))
        except HTTPException:
            raise
        except Exception as e:
            raise translate_store_error(e)

    def list_files(self, repo_id: str, user_data: Dict) -> List[FileResponse]:
        get_readable_repo(repo_id, user_data, self.supabase)
        try:
            result = self.supabase.table("files")\
                .select("*")\
                .eq("repo_id", repo_id)\
                .order("name")\
                .execute()
            return [FileResponse(**row) for row in (result.data or [])]
        except Exception as e:
            raise translate_store_error(e)

    def star_repo(self, repo_id: str, user_data: Dict) -> StarResponse:
        """Star a readable repository. Starring twice is a no-op; star_count is recounted."""
        get_readable_repo(repo_id, user_data, self.supabase)
        try:
            self.supabase.table("stars").insert({
                "user_id": user_data["id"],
                "repo_id": repo_id,
            }).execute()
        except Exception as e:
            if not is_unique_violation(e):
                raise translate_store_error(e)
            logger.info(f"User {user_data['id']} already starred repository {repo_id}")
        try:
            count_result = self.supabase.table("stars")\
                .select("id", count="exact")\
                .eq("repo_id", repo_id)\
                .execute()
            star_count = count_result.count or 0
            self.supabase.table("repos")\
                .update({"star_count": star_count})\
                .eq("id", repo_id)\
                .execute()
        except Exception as e:
            raise translate_store_error(e)
        return StarResponse(repo_id=repo_id, starred=True, star_count=star_count)
