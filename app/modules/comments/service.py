from supabase import Client
from app.core.access import get_owned_comment, get_readable_repo
from app.core.errors import StoreFailure, translate_store_error
from app.modules.comments.schemas import CommentCreate, CommentResponse
from app.modules.profiles.service import ProfileService
from typing import Dict, List
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class CommentService:
    def __init__(self, supabase: Client, profile_service: ProfileService):
        self.supabase = supabase
        self.profile_service = profile_service

    def list_comments(self, repo_id: str, user_data: Dict) -> List[CommentResponse]:
        """Comments of a readable repository, oldest first, with author labels"""
        get_readable_repo(repo_id, user_data, self.supabase)
        try:
            result = self.supabase.table("comments")\
                .select("*")\
                .eq("repo_id", repo_id)\
                .order("created_at")\
                .execute()
        except Exception as e:
            raise translate_store_error(e)
        rows = self.profile_service.enrich(result.data or [])
        return [CommentResponse(**row) for row in rows]

    def add_comment(self, repo_id: str, comment_data: CommentCreate, user_data: Dict) -> CommentResponse:
        get_readable_repo(repo_id, user_data, self.supabase)
        try:
            result = self.supabase.table("comments").insert({
                "repo_id": repo_id,
                "user_id": user_data["id"],
                "content": comment_data.content,
            }).execute()
            if not result.data:
                raise StoreFailure("Failed to add comment")
        except HTTPException:
            raise
        except Exception as e:
            raise translate_store_error(e)
        return CommentResponse(**self.profile_service.enrich(result.data)[0])

    def delete_comment(self, repo_id: str, comment_id: str, user_data: Dict) -> None:
        """Only the author may delete a comment; repository ownership grants nothing here."""
        get_owned_comment(repo_id, comment_id, user_data, self.supabase)
        try:
            self.supabase.table("comments")\
                .delete()\
                .eq("id", comment_id)\
                .eq("user_id", user_data["id"])\
                .execute()
        except Exception as e:
            raise translate_store_error(e)
        logger.info(f"User {user_data['id']} deleted comment {comment_id}")
