"""
Repository visibility and ownership rules.

A repository is readable by its owner and, when public, by any authenticated
user. Only the owner may mutate it (upload files, delete), public or not.
A comment may only be deleted by its author, whoever owns the repository.
"""

from supabase import Client
from typing import Dict, Mapping
import logging

from app.core.errors import Forbidden, NotFound, is_malformed_key, translate_store_error

logger = logging.getLogger(__name__)


def can_read(repo: Mapping, user_data: Mapping) -> bool:
    return repo.get("is_public") is True or repo.get("user_id") == user_data["id"]


def can_mutate(repo: Mapping, user_data: Mapping) -> bool:
    return repo.get("user_id") == user_data["id"]


def can_delete_comment(comment: Mapping, user_data: Mapping) -> bool:
    return comment.get("user_id") == user_data["id"]


def fetch_repo(repo_id: str, supabase: Client) -> Dict:
    try:
        result = supabase.table("repos")\
            .select("*")\
            .eq("id", repo_id)\
            .limit(1)\
            .execute()
    except Exception as e:
        if is_malformed_key(e):
            raise NotFound("Repository not found")
        raise translate_store_error(e)
    if not result.data:
        raise NotFound("Repository not found")
    return result.data[0]


def get_readable_repo(repo_id: str, user_data: Dict, supabase: Client) -> Dict:
    """Return the repository or raise NotFound / Forbidden"""
    repo = fetch_repo(repo_id, supabase)
    if not can_read(repo, user_data):
        raise Forbidden("You do not have access to this repository")
    return repo


def get_owned_repo(repo_id: str, user_data: Dict, supabase: Client) -> Dict:
    """Return the repository if the requester owns it, else raise NotFound / Forbidden"""
    repo = fetch_repo(repo_id, supabase)
    if not can_mutate(repo, user_data):
        logger.info(f"User {user_data['id']} denied mutation of repository {repo_id}")
        raise Forbidden("Only the repository owner can modify it")
    return repo


def get_owned_comment(repo_id: str, comment_id: str, user_data: Dict, supabase: Client) -> Dict:
    """Return the comment if the requester wrote it, else raise NotFound / Forbidden"""
    try:
        result = supabase.table("comments")\
            .select("*")\
            .eq("id", comment_id)\
            .eq("repo_id", repo_id)\
            .limit(1)\
            .execute()
    except Exception as e:
        if is_malformed_key(e):
            raise NotFound("Comment not found")
        raise translate_store_error(e)
    if not result.data:
        raise NotFound("Comment not found")
    comment = result.data[0]
    if not can_delete_comment(comment, user_data):
        raise Forbidden("You can only delete your own comments")
    return comment
