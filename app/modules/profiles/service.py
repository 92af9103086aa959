import base64
import binascii
import logging
import re
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import HTTPException
from supabase import Client

from app.config.settings import settings
from app.core.errors import (
    InvalidInput, NotFound, StoreFailure, UsernameTaken,
    is_malformed_key, is_missing_table, is_unique_violation, translate_store_error,
)
from app.modules.auth.service import identity_from_user
from app.modules.profiles.schemas import (
    ProfileUpdate, ProfileResponse, PublicProfileResponse,
    UsernameAvailability, BackfillReport,
)
from app.modules.profiles.usernames import (
    validate_username, ilike_exact,
    default_username, default_display_name,
    fallback_username, fallback_display_name,
)

logger = logging.getLogger(__name__)

PROFILE_TABLE = "user_profiles"
LABEL_COLUMNS = "user_id, username, display_name, avatar_url"
DATA_URI_PATTERN = re.compile(r"^data:image/[a-zA-Z0-9.+-]+;base64,(?P<payload>.+)$", re.DOTALL)
BACKFILL_PAGE_SIZE = 100


def owner_labels(user_id: str, profile: Optional[Dict]) -> Dict:
    """Display identity for a row owner; synthesized when the profile is missing."""
    if not profile:
        return {
            "username": fallback_username(user_id),
            "display_name": fallback_display_name(user_id),
            "avatar_url": None,
        }
    username = profile.get("username") or fallback_username(user_id)
    return {
        "username": username,
        "display_name": profile.get("display_name") or username,
        "avatar_url": profile.get("avatar_url"),
    }


def validate_avatar(avatar_url: str, max_bytes: int) -> str:
    if avatar_url.startswith(("http://", "https://")):
        return avatar_url
    match = DATA_URI_PATTERN.match(avatar_url)
    if not match:
        raise InvalidInput("Avatar must be an image URL or a base64 image data URI")
    try:
        decoded = base64.b64decode(match.group("payload"), validate=True)
    except (binascii.Error, ValueError):
        raise InvalidInput("Avatar image is not valid base64")
    if len(decoded) > max_bytes:
        raise InvalidInput(f"Avatar image must be at most {max_bytes // 1024} KB")
    return avatar_url


class ProfileService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_profile_row(self, user_id: str) -> Optional[Dict]:
        result = self.supabase.table(PROFILE_TABLE)\
            .select("*")\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def username_taken(self, username: str, exclude_user_id: Optional[str] = None) -> bool:
        """Case-insensitive existence check, optionally ignoring one user's own row."""
        query = self.supabase.table(PROFILE_TABLE)\
            .select("user_id")\
            .ilike("username", ilike_exact(username))
        if exclude_user_id:
            query = query.neq("user_id", exclude_user_id)
        result = query.limit(1).execute()
        return bool(result.data)

    def _default_profile_row(self, user_data: Dict) -> Dict:
        username = default_username(user_data)
        if self.username_taken(username, exclude_user_id=user_data["id"]):
            username = f"{username}_{user_data['id'][:8]}"
        return {
            "user_id": user_data["id"],
            "username": username,
            "display_name": default_display_name(user_data),
        }

    def ensure_profile(self, user_data: Dict) -> Optional[Dict]:
        """
        Insert a default profile for the identity if none exists.

        Idempotent: an existing row is returned untouched. Never raises; a
        failure is logged and None is returned so the caller can carry on.
        """
        user_id = user_data["id"]
        try:
            existing = self.get_profile_row(user_id)
            if existing:
                return existing
            result = self.supabase.table(PROFILE_TABLE)\
                .insert(self._default_profile_row(user_data))\
                .execute()
            logger.info(f"Created profile for user {user_id}")
            return result.data[0] if result.data else None
        except Exception as e:
            if is_unique_violation(e):
                return self._recover_from_insert_conflict(user_id)
            if is_missing_table(e):
                logger.warning("user_profiles table is missing; skipping profile creation")
            else:
                logger.warning(f"Could not ensure profile for user {user_id}: {e}")
            return None

    def _recover_from_insert_conflict(self, user_id: str) -> Optional[Dict]:
        # 23505 is either this user's row (primary key) or the default username
        try:
            existing = self.get_profile_row(user_id)
        except Exception as e:
            logger.warning(f"Could not re-read profile for user {user_id}: {e}")
            return None
        if existing:
            logger.info(f"Profile for user {user_id} was created concurrently")
            return existing
        logger.warning(f"Default username for user {user_id} collided with another profile; profile not created")
        return None

    def _update_row(self, user_id: str, update_data: Dict) -> Optional[Dict]:
        result = self.supabase.table(PROFILE_TABLE)\
            .update({**update_data, "updated_at": datetime.utcnow().isoformat()})\
            .eq("user_id", user_id)\
            .execute()
        return result.data[0] if result.data else None

    def check_availability(self, candidate: str) -> UsernameAvailability:
        validate_username(candidate)
        try:
            taken = self.username_taken(candidate)
        except Exception as e:
            raise translate_store_error(e)
        return UsernameAvailability(username=candidate, available=not taken)

    def _update_or_insert(self, user_data: Dict, update_data: Dict) -> Dict:
        """Update the requester's row; insert a default row only when none was updated."""
        user_id = user_data["id"]
        try:
            updated = self._update_row(user_id, update_data)
            if updated:
                return updated

            row = self._default_profile_row(user_data)
            row.update(update_data)
            try:
                result = self.supabase.table(PROFILE_TABLE).insert(row).execute()
            except Exception as e:
                if not is_unique_violation(e):
                    raise
                # Another request may have inserted this user's row first
                updated = self._update_row(user_id, update_data)
                if not updated:
                    raise
                logger.info(f"Profile for user {user_id} was created concurrently; applied update")
                return updated
            if not result.data:
                raise StoreFailure("Failed to save profile")
            logger.info(f"Created profile for user {user_id} on first save")
            return result.data[0]
        except HTTPException:
            raise
        except Exception as e:
            if is_unique_violation(e):
                raise UsernameTaken()
            raise translate_store_error(e)

    def upsert_profile(self, user_data: Dict, fields: ProfileUpdate) -> ProfileResponse:
        update_data = fields.model_dump(exclude_none=True)
        if "username" in update_data:
            validate_username(update_data["username"])
            try:
                taken = self.username_taken(update_data["username"], exclude_user_id=user_data["id"])
            except Exception as e:
                raise translate_store_error(e)
            if taken:
                raise UsernameTaken()
        row = self._update_or_insert(user_data, update_data)
        return ProfileResponse(**row, email=user_data.get("email"))

    def set_avatar(self, user_data: Dict, avatar_url: str) -> ProfileResponse:
        validate_avatar(avatar_url, settings.max_avatar_bytes)
        row = self._update_or_insert(user_data, {"avatar_url": avatar_url})
        return ProfileResponse(**row, email=user_data.get("email"))

    def get_own_profile(self, user_data: Dict) -> ProfileResponse:
        user_id = user_data["id"]
        try:
            row = self.get_profile_row(user_id)
        except Exception as e:
            if not is_missing_table(e):
                raise translate_store_error(e)
            logger.warning("user_profiles table is missing; returning synthesized profile")
            row = None
        if not row:
            row = {"user_id": user_id, **owner_labels(user_id, None)}
        return ProfileResponse(**row, email=user_data.get("email"))

    def get_public_profile(self, user_id: str) -> PublicProfileResponse:
        try:
            row = self.get_profile_row(user_id)
        except Exception as e:
            if is_malformed_key(e):
                raise NotFound("Profile not found")
            if not is_missing_table(e):
                raise translate_store_error(e)
            logger.warning("user_profiles table is missing; returning synthesized profile")
            return PublicProfileResponse(user_id=user_id, **owner_labels(user_id, None))
        if not row:
            raise NotFound("Profile not found")
        return PublicProfileResponse(**row)

    def enrich(self, rows: List[Dict]) -> List[Dict]:
        """
        Attach the owner's username, display_name and avatar_url to each row.

        A failed lookup or a missing profile never fails the listing; the
        affected rows get synthesized labels instead.
        """
        owner_ids = list({row["user_id"] for row in rows if row.get("user_id")})
        profiles: Dict[str, Dict] = {}
        if owner_ids:
            try:
                result = self.supabase.table(PROFILE_TABLE)\
                    .select(LABEL_COLUMNS)\
                    .in_("user_id", owner_ids)\
                    .execute()
                profiles = {p["user_id"]: p for p in (result.data or [])}
            except Exception as e:
                logger.warning(f"Profile lookup failed, using fallback labels: {e}")
        return [
            {**row, **owner_labels(row["user_id"], profiles.get(row["user_id"]))}
            for row in rows
        ]

    def delete_account(self, user_data: Dict, admin: Client) -> None:
        """Remove the user's repositories (files cascade), profile and identity."""
        user_id = user_data["id"]
        try:
            self.supabase.table("repos").delete().eq("user_id", user_id).execute()
        except Exception as e:
            raise translate_store_error(e)
        try:
            self.supabase.table(PROFILE_TABLE).delete().eq("user_id", user_id).execute()
        except Exception as e:
            if not is_missing_table(e):
                raise translate_store_error(e)
        try:
            admin.auth.admin.delete_user(user_id)
        except Exception as e:
            raise translate_store_error(e)
        logger.info(f"Deleted account {user_id}")

    def backfill_missing_profiles(self, admin: Client) -> BackfillReport:
        """Run ensure_profile for every identity known to the provider."""
        created = skipped = failed = 0
        page = 1
        while True:
            try:
                users = admin.auth.admin.list_users(page=page, per_page=BACKFILL_PAGE_SIZE)
            except Exception as e:
                raise translate_store_error(e)
            for user in users:
                user_data = identity_from_user(user)
                try:
                    existing = self.get_profile_row(user_data["id"])
                except Exception as e:
                    raise translate_store_error(e)
                if existing:
                    skipped += 1
                elif self.ensure_profile(user_data):
                    created += 1
                else:
                    failed += 1
            if len(users) < BACKFILL_PAGE_SIZE:
                break
            page += 1
        logger.info(f"Profile backfill: {created} created, {skipped} skipped, {failed} failed")
        return BackfillReport(created=created, skipped=skipped, failed=failed)
