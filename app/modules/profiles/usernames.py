import re
from typing import Optional

from app.core.errors import InvalidUsername

USERNAME_MIN_LENGTH = 3
USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
_INVALID_CHARS = re.compile(r"[^a-zA-Z0-9_-]+")


def is_valid_username(candidate: Optional[str]) -> bool:
    if not candidate or len(candidate) < USERNAME_MIN_LENGTH:
        return False
    return bool(USERNAME_PATTERN.match(candidate))


def validate_username(candidate: Optional[str]) -> str:
    """Return the candidate unchanged or raise InvalidUsername."""
    if not is_valid_username(candidate):
        raise InvalidUsername()
    return candidate


def ilike_exact(value: str) -> str:
    """Escape LIKE wildcards so ilike() behaves as a case-insensitive equality."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def fallback_username(user_id: str) -> str:
    return f"user_{user_id[:8]}"


def fallback_display_name(user_id: str) -> str:
    return f"User {user_id[:8]}"


def default_username(user_data: dict) -> str:
    """
    Pick a default username from identity hints:
    OAuth provider username, then e-mail local part, then "user".
    The result is coerced into the allowed charset and minimum length.
    """
    hint = user_data.get("oauth_username")
    if not hint and user_data.get("email"):
        hint = user_data["email"].split("@")[0]
    if not hint:
        hint = "user"
    username = _INVALID_CHARS.sub("_", hint).strip("_") or "user"
    if len(username) < USERNAME_MIN_LENGTH:
        username = f"{username}_{user_data['id'][:8]}"
    return username


def default_display_name(user_data: dict) -> str:
    metadata = user_data.get("user_metadata") or {}
    return (
        metadata.get("full_name")
        or metadata.get("name")
        or user_data.get("oauth_username")
        or (user_data.get("email") or "").split("@")[0]
        or "user"
    )
