"""Tests for username rules and default profile labels."""

import pytest

from app.core.errors import InvalidUsername
from app.modules.profiles.usernames import (
    is_valid_username, validate_username, ilike_exact,
    default_username, default_display_name,
    fallback_username, fallback_display_name,
)

USER_ID = "1234567890abcdef"


class TestValidation:
    @pytest.mark.parametrize("candidate", ["abc", "Alice", "a-b_c9", "___", "user-2024"])
    def test_accepts_allowed_charset(self, candidate):
        assert is_valid_username(candidate)
        assert validate_username(candidate) == candidate

    @pytest.mark.parametrize("candidate", ["", None, "ab", "bad name", "dot.ted", "émile", "semi;colon"])
    def test_rejects_short_or_bad_chars(self, candidate):
        assert not is_valid_username(candidate)
        with pytest.raises(InvalidUsername) as exc_info:
            validate_username(candidate)
        assert exc_info.value.status_code == 400

    def test_ilike_pattern_escapes_wildcards(self):
        assert ilike_exact("a_b") == "a\\_b"
        assert ilike_exact("100%") == "100\\%"


class TestDefaults:
    def test_oauth_username_wins(self):
        user = {"id": USER_ID, "oauth_username": "octocat", "email": "someone@example.com"}
        assert default_username(user) == "octocat"

    def test_email_local_part_is_sanitized(self):
        user = {"id": USER_ID, "oauth_username": None, "email": "john.doe@example.com"}
        assert default_username(user) == "john_doe"

    def test_literal_user_without_hints(self):
        assert default_username({"id": USER_ID}) == "user"

    def test_short_hint_is_padded_with_id(self):
        user = {"id": USER_ID, "email": "ab@example.com"}
        assert default_username(user) == "ab_12345678"

    def test_display_name_prefers_full_name(self):
        user = {"id": USER_ID, "email": "jd@example.com", "user_metadata": {"full_name": "Jane Doe"}}
        assert default_display_name(user) == "Jane Doe"
        assert default_display_name({"id": USER_ID, "email": "jd@example.com"}) == "jd"

    def test_fallback_labels_use_first_eight_chars(self):
        assert fallback_username(USER_ID) == "user_12345678"
        assert fallback_display_name(USER_ID) == "User 12345678"
