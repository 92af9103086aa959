# Supabase table: user_profiles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure:

user_profiles:
- user_id: uuid (primary key, references auth.users.id ON DELETE CASCADE)
- username: text (not null) - unique index on lower(username)
- display_name: text (nullable)
- bio: text (nullable)
- website: text (nullable)
- location: text (nullable)
- avatar_url: text (nullable) - http(s) URL or data:image/...;base64 URI
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Rows are created lazily on the first authenticated request (ensure_profile)
and explicitly through POST /profile. The unique index on lower(username) is
the final authority on username uniqueness; the service-level check only
fails fast. See app/database/schema.sql for the DDL.
"""
