# Supabase table: comments
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- repo_id: uuid (foreign key to repos.id ON DELETE CASCADE, not null)
- user_id: uuid (foreign key to auth.users.id ON DELETE CASCADE, not null) - author
- content: text (not null)
- created_at: timestamp (default: now())
"""
