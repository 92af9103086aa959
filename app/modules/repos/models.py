# Supabase tables: repos, files, stars
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

repos:
- id: uuid (primary key)
- user_id: uuid (foreign key to auth.users.id ON DELETE CASCADE, not null) - owner, never reassigned
- name: text (not null)
- description: text (nullable)
- tags: text[] (default: '{}')
- is_public: boolean (default: false)
- star_count: integer (default: 0) - refreshed from stars on every star
- created_at: timestamp (default: now())

files:
- id: uuid (primary key)
- repo_id: uuid (foreign key to repos.id ON DELETE CASCADE, not null)
- name: text (not null)
- content: text (not null, default '')
- created_at: timestamp (default: now())

stars:
- id: uuid (primary key)
- user_id: uuid (foreign key to auth.users.id ON DELETE CASCADE, not null)
- repo_id: uuid (foreign key to repos.id ON DELETE CASCADE, not null)
- created_at: timestamp (default: now())
- unique constraint on (user_id, repo_id)

Deleting a repos row removes its files, comments and stars in the same
statement, so a repository delete is all-or-nothing.
"""
