# Supabase Auth
# This module uses Supabase's built-in authentication system
# No custom tables are required - Supabase Auth handles:
# - User registration (auth.users table)
# - E-mail/password login and OAuth sign-in (GitHub)
# - JWT token generation and validation

"""
Supabase Auth provides:
- auth.sign_up() - Register new users
- auth.sign_in_with_password() - Authenticate users
- auth.get_user() - Resolve the identity behind a bearer token
- auth.admin.delete_user() - Remove an identity (service role key)
- auth.admin.list_users() - Enumerate identities (service role key)

The identity is the only thing Repofy reads from auth.users: id, email and
the OAuth provider username found in user_metadata (user_name or
preferred_username). Everything displayable lives in user_profiles.
"""
