# Supabase Auth
# This module uses Supabase's built-in authentication system
# No custom tables are required - Supabase Auth handles:
# - Account creation (auth.users table)
# - Password sign-in and session issuance
# - JWT token generation and validation
# - Password hashing and security

"""
Supabase Auth calls used by Squadz:
- auth.sign_up() - Create the invited account during invite acceptance
- auth.sign_in_with_password() - Login, and the fallback when sign-up reports an existing account
- auth.get_user() - Resolve the caller from a JWT token
- auth.sign_out() - Logout

Team membership and role live in the profiles table (see profiles/models.py).
"""
