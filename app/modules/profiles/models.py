# Supabase tables: profiles, auth.users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key, references auth.users.id)
- team_id: uuid (foreign key to teams.id, nullable) - null until invite acceptance
- role: text (not null, default: 'member') - values: member, superuser
- invited_by: uuid (foreign key to profiles.id, nullable)
- created_at: timestamp (default: now())

Note: the effective superuser role is derived from SUPERUSER_EMAIL at
resolution time; the stored role is written as 'member' on acceptance.
"""
