# Supabase table: posts
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

posts:
- id: uuid (primary key)
- content: text (not null) - at most 500 characters, enforced before insert only
- team_id: uuid (foreign key to teams.id, not null) - the authoring team
- created_at: timestamp (default: now())

Posts are authored by a team, not an individual, and cannot be edited or deleted.
"""
