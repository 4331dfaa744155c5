# Supabase table: teams
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

teams:
- id: uuid (primary key)
- name: text (not null) - unique by application check only
- avatar_url: text (nullable)
- created_at: timestamp (default: now())
"""
