# Supabase table: follows
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

follows:
- follower_team_id: uuid (foreign key to teams.id, not null)
- following_team_id: uuid (foreign key to teams.id, not null)
- created_at: timestamp (default: now())
- primary key (follower_team_id, following_team_id)

A row means the follower team's "following" feed includes the other team's posts.
Self-follows are not rejected.
"""
