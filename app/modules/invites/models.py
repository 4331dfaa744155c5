# Supabase table: invites
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

invites:
- id: uuid (primary key)
- email: text (not null)
- invited_by: uuid (foreign key to profiles.id, not null)
- team_id: uuid (foreign key to teams.id, nullable) - null when a superuser invites a team founder
- status: text (not null, default: 'pending') - values: pending, accepted, expired
- created_at: timestamp (default: now())

At most one pending invite per email: issuing a new invite first expires the
pending ones for that email. There is no database constraint behind this.
Status only moves pending -> accepted or pending -> expired.
"""
