# Supabase tables: susu_circles, susu_memberships, susu_escrow
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
susu_circles:
- id: uuid (primary key)
- name: text (not null)
- created_by: uuid (foreign key to auth.users.id) - the circle organizer
- contribution_amount: numeric (not null)
- current_round: integer (default 1)
- status: text (default 'active') - active, completed
- created_at / updated_at: timestamp

susu_memberships:
- id: uuid (primary key)
- circle_id: uuid (foreign key to susu_circles.id)
- user_id: uuid (foreign key to auth.users.id)
- payout_position: integer - the round in which this member receives the pot

susu_escrow:
- id: uuid (primary key)
- circle_id: uuid (foreign key to susu_circles.id)
- round_number: integer
- contributor_id: uuid
- recipient_id: uuid (nullable)
- amount: numeric
- platform_fee: numeric - 1.5% of amount
- status: text - held, released
- held_at / released_at: timestamp
"""
