# Supabase tables: loyalty_points, loyalty_streaks, rewards, reward_redemptions,
# profiles (karma columns), karma_transactions
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
rewards:
- id: uuid (primary key)
- business_id: uuid (nullable) - null for global rewards
- title: text (not null)
- description: text (nullable)
- points_cost: integer (not null, > 0)
- image_url: text (nullable)
- is_global: boolean (default false) - redeemable against points from any business
- is_active: boolean (default true)
- created_at: timestamp

reward_redemptions:
- id: uuid (primary key)
- reward_id: uuid (foreign key to rewards.id)
- customer_id: uuid
- points_spent: integer
- redeemed_at: timestamp (default now())

profiles (karma columns):
- economic_karma: numeric (default 100)
- karma_last_decay_at: timestamp (nullable)

karma_transactions:
- id: uuid (primary key)
- user_id: uuid
- change_amount: numeric - negative for decay and penalties
- previous_score / new_score: numeric
- reason: text - monthly_decay, purchase, referral, review, dispute, cancellation, bonus, initial
- created_at: timestamp (default now())
"""
