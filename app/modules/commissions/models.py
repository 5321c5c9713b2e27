# Supabase tables: sales_agents, referrals, agent_commissions
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
sales_agents:
- id: uuid (primary key)
- user_id: uuid (foreign key to auth.users.id, unique)
- full_name / email: text (not null)
- phone: text (nullable)
- referral_code: text (unique, not null)
- tier: text (default 'bronze') - bronze, silver, gold, platinum, diamond
- commission_rate: numeric (default 0.10)
- recruited_by_agent_id: uuid (nullable, foreign key to sales_agents.id)
- lifetime_referrals: integer (default 0)
- total_earned / total_pending: numeric (default 0)
- is_active: boolean (default true)
- created_at / updated_at: timestamp

referrals:
- id: uuid (primary key)
- sales_agent_id: uuid (foreign key to sales_agents.id)
- referred_user_id: uuid (unique)
- referred_user_type: text - customer, business
- subscription_amount: numeric (nullable)
- commission_amount: numeric (nullable)
- commission_status: text (default 'pending')
- referral_date: timestamp (default now())

agent_commissions:
- id: uuid (primary key)
- sales_agent_id: uuid (foreign key to sales_agents.id)
- referral_id: uuid (foreign key to referrals.id)
- amount: numeric (not null)
- commission_type: text - direct, team_override, recruitment_bonus
- tier_level: integer - 1 for the referring agent, 2 for their recruiter
- status: text (default 'pending') - pending, approved, processing, paid, cancelled
- due_date / paid_date: timestamp (nullable)
- payment_reference: text (nullable)
"""
