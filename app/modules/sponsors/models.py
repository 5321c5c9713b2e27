# Supabase tables: corporate_subscriptions, sponsor_benefits, sponsor_impact_metrics
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
corporate_subscriptions:
- id: uuid (primary key)
- user_id: uuid (unique, foreign key to auth.users.id)
- company_name: text (not null, 1-255 chars)
- tier: text - bronze, silver, gold, platinum
- logo_url / website_url: text (nullable, max 2048 chars)
- stripe_customer_id / stripe_subscription_id: text (nullable)
- status: text - active, past_due, cancelled, ...
- current_period_start / current_period_end: timestamp
- cancel_at_period_end: boolean (default false)
- created_at / updated_at: timestamp

sponsor_benefits:
- id: uuid (primary key)
- subscription_id: uuid (foreign key to corporate_subscriptions.id)
- benefit_type: text - logo_footer, logo_homepage, impact_reports, executive_briefings, cobranded_marketing
- benefit_value: jsonb - e.g. {"enabled": true} or {"frequency": "monthly"}
- created_at: timestamp

sponsor_impact_metrics:
- id: uuid (primary key)
- subscription_id: uuid (foreign key to corporate_subscriptions.id)
- metric_date: date
- businesses_supported / total_transactions / community_reach: integer
- economic_impact: numeric
"""
