# Supabase tables: subscriptions, platform_transactions, business_payment_accounts
# (corporate_subscriptions is documented in sponsors/models.py)
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py and webhooks.py

"""
subscriptions:
- id: uuid (primary key)
- user_id: uuid (unique, foreign key to auth.users.id)
- user_type: text - customer, business
- tier: text - free, pro, enterprise
- source: text - stripe, apple
- status: text - active, trialing, past_due, expired, cancelled, ...
- stripe_customer_id / stripe_subscription_id: text (nullable)
- apple_original_transaction_id: text (nullable, unique)
- apple_product_id: text (nullable)
- apple_environment: text (nullable) - Production, Sandbox
- current_period_start / current_period_end: timestamp (nullable)
- cancel_at_period_end: boolean (default false)
- updated_at: timestamp

platform_transactions:
- id: uuid (primary key)
- stripe_payment_intent_id: text
- stripe_charge_id: text (nullable)
- status: text - pending, succeeded, failed, refunded
- amount / platform_fee: numeric

business_payment_accounts:
- id: uuid (primary key)
- business_id: uuid
- stripe_account_id: text (unique)
- account_status: text - pending, active, restricted
- charges_enabled / payouts_enabled: boolean
- requirements_due: jsonb (list of requirement keys)
"""
