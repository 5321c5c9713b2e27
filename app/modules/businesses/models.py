# Supabase table: businesses
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- owner_id: uuid (foreign key to auth.users.id, not null)
- business_name: text (not null)
- description: text (nullable)
- category: text (nullable)
- address, city, state, zip_code: text (nullable)
- phone, email, website: text (nullable)
- logo_url, banner_url: text (nullable)
- latitude, longitude: numeric (nullable) - used by fraud travel checks
- is_verified: boolean (default false)
- is_suspended: boolean (default false)
- suspension_reason: text (nullable)
- average_rating: numeric(3,2) (default 0)
- review_count: integer (default 0)
- subscription_status: text (default 'trial')
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
"""
