# Supabase table: feature_flags
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
feature_flags:
- id: uuid (primary key)
- flag_key: text (unique, not null) - lower_snake_case
- flag_name: text (not null)
- description: text (nullable)
- is_enabled: boolean (default false)
- rollout_percentage: integer (default 100, 0-100)
- target_user_types: text[] (default '{}') - empty means every user type
- created_at / updated_at: timestamp
"""
