# Supabase tables: developer_accounts, developer_api_keys, api_usage_logs
# plus RPCs validate_api_key, check_api_rate_limit, log_api_usage
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in gateway.py and service.py

"""
developer_accounts:
- id: uuid (primary key)
- user_id: uuid (unique, foreign key to auth.users.id)
- company_name: text (nullable)
- tier: text (default 'free') - free, pro, enterprise
- status: text (default 'active') - pending, active, suspended
- rate_limit_per_minute: integer (default 60)
- created_at: timestamp

developer_api_keys:
- id: uuid (primary key)
- developer_id: uuid (foreign key to developer_accounts.id)
- name: text
- key_hash: text (unique) - SHA-256 hex of the raw key; the raw key is never stored
- key_prefix: text - first characters of the raw key, for display
- scopes: text[]
- is_active: boolean (default true)
- last_used_at: timestamp (nullable)
- created_at: timestamp

rpc validate_api_key(p_key_hash) -> rows of
  {developer_id, api_key_id, tier, status, rate_limit_per_minute, scopes, monthly_*_limit}
rpc check_api_rate_limit(p_api_key_id, p_limit_per_minute) -> boolean
rpc log_api_usage(p_api_key_id, p_developer_id, p_endpoint, p_method, p_response_status,
                  p_latency_ms, p_billed_units, p_ip_address, p_user_agent)
"""
