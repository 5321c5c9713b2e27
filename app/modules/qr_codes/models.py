# Supabase tables: qr_codes, qr_scans, loyalty_points, transactions, loyalty_streaks
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
qr_codes:
- id: uuid (primary key)
- business_id: uuid (foreign key to businesses.id, not null)
- code_type: text (not null) - values: loyalty, discount, checkin, info
- points_value: integer (nullable) - loyalty codes only
- discount_percentage: integer (nullable) - discount codes only, 0-100
- is_active: boolean (default true)
- expiration_date: timestamp (nullable)
- scan_limit: integer (nullable) - null or 0 means unlimited
- current_scans: integer (default 0) - updated with compare-and-set on scan
- created_at / updated_at: timestamp

qr_scans:
- id: uuid (primary key)
- qr_code_id: uuid (foreign key to qr_codes.id, on delete cascade)
- customer_id: uuid (foreign key to auth.users.id)
- business_id: uuid (foreign key to businesses.id)
- points_awarded: integer (default 0) - net of platform commission
- discount_applied: numeric (default 0)
- location_lat / location_lng: numeric (nullable)
- scan_date: timestamp (default now())

loyalty_points:
- id: uuid (primary key)
- customer_id / business_id: uuid, unique together
- points: integer (not null, default 0, check points >= 0)

transactions:
- id: uuid (primary key)
- customer_id / business_id: uuid
- points_earned / points_redeemed: integer
- amount / discount_applied: numeric
- transaction_type: text - purchase, scan, review, referral, redemption
- description: text
- qr_scan_id: uuid (nullable)
- metadata: jsonb (nullable) - gross points, commission and commission rate for scans
- transaction_date: timestamp (default now())

loyalty_streaks:
- customer_id: uuid (primary key)
- current_streak / longest_streak: integer
- last_activity_date: timestamp
"""
