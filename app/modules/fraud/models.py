# Supabase tables: fraud_alerts, fraud_detection_logs
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
fraud_alerts:
- id: uuid (primary key)
- alert_type: text - location_mismatch, velocity_abuse
- severity: text - low, medium, high, critical
- user_id: uuid (nullable)
- business_id: uuid (nullable)
- related_entity_id: uuid (nullable)
- related_entity_type: text (nullable) - qr_scan
- description: text
- evidence: jsonb - sanitized before insert
- ai_confidence_score: numeric (0-1)
- status: text (default 'pending') - pending, investigating, confirmed, dismissed
- created_at: timestamp

fraud_detection_logs:
- id: uuid (primary key)
- analysis_type: text - manual, scan
- records_analyzed: integer
- alerts_generated: integer
- duration_ms: integer
- triggered_by: uuid (nullable)
- created_at: timestamp
"""
