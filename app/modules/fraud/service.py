from supabase import Client
from app.config import settings
from app.modules.fraud import detector
from app.modules.fraud.schemas import FraudAlertResponse, FraudAnalysisResult
from app.core.timeutils import utcnow
from typing import List, Optional, Dict, Any
from datetime import timedelta
from fastapi import HTTPException
import logging
import time

logger = logging.getLogger(__name__)


class FraudService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def record_alerts(self, alerts: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Batch insert alerts with sanitized evidence and return the stored rows."""
        if not alerts:
            return []
        rows = []
        for alert in alerts:
            row = dict(alert)
            row["evidence"] = detector.sanitize_for_log(alert.get("evidence") or {})
            row["status"] = "pending"
            rows.append(row)
        result = self.supabase.table("fraud_alerts").insert(rows).execute()
        logger.warning(f"Recorded {len(rows)} fraud alert(s): {[r['alert_type'] for r in rows]}")
        return result.data or rows

    def check_scan_travel(self, previous_scan: Optional[Dict[str, Any]], current_scan: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Impossible-travel check for a single new scan. Failures are logged, never raised."""
        if not previous_scan:
            return []
        try:
            alerts = detector.detect_location_mismatch(
                [previous_scan, current_scan], settings.fraud_max_travel_kmh
            )
            return self.record_alerts(alerts)
        except Exception as e:
            logger.error(f"Fraud travel check failed for scan {current_scan.get('id')}: {e}")
            return []

    def analyze(self, days: int = 7, business_id: Optional[str] = None, triggered_by: Optional[str] = None) -> FraudAnalysisResult:
        started = time.monotonic()
        try:
            since = (utcnow() - timedelta(days=days)).isoformat()
            query = self.supabase.table("qr_scans")\
                .select("id, customer_id, business_id, qr_code_id, location_lat, location_lng, scan_date")\
                .gte("scan_date", since)
            if business_id:
                query = query.eq("business_id", business_id)
            scans = query.order("scan_date").execute().data or []

            alerts = detector.detect_location_mismatch(scans, settings.fraud_max_travel_kmh)
            alerts += detector.detect_velocity_abuse(scans, settings.fraud_max_scans_per_hour)
            stored = self.record_alerts(alerts)

            duration_ms = int((time.monotonic() - started) * 1000)
            self.supabase.table("fraud_detection_logs").insert({
                "analysis_type": "manual",
                "records_analyzed": len(scans),
                "alerts_generated": len(stored),
                "duration_ms": duration_ms,
                "triggered_by": triggered_by,
            }).execute()
            logger.info(f"Fraud analysis over {len(scans)} scans produced {len(stored)} alert(s) in {duration_ms}ms")
            return FraudAnalysisResult(
                records_analyzed=len(scans),
                alerts_generated=len(stored),
                duration_ms=duration_ms,
                alerts=[FraudAlertResponse(**a) for a in stored],
            )
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_alerts(self, status: Optional[str] = None, limit: int = 50) -> List[FraudAlertResponse]:
        try:
            query = self.supabase.table("fraud_alerts").select("*")
            if status:
                query = query.eq("status", status)
            result = query.order("created_at", desc=True).limit(limit).execute()
            return [FraudAlertResponse(**a) for a in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
