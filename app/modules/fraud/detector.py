"""
Deterministic fraud detectors over QR scan history.

location_mismatch: consecutive scans by one customer that imply a travel speed no
person could manage. velocity_abuse: too many scans by one customer inside a rolling
hour.
"""
import math
from collections import defaultdict
from datetime import timedelta
from typing import Any, Dict, Iterable, List, Optional

from app.core.timeutils import parse_timestamp

EARTH_RADIUS_KM = 6371.0088
VELOCITY_WINDOW = timedelta(hours=1)

SENSITIVE_KEYS = ("ip_address", "user_agent", "email", "phone", "password", "token", "secret")
MAX_STRING_LENGTH = 500
MAX_LIST_LENGTH = 50


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lng2 - lng1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def _has_location(scan: Dict[str, Any]) -> bool:
    return scan.get("location_lat") is not None and scan.get("location_lng") is not None


def implied_speed_kmh(first: Dict[str, Any], second: Dict[str, Any]) -> Optional[float]:
    """Travel speed between two located scans; None when either lacks coordinates."""
    if not (_has_location(first) and _has_location(second)):
        return None
    distance = haversine_km(
        float(first["location_lat"]), float(first["location_lng"]),
        float(second["location_lat"]), float(second["location_lng"]),
    )
    hours = abs((parse_timestamp(second["scan_date"]) - parse_timestamp(first["scan_date"])).total_seconds()) / 3600
    if hours == 0:
        return math.inf if distance > 0 else 0.0
    return distance / hours


def _by_customer(scans: Iterable[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    grouped: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
    for scan in scans:
        if scan.get("customer_id") and scan.get("scan_date"):
            grouped[scan["customer_id"]].append(scan)
    for customer_scans in grouped.values():
        customer_scans.sort(key=lambda s: parse_timestamp(s["scan_date"]))
    return grouped


def detect_location_mismatch(scans: Iterable[Dict[str, Any]], max_kmh: float) -> List[Dict[str, Any]]:
    alerts = []
    for customer_id, customer_scans in _by_customer(scans).items():
        located = [s for s in customer_scans if _has_location(s)]
        for previous, current in zip(located, located[1:]):
            speed = implied_speed_kmh(previous, current)
            if speed is None or speed <= max_kmh:
                continue
            distance = haversine_km(
                float(previous["location_lat"]), float(previous["location_lng"]),
                float(current["location_lat"]), float(current["location_lng"]),
            )
            alerts.append({
                "alert_type": "location_mismatch",
                "severity": "critical" if speed > max_kmh * 5 else "high",
                "user_id": customer_id,
                "business_id": current.get("business_id"),
                "related_entity_id": current.get("id"),
                "related_entity_type": "qr_scan",
                "description": (
                    f"Scans {distance:.1f} km apart imply travel at "
                    f"{'an instant' if math.isinf(speed) else f'{speed:.0f} km/h'}"
                ),
                "evidence": {
                    "previous_scan_id": previous.get("id"),
                    "current_scan_id": current.get("id"),
                    "distance_km": round(distance, 2),
                    "implied_speed_kmh": None if math.isinf(speed) else round(speed, 1),
                    "max_speed_kmh": max_kmh,
                },
                "ai_confidence_score": 0.95 if speed > max_kmh * 5 else 0.8,
            })
    return alerts


def detect_velocity_abuse(scans: Iterable[Dict[str, Any]], max_per_hour: int) -> List[Dict[str, Any]]:
    """One alert per customer, reporting the busiest rolling hour."""
    alerts = []
    for customer_id, customer_scans in _by_customer(scans).items():
        times = [parse_timestamp(s["scan_date"]) for s in customer_scans]
        peak, peak_start = 0, None
        start = 0
        for end, current in enumerate(times):
            while current - times[start] >= VELOCITY_WINDOW:
                start += 1
            count = end - start + 1
            if count > peak:
                peak, peak_start = count, times[start]
        if peak <= max_per_hour:
            continue
        alerts.append({
            "alert_type": "velocity_abuse",
            "severity": "high" if peak > max_per_hour * 2 else "medium",
            "user_id": customer_id,
            "business_id": None,
            "related_entity_id": None,
            "related_entity_type": "qr_scan",
            "description": f"{peak} scans within one hour (limit {max_per_hour})",
            "evidence": {
                "scans_in_window": peak,
                "window_start": peak_start.isoformat(),
                "max_per_hour": max_per_hour,
            },
            "ai_confidence_score": 0.9 if peak > max_per_hour * 2 else 0.7,
        })
    return alerts


def sanitize_for_log(data: Any) -> Any:
    """Redact PII keys and bound sizes before anything leaves the service in logs or alerts."""
    if data is None:
        return None
    if isinstance(data, str):
        return data[:MAX_STRING_LENGTH]
    if isinstance(data, (bool, int, float)):
        return data
    if isinstance(data, (list, tuple)):
        return [sanitize_for_log(item) for item in list(data)[:MAX_LIST_LENGTH]]
    if isinstance(data, dict):
        sanitized = {}
        for key, value in data.items():
            lowered = str(key).lower()
            if any(sensitive in lowered for sensitive in SENSITIVE_KEYS):
                if "ip" in lowered and "address" in lowered:
                    sanitized[key] = "[IP_REDACTED]"
                elif "user_agent" in lowered:
                    sanitized[key] = "[USER_AGENT_REDACTED]"
                else:
                    sanitized[key] = "[REDACTED]"
            else:
                sanitized[key] = sanitize_for_log(value)
        return sanitized
    return str(data)[:MAX_STRING_LENGTH]
