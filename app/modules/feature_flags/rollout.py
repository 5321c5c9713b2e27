from typing import Any, Dict, Optional


def _int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def string_hash(text: str) -> int:
    """31-multiplier string hash over UTF-16 code units, wrapped to a signed 32-bit int."""
    h = 0
    encoded = text.encode("utf-16-le")
    for i in range(0, len(encoded), 2):
        code_unit = encoded[i] | (encoded[i + 1] << 8)
        h = _int32(h * 31 + code_unit)
    return h


def rollout_value(flag_key: str, user_id: str) -> int:
    """Stable bucket in [0, 100) for a user and flag."""
    return abs(string_hash(f"{user_id}:{flag_key}")) % 100


def is_flag_enabled(flag: Optional[Dict[str, Any]], user_id: Optional[str], user_type: str) -> bool:
    if not flag:
        return False
    if not flag.get("is_enabled"):
        return False
    targets = flag.get("target_user_types") or []
    if targets and user_type not in targets:
        return False
    rollout = flag.get("rollout_percentage")
    rollout = 100 if rollout is None else rollout
    if rollout < 100 and user_id:
        if rollout_value(flag["flag_key"], user_id) >= rollout:
            return False
    return True


def normalize_flag_key(key: str) -> str:
    return "_".join(key.strip().lower().split())
