import re

UUID_REGEX = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)


def is_valid_uuid(value) -> bool:
    """Canonical 8-4-4-4-12 hex form only; braces, urns and bare hex are rejected."""
    return isinstance(value, str) and bool(UUID_REGEX.match(value))
