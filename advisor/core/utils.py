"""Small helpers shared by the repositories and upstream adapters."""
import json
import uuid
from datetime import datetime, timezone


def new_id(prefix: str) -> str:
    """Generate a UUID4-based ID with prefix."""
    return f"{prefix}{uuid.uuid4().hex}"


def now_iso() -> str:
    """Get current time as ISO 8601 string with Z suffix."""
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


def safe_json_loads(s, default=None):
    """Parse JSON safely, returning default on failure.

    Args:
        s: JSON string to parse
        default: Default value to return on failure (defaults to {})

    Returns:
        Parsed JSON object or default value
    """
    if not s:
        return default if default is not None else {}
    try:
        return json.loads(s)
    except (json.JSONDecodeError, TypeError):
        return default if default is not None else {}


def truncate(text, limit: int = 200) -> str:
    """Shorten arbitrary values for log lines."""
    text = str(text)
    return text if len(text) <= limit else text[:limit] + "..."
