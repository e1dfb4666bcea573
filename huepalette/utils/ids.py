"""
huepalette ID Utilities
Generate identifiers for extraction runs and palette entries.
"""
import uuid
from datetime import datetime


def generate_request_id() -> str:
    """
    Generate a unique extraction run ID for tracing.

    Returns:
        Unique request ID string
    """
    timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
    short_uuid = str(uuid.uuid4())[:8]
    return f"pal-{timestamp}-{short_uuid}"


def generate_palette_id() -> str:
    """Generate the public identifier of a finished palette."""
    return f"palette_{uuid.uuid4().hex[:12]}"


def color_id(index: int) -> str:
    """Stable per-palette color identifier, e.g. ``color_001``."""
    return f"color_{index:03d}"


def extract_timestamp_from_request_id(request_id: str) -> str:
    """
    Extract timestamp from request ID.

    Args:
        request_id: Request ID string

    Returns:
        Timestamp string or empty if not found
    """
    parts = request_id.split("-")
    if len(parts) >= 2 and parts[0] == "pal":
        return parts[1]
    return ""
