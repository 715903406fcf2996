from datetime import datetime, timezone


def utc_now() -> datetime:
    """Timezone-aware current time for record timestamps"""
    return datetime.now(timezone.utc)
