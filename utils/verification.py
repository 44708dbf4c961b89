import secrets
from datetime import datetime, timezone, timedelta

def generate_raw_token() -> str:
    # 32 bytes -> 43 url-safe characters
    return secrets.token_urlsafe(32)

def get_token_expiry_time(hours: int = 24) -> datetime:
    return datetime.now(timezone.utc) + timedelta(hours=hours)

def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything is stored in UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
