from datetime import datetime, timezone
from typing import Any, Optional

from errors import InvalidIdentity, InvalidInput

ZERO_IDENTITY = "0x0000000000000000000000000000000000000000"

HISTORY_TEMPLATES = {
    "registered": "Registered at {detail} by {party_name}",
    "transferred": "Transferred to {party_name} at {detail}",
    "contamination_reported": "Contamination reported by {party_name}",
}

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def ensure_utc(value: datetime) -> datetime:
    # naive values are taken to be UTC already
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

def to_iso(value: datetime) -> str:
    return ensure_utc(value).isoformat()

def from_iso(value: str) -> datetime:
    return ensure_utc(datetime.fromisoformat(value))

def check_identity(identity: Optional[str], what: str = "identity") -> str:
    if not isinstance(identity, str) or not identity.strip() or identity == ZERO_IDENTITY:
        raise InvalidIdentity(f"{what} must be a non-empty, non-zero identity")
    return identity

def check_text(value: Any, what: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput(f"{what} must not be empty")
    return value

def check_timestamp(value: Any, what: str) -> datetime:
    if not isinstance(value, datetime):
        raise InvalidInput(f"{what} must be a datetime")
    return ensure_utc(value)

def render_history_entry(kind: str, party_name: str, detail: str) -> str:
    return HISTORY_TEMPLATES[kind].format(party_name=party_name, detail=detail)
