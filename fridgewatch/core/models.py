# fridgewatch/core/models.py
from __future__ import annotations

from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any, Literal, Optional, List

from pydantic import BaseModel, Field, validator


# ---------- Enumerations ----------

class ExpirationBucket(str, Enum):
    EXPIRED = "expired"
    EXPIRING_SOON = "expiring_soon"
    LATER = "later"


class AuthorizationStatus(str, Enum):
    """Notification permission as reported by the notification center."""
    AUTHORIZED = "authorized"
    DENIED = "denied"
    NOT_DETERMINED = "not_determined"


class InventoryFilter(str, Enum):
    ALL = "all"
    EXPIRING_SOON = "expiring_soon"
    FAVORITES = "favorites"


class SortOption(str, Enum):
    EXPIRATION_SOON = "expiration_soon"
    QUANTITY_HIGH = "quantity_high"
    RECENTLY_ADDED = "recently_added"


# ---------- Inventory ----------

def _coerce_expiration(v: Any) -> Optional[datetime]:
    """
    Lenient parse for stored expiration dates.
    Anything we cannot read becomes None, i.e. "no expiration concern".
    """
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, datetime):
        return v
    if isinstance(v, date):
        return datetime.combine(v, time())
    if isinstance(v, (int, float)):
        try:
            return datetime.fromtimestamp(v, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(v, str):
        raw = v.strip()
        if not raw:
            return None
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            return None
    return None


class InventoryItem(BaseModel):
    """A single fridge item as stored by the persistence layer."""
    id: Optional[str] = Field(None, description="Storage id; unsaved items have none")
    name: str = Field(..., min_length=1, description="Display name of the item")
    category: Optional[str] = Field(None, description="e.g. 'Dairy', 'Produce'")
    quantity: float = Field(1, ge=0, description="Non-negative quantity")
    unit: str = Field("pcs", description="Free-form unit, e.g. 'pcs', 'g', 'ml'")
    expiration_date: Optional[datetime] = Field(None, description="Missing or unreadable means no reminder")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="When the item was added")

    @validator("name")
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("InventoryItem.name cannot be blank")
        return v

    @validator("unit")
    def _default_unit(cls, v: str) -> str:
        return v.strip() or "pcs"

    @validator("expiration_date", pre=True)
    def _lenient_expiration(cls, v: Any) -> Optional[datetime]:
        return _coerce_expiration(v)


class Inventory(BaseModel):
    items: List[InventoryItem] = Field(default_factory=list)


# ---------- Notifications ----------

class NotificationRequest(BaseModel):
    """One pending local notification, keyed by a stable id derived from the item id."""
    id: str
    item_id: str
    trigger_at: datetime
    title: str
    body: str


class ReconcileResult(BaseModel):
    to_schedule: List[NotificationRequest] = Field(default_factory=list)
    to_cancel: List[str] = Field(default_factory=list)


class SyncReport(BaseModel):
    authorization: AuthorizationStatus
    skipped: bool = False          # True when notifications are not authorized
    scheduled: List[str] = Field(default_factory=list)
    cancelled: List[str] = Field(default_factory=list)
    failed: List[str] = Field(default_factory=list)


class AuthorizationUpdate(BaseModel):
    status: AuthorizationStatus


# ---------- Summary / read models ----------

class Buckets(BaseModel):
    expired: List[InventoryItem] = Field(default_factory=list)
    expiring_soon: List[InventoryItem] = Field(default_factory=list)
    later: List[InventoryItem] = Field(default_factory=list)


class Banner(BaseModel):
    title: str
    message: str
    style: Literal["success", "warning"]


class InventorySection(BaseModel):
    title: str
    items: List[InventoryItem]


class InventorySummary(BaseModel):
    expired_count: int = 0
    expiring_soon_count: int = 0
    later_count: int = 0
    summary_line: str
    banner: Optional[Banner] = None
    hero: Optional[InventoryItem] = None
    sections: List[InventorySection] = Field(default_factory=list)


# ---------- Auditing / events ----------

class InventoryEvent(BaseModel):
    ts: datetime = Field(default_factory=datetime.utcnow)
    type: Literal["update", "sync", "delete"]
    payload: dict
    schema_version: int = 1
