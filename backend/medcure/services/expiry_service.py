# Overview: Pure expiry resolution; urgency tiers and days remaining for a product.

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable

from ..validation import ValidationError
from .stock_service import read_field
from medcure.time_utils import as_utc_datetime, utcnow


# Inclusive upper bounds, in days until expiry
EXPIRED_MAX_DAYS = 0
CRITICAL_MAX_DAYS = 7
WARNING_MAX_DAYS = 30

TIER_UNKNOWN = "unknown"
TIER_EXPIRED = "expired"
TIER_CRITICAL = "critical"
TIER_WARNING = "warning"
TIER_GOOD = "good"

TIER_LABELS = {
    TIER_UNKNOWN: "No Expiry Data",
    TIER_EXPIRED: "Expired",
    TIER_CRITICAL: "Expires Soon",
    TIER_WARNING: "Expiring Soon",
    TIER_GOOD: "Good",
}

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class ExpiryStatus:
    tier: str
    days_until_expiry: int | None
    label: str

    def to_dict(self) -> dict:
        return {
            "tier": self.tier,
            "days_until_expiry": self.days_until_expiry,
            "label": self.label,
        }


def _expiry_datetime(product: Any) -> datetime | None:
    raw = read_field(product, "expiry_date")
    if raw is None or raw == "":
        return None
    try:
        return as_utc_datetime(raw)
    except ValueError:
        raise ValidationError(f"expiry_date must be an ISO-8601 date, got {raw!r}")


def days_until_expiry(product: Any, now: datetime | None = None) -> int | None:
    """ceil((expiry - now) / 1 day); None when the product has no expiry date."""
    expiry = _expiry_datetime(product)
    if expiry is None:
        return None
    current = as_utc_datetime(now) if now is not None else utcnow()
    delta = (expiry - current).total_seconds()
    return math.ceil(delta / SECONDS_PER_DAY)


def expiry_status(product: Any, now: datetime | None = None) -> ExpiryStatus:
    days = days_until_expiry(product, now)
    if days is None:
        tier = TIER_UNKNOWN
    elif days <= EXPIRED_MAX_DAYS:
        tier = TIER_EXPIRED
    elif days <= CRITICAL_MAX_DAYS:
        tier = TIER_CRITICAL
    elif days <= WARNING_MAX_DAYS:
        tier = TIER_WARNING
    else:
        tier = TIER_GOOD
    return ExpiryStatus(tier=tier, days_until_expiry=days, label=TIER_LABELS[tier])


def is_expired(product: Any, now: datetime | None = None) -> bool:
    days = days_until_expiry(product, now)
    return days is not None and days <= EXPIRED_MAX_DAYS


def is_expiring_soon(product: Any, within_days: int = WARNING_MAX_DAYS, now: datetime | None = None) -> bool:
    """
    True iff the product expires within `within_days` and has not expired yet.

    Expired products belong to the expired bucket, not this one.
    """
    if within_days < 0:
        raise ValidationError("within_days must be >= 0")
    days = days_until_expiry(product, now)
    return days is not None and 0 < days <= within_days


def expiry_alerts(
    products: Iterable[Any],
    within_days: int = WARNING_MAX_DAYS,
    now: datetime | None = None,
) -> dict:
    """
    Bucket products for the expiry alerts panel.

    expired: already expired; critical: within 7 days; warning: the rest of
    the window. Each bucket is sorted soonest first. Products without an
    expiry date or outside the window are left out.
    """
    if within_days < 0:
        raise ValidationError("within_days must be >= 0")
    current = as_utc_datetime(now) if now is not None else utcnow()

    buckets: dict[str, list] = {TIER_EXPIRED: [], TIER_CRITICAL: [], TIER_WARNING: []}
    for product in products:
        status = expiry_status(product, current)
        if status.tier == TIER_EXPIRED:
            buckets[TIER_EXPIRED].append((status.days_until_expiry, product))
        elif status.tier in (TIER_CRITICAL, TIER_WARNING, TIER_GOOD):
            if not is_expiring_soon(product, within_days, current):
                continue
            bucket = TIER_CRITICAL if status.tier == TIER_CRITICAL else TIER_WARNING
            buckets[bucket].append((status.days_until_expiry, product))

    return {
        name: [product for _, product in sorted(entries, key=lambda e: e[0])]
        for name, entries in buckets.items()
    }
