"""
Dedup ledger record models.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class SeenReason(Enum):
    """Why a listing was surfaced to the user."""

    SCRAPE = "scrape"
    TOP = "top"
    DROP = "drop"


@dataclass(frozen=True)
class SeenRecord:
    """A fingerprint that has already been surfaced."""

    fingerprint: str
    url: Optional[str]
    title: Optional[str]
    price_numeric: Optional[float]
    published_at: Optional[str]
    reason: Optional[SeenReason]
    created_at: datetime
