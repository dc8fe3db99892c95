"""Dedup ledger: remembers which listing fingerprints have already been surfaced."""

from datetime import datetime, timezone
from typing import Callable, Optional

from ..interfaces import ISeenStore
from ..models.seen import SeenReason, SeenRecord
from ..utils.error_handling import ValidationError
from ..utils.logging import get_logger

logger = get_logger("dedup.ledger")


class DedupLedger:
    """Append-only record of seen fingerprints; the first insert wins."""

    def __init__(self, store: ISeenStore, clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def has_seen(self, fingerprint: str) -> bool:
        return self.store.has_seen(fingerprint)

    def mark_seen(
        self,
        fingerprint: str,
        url: Optional[str] = None,
        title: Optional[str] = None,
        price: Optional[float] = None,
        published_at: Optional[str] = None,
        reason: Optional[SeenReason] = None,
    ) -> bool:
        """
        Record ``fingerprint`` unless it is already present.

        A repeated call for the same fingerprint is a silent no-op; the stored
        metadata is never overwritten.

        Returns:
            True if a new record was created
        """
        if not fingerprint:
            raise ValidationError("fingerprint cannot be empty")

        record = SeenRecord(
            fingerprint=fingerprint,
            url=url or None,
            title=title or None,
            price_numeric=price,
            published_at=published_at or None,
            reason=reason,
            created_at=self.clock(),
        )
        inserted = self.store.insert_seen(record)
        if inserted:
            logger.debug(
                "Fingerprint recorded",
                extra={"fingerprint": fingerprint, "reason": reason.value if reason else None},
            )
        return inserted

    def get(self, fingerprint: str) -> Optional[SeenRecord]:
        return self.store.get_seen(fingerprint)

    def count(self) -> int:
        """Total number of distinct fingerprints recorded."""
        return self.store.count_seen()
