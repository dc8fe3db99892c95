"""
Alert formatting component for the Vehicle Deal Filter system.

This module turns listings, optionally with a hot-deal verdict, into
HTML-formatted text for the notification channel.
"""

import html
from typing import Optional

from ..interfaces import IAlertFormatter
from ..models.alert import FormattedAlert
from ..models.listing import Listing
from ..models.verdict import Verdict

UNTITLED = "Untitled listing"
MAX_TITLE_LENGTH = 200


def format_amount(value: float) -> str:
    """Format a price with spaces as thousands separators, e.g. ``45 000``."""
    return f"{value:,.0f}".replace(",", " ")


class AlertFormatter(IAlertFormatter):
    """Formats listings into notification messages."""

    def format_listing(self, listing: Listing, verdict: Optional[Verdict] = None) -> FormattedAlert:
        """
        Format a listing into an alert message.

        Args:
            listing: The listing to format
            verdict: Hot-deal verdict; adds a badge line when present

        Returns:
            FormattedAlert: Formatted alert ready for delivery
        """
        title = (listing.title or "").strip() or UNTITLED
        if len(title) > MAX_TITLE_LENGTH:
            title = title[: MAX_TITLE_LENGTH - 3] + "..."

        lines = []
        if verdict is not None:
            lines.append(self.create_badge(verdict))

        lines.append(f"<b>{html.escape(title)}</b>")

        details = [
            html.escape(str(part))
            for part in (listing.price_text, listing.location)
            if part not in (None, "")
        ]
        lines.append(" • ".join(details))
        lines.append(listing.url or "")

        alert = FormattedAlert(
            title=title,
            message="\n".join(lines),
            is_hot_deal=verdict is not None,
        )
        alert.validate()
        return alert

    def create_badge(self, verdict: Verdict) -> str:
        """Create the hot-deal badge line."""
        badge = (
            f"🔥 HOT DEAL -{verdict.savings_pct:.0%} vs market "
            f"{format_amount(verdict.market_price)} "
            f"({verdict.sample_count} samples)"
        )
        if verdict.hard_cap is not None:
            badge += f", cap {format_amount(verdict.hard_cap)}"
        return badge
