"""
Alert formatting models.
"""

from dataclasses import dataclass


@dataclass
class FormattedAlert:
    """Formatted text ready for the notification channel."""

    title: str
    message: str
    is_hot_deal: bool
    parse_mode: str = "HTML"

    def validate(self) -> bool:
        """Validate formatted alert data."""
        if not isinstance(self.title, str) or not self.title.strip():
            raise ValueError("title cannot be empty")

        if not isinstance(self.message, str) or not self.message.strip():
            raise ValueError("message cannot be empty")

        if len(self.message) > 4096:
            raise ValueError("message too long (max 4096 characters)")

        return True
