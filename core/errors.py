"""Domain errors.

Handlers catch BotError and turn it into a short notice for the user;
the message on each class is the default notice text.
"""


class BotError(Exception):
    """Base class for expected, user-facing failures."""

    notice = "❌ Error occurred"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.notice)
        self.message = message or self.notice


class DuplicateFile(BotError):
    """File with the same source reference is already in the catalog."""

    notice = "⚠️ File already exists."


class NotFound(BotError):
    """Missing file, pending upload or search session."""

    notice = "❌ Not found."


class QuotaExceeded(BotError):
    notice = "⚠️ Daily limit reached."


class FavoritesFull(BotError):
    notice = "⚠️ Favorites list is full."


class NotAuthorized(BotError):
    notice = "⛔ Not allowed."


class MembershipUnverifiable(BotError):
    """Membership lookup failed. The gate lets the user through."""

    notice = "⚠️ Could not verify channel membership."


class DeliveryBlocked(BotError):
    """Recipient blocked the bot."""

    notice = "Recipient blocked the bot."


class DeliveryFailed(BotError):
    notice = "Message delivery failed."
