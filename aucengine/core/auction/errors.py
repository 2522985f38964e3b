"""
Auction errors - typed failures returned to callers.

Every failure is local to one operation and leaves the ledger unchanged.
Each error carries a stable ``code`` so presentation layers can map it to
a user-facing message without string matching.
"""

from typing import Optional


class AuctionError(Exception):
    """Base class for all ledger failures."""

    code = "AUCTION_ERROR"

    def __init__(self, message: str, index: Optional[int] = None):
        super().__init__(message)
        self.index = index


class NotFound(AuctionError, IndexError):
    """Referenced auction index does not exist."""

    code = "NOT_FOUND"

    def __init__(self, index: int, count: int):
        super().__init__(f"Auction {index} not found ({count} auctions)", index)
        self.count = count


class InvalidPricing(AuctionError, ValueError):
    """Starting price does not exceed discount_rate * duration."""

    code = "INVALID_PRICING"

    def __init__(self, starting_price: int, discount_rate: int, duration: int):
        super().__init__(
            f"Incorrect starting price: {starting_price} must exceed "
            f"discount_rate * duration = {discount_rate * duration}"
        )
        self.starting_price = starting_price
        self.discount_rate = discount_rate
        self.duration = duration


class InvalidArgument(AuctionError, ValueError):
    """Malformed input (wrong type, negative amount, bad identity)."""

    code = "INVALID_ARGUMENT"


class AuctionStopped(AuctionError):
    """Auction has already been sold."""

    code = "AUCTION_STOPPED"

    def __init__(self, index: int):
        super().__init__(f"Auction {index} is stopped", index)


class AuctionEnded(AuctionError):
    """Auction deadline passed without a sale."""

    code = "AUCTION_ENDED"

    def __init__(self, index: int, ends_at: int, now: int):
        super().__init__(f"Auction {index} ended at {ends_at} (now {now})", index)
        self.ends_at = ends_at
        self.now = now


class InsufficientFunds(AuctionError):
    """Tendered amount is below the current price."""

    code = "INSUFFICIENT_FUNDS"

    def __init__(self, index: int, required: int, tendered: int):
        super().__init__(
            f"Not enough funds for auction {index}: required {required}, tendered {tendered}",
            index,
        )
        self.required = required
        self.tendered = tendered


class StorageConflict(AuctionError):
    """Another writer on the same database keeps claiming the next index."""

    code = "STORAGE_CONFLICT"

    def __init__(self, index: int):
        super().__init__(f"Auction index {index} was taken by another writer", index)


def error_code(exc: BaseException) -> str:
    """Stable code for an exception ("INTERNAL" for non-auction errors)."""
    if isinstance(exc, AuctionError):
        return exc.code
    return "INTERNAL"


__all__ = [
    "AuctionError",
    "NotFound",
    "InvalidPricing",
    "InvalidArgument",
    "AuctionStopped",
    "AuctionEnded",
    "InsufficientFunds",
    "StorageConflict",
    "error_code",
]
