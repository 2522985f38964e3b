"""Auction records, pricing and errors"""
from aucengine.core.auction.auction import Auction, AuctionStatus
from aucengine.core.auction.errors import (
    AuctionError,
    NotFound,
    InvalidPricing,
    InvalidArgument,
    AuctionStopped,
    AuctionEnded,
    InsufficientFunds,
    StorageConflict,
    error_code,
)
from aucengine.core.auction.pricing import (
    current_price,
    validate_pricing,
    status_at,
    time_left,
)

__all__ = [
    "Auction",
    "AuctionStatus",
    "AuctionError",
    "NotFound",
    "InvalidPricing",
    "InvalidArgument",
    "AuctionStopped",
    "AuctionEnded",
    "InsufficientFunds",
    "StorageConflict",
    "error_code",
    "current_price",
    "validate_pricing",
    "status_at",
    "time_left",
]
