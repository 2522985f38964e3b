"""
Pricing - price decay for descending-price auctions.

The price of an auction is never stored. It is recomputed from elapsed
time on every query:

    price(now) = starting_price - discount_rate * (now - start_at)

Creation requires starting_price > discount_rate * duration, so the
price stays strictly positive up to and including ends_at. Everything in
this module is a pure function of its arguments.
"""

from typing import Tuple

from aucengine.core.auction.auction import Auction, AuctionStatus
from aucengine.core.auction.errors import AuctionEnded, AuctionStopped


def validate_pricing(starting_price: int, discount_rate: int, duration: int) -> Tuple[bool, str]:
    """
    Check the creation invariant.

    Args:
        starting_price: Price at start, base units
        discount_rate: Decay per second, base units
        duration: Auction length in seconds (already resolved, > 0)

    Returns:
        (is_valid, error_message)
    """
    if starting_price <= 0:
        return False, f"starting_price must be > 0, got {starting_price}"

    max_discount = discount_rate * duration
    if starting_price <= max_discount:
        return False, f"starting_price {starting_price} must exceed discount_rate * duration = {max_discount}"

    return True, ""


def current_price(auction: Auction, now: int) -> int:
    """
    Price of an auction at time ``now``.

    Args:
        auction: Auction snapshot
        now: Timestamp in seconds

    Returns:
        Current price in base units

    Raises:
        AuctionStopped: If the auction has been sold
        AuctionEnded: If now is past ends_at
    """
    if auction.stopped:
        raise AuctionStopped(auction.index)

    if now > auction.ends_at:
        raise AuctionEnded(auction.index, auction.ends_at, now)

    elapsed = max(0, now - auction.start_at)
    price = auction.starting_price - auction.discount_rate * elapsed
    return max(0, price)


def status_at(auction: Auction, now: int) -> AuctionStatus:
    """Lifecycle state of an auction at ``now``."""
    if auction.stopped:
        return AuctionStatus.STOPPED
    if now > auction.ends_at:
        return AuctionStatus.EXPIRED
    return AuctionStatus.ACTIVE


def time_left(auction: Auction, now: int) -> int:
    """Seconds until the deadline (0 if stopped or ended)."""
    if auction.stopped:
        return 0
    return max(0, auction.ends_at - now)
