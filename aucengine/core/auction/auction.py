"""
Auction record for the Dutch auction ledger.

An Auction is immutable. The ledger never edits one in place; when a
sale settles it swaps in a stopped copy, so any reader holding a record
always holds a consistent, committed state.
"""

from dataclasses import asdict, dataclass, replace
from enum import Enum
from typing import Optional


class AuctionStatus(str, Enum):
    """Lifecycle state of an auction at a given instant."""
    ACTIVE = "active"        # Purchasable, price decaying
    STOPPED = "stopped"      # Sold; final_price is the realized price
    EXPIRED = "expired"      # Deadline passed unsold (implicit, never stored)


@dataclass(frozen=True)
class Auction:
    """
    A single descending-price auction.

    Attributes:
        index: Position in the ledger, assigned from 0
        seller: Identity of the creator
        starting_price: Price at start_at, in base units
        final_price: starting_price until sold, then the sale price
        start_at: Creation timestamp (seconds)
        ends_at: start_at + duration
        discount_rate: Base units removed from the price per second
        item: Free-form description
        stopped: True once a purchase has settled
        winner: Buyer identity once stopped
    """
    index: int
    seller: str
    starting_price: int
    final_price: int
    start_at: int
    ends_at: int
    discount_rate: int
    item: str
    stopped: bool = False
    winner: Optional[str] = None

    @property
    def duration(self) -> int:
        return self.ends_at - self.start_at

    def stop(self, final_price: int, winner: str) -> "Auction":
        """Return the stopped copy of this auction."""
        if self.stopped:
            raise RuntimeError(f"Auction {self.index} already stopped")
        return replace(self, stopped=True, final_price=final_price, winner=winner)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Auction":
        return cls(
            index=int(data["index"]),
            seller=data["seller"],
            starting_price=int(data["starting_price"]),
            final_price=int(data["final_price"]),
            start_at=int(data["start_at"]),
            ends_at=int(data["ends_at"]),
            discount_rate=int(data["discount_rate"]),
            item=data["item"],
            stopped=bool(data["stopped"]),
            winner=data.get("winner"),
        )
