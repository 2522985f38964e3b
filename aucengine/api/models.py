"""
Request and response models for the presentation layer.

Immutable Pydantic models validating what the UI sends and shaping what
it reads back. Amounts are integers in base units.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from aucengine.core.auction.auction import Auction, AuctionStatus
from aucengine.core.ledger.events import AuctionCreatedRecord, AuctionEndedRecord
from aucengine.core.settlement import Settlement


# =============================================================================
# REQUESTS
# =============================================================================


class CreateAuctionRequest(BaseModel):
    """Parameters for listing a new auction; the caller is the seller."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    starting_price: int = Field(..., gt=0, description="Price at creation, base units")
    discount_rate: int = Field(..., ge=0, description="Price decrease per second, base units")
    item: str = Field(..., description="Item description; length is limited by the ledger config")
    duration_seconds: int = Field(0, ge=0, description="Auction length; 0 selects the default")


class BuyRequest(BaseModel):
    """Purchase attempt; the caller is the buyer."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    index: int = Field(..., ge=0, description="Auction index")
    tendered_amount: int = Field(..., ge=0, description="Funds offered, base units")


# =============================================================================
# RESPONSES
# =============================================================================


class CreateAuctionResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int


class BuyResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    final_price: int
    winner: str
    fee: int
    seller_proceeds: int
    refund: int

    @classmethod
    def from_settlement(cls, settlement: Settlement) -> "BuyResponse":
        return cls(
            final_price=settlement.final_price,
            winner=settlement.winner,
            fee=settlement.fee,
            seller_proceeds=settlement.seller_proceeds,
            refund=settlement.refund,
        )


class AuctionView(BaseModel):
    """
    Auction as shown in listings.

    current_price is None whenever the auction cannot be bought.
    """

    model_config = ConfigDict(frozen=True)

    index: int
    seller: str
    starting_price: int
    final_price: int
    start_at: int
    ends_at: int
    discount_rate: int
    item: str
    stopped: bool
    status: AuctionStatus
    current_price: Optional[int] = None
    winner: Optional[str] = None

    @classmethod
    def from_auction(
        cls,
        auction: Auction,
        status: AuctionStatus,
        price: Optional[int] = None,
    ) -> "AuctionView":
        return cls(
            index=auction.index,
            seller=auction.seller,
            starting_price=auction.starting_price,
            final_price=auction.final_price,
            start_at=auction.start_at,
            ends_at=auction.ends_at,
            discount_rate=auction.discount_rate,
            item=auction.item,
            stopped=auction.stopped,
            status=status,
            current_price=price,
            winner=auction.winner,
        )


class AuctionCreatedView(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    item: str
    starting_price: int
    duration: int

    @classmethod
    def from_event(cls, event: AuctionCreatedRecord) -> "AuctionCreatedView":
        return cls(
            index=event.index,
            item=event.item,
            starting_price=event.starting_price,
            duration=event.duration,
        )


class AuctionEndedView(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    final_price: int
    winner: str

    @classmethod
    def from_event(cls, event: AuctionEndedRecord) -> "AuctionEndedView":
        return cls(index=event.index, final_price=event.final_price, winner=event.winner)


class ErrorResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    index: Optional[int] = None
