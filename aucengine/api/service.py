"""
AuctionService - operations exposed to the presentation layer.

Thin adapter over AuctionLedger: validates requests with pydantic,
passes the authenticated caller identity through, and shapes results
into response models. Failures surface as AuctionError subclasses;
``to_error_response`` turns one into a payload the UI can display.
"""

from typing import List

from aucengine.api.models import (
    AuctionCreatedView,
    AuctionEndedView,
    AuctionView,
    BuyRequest,
    BuyResponse,
    CreateAuctionRequest,
    CreateAuctionResponse,
    ErrorResponse,
)
from aucengine.core.auction.auction import AuctionStatus
from aucengine.core.auction.errors import AuctionError, error_code
from aucengine.core.auction.pricing import current_price, status_at
from aucengine.core.ledger.ledger import AuctionLedger


class AuctionService:
    """Request/response facade over a ledger."""

    def __init__(self, ledger: AuctionLedger):
        self.ledger = ledger

    # =========================================================================
    # Writes
    # =========================================================================

    def create_auction(self, caller: str, request: CreateAuctionRequest) -> CreateAuctionResponse:
        index = self.ledger.create_auction(
            seller=caller,
            starting_price=request.starting_price,
            discount_rate=request.discount_rate,
            item=request.item,
            duration=request.duration_seconds,
        )
        return CreateAuctionResponse(index=index)

    def buy(self, caller: str, request: BuyRequest) -> BuyResponse:
        settlement = self.ledger.buy(request.index, request.tendered_amount, caller)
        return BuyResponse.from_settlement(settlement)

    # =========================================================================
    # Reads
    # =========================================================================

    def auction_count(self) -> int:
        return self.ledger.auction_count()

    def get_auction(self, index: int) -> AuctionView:
        return self._view(self.ledger.get_auction(index), self.ledger.clock.now())

    def list_auctions(self, start: int = 0) -> List[AuctionView]:
        """All auctions from ``start``, priced at a single instant."""
        now = self.ledger.clock.now()
        return [self._view(auction, now) for auction in self.ledger.iter_auctions(start)]

    def get_current_price(self, index: int) -> int:
        return self.ledger.get_price_for(index)

    def created_events(self) -> List[AuctionCreatedView]:
        return [AuctionCreatedView.from_event(e) for e in self.ledger.created_events()]

    def ended_events(self) -> List[AuctionEndedView]:
        return [AuctionEndedView.from_event(e) for e in self.ledger.ended_events()]

    @staticmethod
    def _view(auction, now: int) -> AuctionView:
        status = status_at(auction, now)
        price = current_price(auction, now) if status == AuctionStatus.ACTIVE else None
        return AuctionView.from_auction(auction, status, price)


def to_error_response(exc: AuctionError) -> ErrorResponse:
    """Payload describing a failed operation."""
    return ErrorResponse(code=error_code(exc), message=str(exc), index=exc.index)
