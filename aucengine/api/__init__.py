"""Presentation-facing service and models"""
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
from aucengine.api.service import AuctionService, to_error_response

__all__ = [
    "AuctionCreatedView",
    "AuctionEndedView",
    "AuctionView",
    "BuyRequest",
    "BuyResponse",
    "CreateAuctionRequest",
    "CreateAuctionResponse",
    "ErrorResponse",
    "AuctionService",
    "to_error_response",
]
