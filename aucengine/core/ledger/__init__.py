"""Auction ledger and audit records"""
from aucengine.core.ledger.events import (
    AuctionCreatedRecord,
    AuctionEndedRecord,
    AuctionEvent,
    EventLog,
)
from aucengine.core.ledger.ledger import AuctionLedger

__all__ = [
    "AuctionCreatedRecord",
    "AuctionEndedRecord",
    "AuctionEvent",
    "EventLog",
    "AuctionLedger",
]
