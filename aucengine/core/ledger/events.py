"""
Audit records emitted by the ledger.

Two append-only streams, mirroring what the ledger promises observers:
- AuctionCreated{index, item, starting_price, duration}
- AuctionEnded{index, final_price, winner}

The record classes carry a ``Record`` suffix; ``AuctionEnded`` in
``aucengine.core.auction`` is the deadline error.

Listeners are called synchronously after the record is committed.
"""

import threading
from dataclasses import asdict, dataclass
from typing import Callable, List, Tuple, Union

from aucengine.utils.logger import get_logger

logger = get_logger("events")


@dataclass(frozen=True)
class AuctionCreatedRecord:
    index: int
    item: str
    starting_price: int
    duration: int
    timestamp: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class AuctionEndedRecord:
    index: int
    final_price: int
    winner: str
    timestamp: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


AuctionEvent = Union[AuctionCreatedRecord, AuctionEndedRecord]
Listener = Callable[[AuctionEvent], None]


class EventLog:
    """
    Append-only store for both audit streams.

    Attributes:
        created: Creation records in emission order
        ended: Sale records in emission order
    """

    def __init__(self):
        self.created: List[AuctionCreatedRecord] = []
        self.ended: List[AuctionEndedRecord] = []
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: Listener) -> None:
        """Register a callback for every new record."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def record(self, event: AuctionEvent, notify: bool = True) -> None:
        """
        Append a record to its stream.

        Args:
            event: Record to append
            notify: Whether to call listeners (False while replaying storage)
        """
        with self._lock:
            if isinstance(event, AuctionCreatedRecord):
                self.created.append(event)
            elif isinstance(event, AuctionEndedRecord):
                self.ended.append(event)
            else:
                raise TypeError(f"Unknown event type: {type(event).__name__}")

        if notify:
            self._notify(event)

    def _notify(self, event: AuctionEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                # Committed records stand; listener errors are only logged
                logger.error(f"Event listener {listener!r} failed: {e}")

    def created_events(self) -> Tuple[AuctionCreatedRecord, ...]:
        return tuple(self.created)

    def ended_events(self) -> Tuple[AuctionEndedRecord, ...]:
        return tuple(self.ended)

    def __len__(self) -> int:
        return len(self.created) + len(self.ended)
