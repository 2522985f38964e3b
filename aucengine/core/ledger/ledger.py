"""
Ledger - auction state management for AucEngine.

Conceptual Background:
---------------------
The AuctionLedger is the single source of truth for every auction:

1. **Auction Table**: append-only list indexed from 0; indices never reused
2. **Audit Streams**: AuctionCreated / AuctionEnded records
3. **Treasury**: protocol fees retained from settled sales

Purchase Processing:
-------------------
1. Look up the auction (NotFound)
2. Price it at clock.now() (AuctionStopped, AuctionEnded)
3. Check tender >= price (InsufficientFunds)
4. Settle: pay seller, refund buyer, persist, flip stopped, record event

Steps 2-4 run under the ledger's write lock, so two buyers racing for the
same auction cannot both see it unsold. Auction records are immutable and
swapped whole, so readers never need the lock.
"""

import threading
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional, Tuple

from aucengine.core.auction.auction import Auction, AuctionStatus
from aucengine.core.auction.errors import (
    AuctionError,
    AuctionStopped,
    InsufficientFunds,
    InvalidArgument,
    InvalidPricing,
    NotFound,
    StorageConflict,
)
from aucengine.core.auction.pricing import current_price, status_at, validate_pricing
from aucengine.core.clock import Clock, SystemClock
from aucengine.core.config import LedgerConfig
from aucengine.core.ledger.events import AuctionCreatedRecord, AuctionEndedRecord, EventLog
from aucengine.core.settlement import (
    AccountBook,
    FeeManager,
    InMemoryAccountBook,
    Settlement,
    balances_from,
)
from aucengine.utils.logger import get_logger
from aucengine.utils.validation import (
    validate_amount,
    validate_duration,
    validate_identity,
    validate_item,
)

if TYPE_CHECKING:
    from aucengine.core.storage.storage_manager import StorageManager

logger = get_logger("ledger")

# Retries when another ledger on the same database takes the next index
MAX_CREATE_ATTEMPTS = 3


def _require(check: Tuple[bool, str]) -> None:
    is_valid, error = check
    if not is_valid:
        raise InvalidArgument(error)


class AuctionLedger:
    """
    Descending-price auction ledger.

    Attributes:
        config: Fee and duration parameters
        clock: Time source for start times and pricing
        accounts: Collaborator that moves settlement funds
        fees: Fee calculator and protocol treasury
        events: Audit record streams
        storage_manager: Persistence manager, or None for in-memory only
    """

    def __init__(
        self,
        owner: str,
        config: Optional[LedgerConfig] = None,
        clock: Optional[Clock] = None,
        accounts: Optional[AccountBook] = None,
        storage_manager: Optional["StorageManager"] = None,
    ):
        """
        Initialize the ledger.

        Args:
            owner: Administrative owner identity, fixed for the ledger's life
            config: Ledger configuration. None = defaults (10% fee, 2 days)
            clock: Time source. None = SystemClock
            accounts: Account book for payouts. None = InMemoryAccountBook
            storage_manager: Persistence manager. None = in-memory only
        """
        _require(validate_identity(owner, "owner"))

        self.config = config or LedgerConfig()
        self.config.validate()

        self.clock = clock or SystemClock()
        self.accounts = accounts if accounts is not None else InMemoryAccountBook()
        self.fees = FeeManager(self.config.fee_percent)
        self.events = EventLog()

        # Auction table, index == position
        self._auctions: List[Auction] = []
        self._settlements: List[Settlement] = []

        self._owner = owner
        self._write_lock = threading.RLock()

        # Persistence
        self.storage_manager = storage_manager

        if storage_manager:
            self._load_from_storage()

    # =========================================================================
    # State Access
    # =========================================================================

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def fee_percent(self) -> int:
        return self.fees.fee_percent

    @property
    def default_duration(self) -> int:
        return self.config.default_duration

    def auction_count(self) -> int:
        """Number of auctions ever created (also the next index)."""
        return len(self._auctions)

    def __len__(self) -> int:
        return self.auction_count()

    def get_auction(self, index: int) -> Auction:
        """
        Get the committed record for an auction.

        Raises:
            InvalidArgument: If index is not an int
            NotFound: If index is out of range
        """
        if isinstance(index, bool) or not isinstance(index, int):
            raise InvalidArgument(f"index must be int, got {type(index).__name__}")

        auctions = self._auctions
        count = len(auctions)
        if index < 0 or index >= count:
            raise NotFound(index, count)
        return auctions[index]

    def iter_auctions(self, start: int = 0) -> Iterator[Auction]:
        """
        Iterate auctions from ``start`` up to the count at call time.

        Auctions created during iteration are not included; call again to
        pick them up.
        """
        count = len(self._auctions)
        for index in range(max(0, start), count):
            yield self._auctions[index]

    def list_auctions(self) -> List[Auction]:
        """Snapshot of every auction, ordered by index."""
        return list(self._auctions)

    def get_price_for(self, index: int) -> int:
        """
        Current price of an auction.

        Raises:
            NotFound: If index is out of range
            AuctionStopped: If already sold
            AuctionEnded: If the deadline passed unsold
        """
        auction = self.get_auction(index)
        return current_price(auction, self.clock.now())

    def get_status(self, index: int) -> AuctionStatus:
        """Lifecycle state of an auction right now."""
        return status_at(self.get_auction(index), self.clock.now())

    def settlements(self) -> List[Settlement]:
        """Every committed settlement, in commit order."""
        return list(self._settlements)

    def balance_of(self, identity: str) -> int:
        """Total credited to an identity by settlements (proceeds + refunds)."""
        return balances_from(self._settlements, identity)[identity]

    def created_events(self) -> Tuple[AuctionCreatedRecord, ...]:
        return self.events.created_events()

    def ended_events(self) -> Tuple[AuctionEndedRecord, ...]:
        return self.events.ended_events()

    # =========================================================================
    # Auction Creation
    # =========================================================================

    def create_auction(
        self,
        seller: str,
        starting_price: int,
        discount_rate: int,
        item: str,
        duration: int = 0,
    ) -> int:
        """
        List a new auction starting now.

        Args:
            seller: Creator identity
            starting_price: Price at creation, base units (> 0)
            discount_rate: Price decrease per second, base units
            item: Item description
            duration: Length in seconds; 0 selects the default duration

        Returns:
            Index of the new auction

        Raises:
            InvalidArgument: On malformed input
            InvalidPricing: If starting_price <= discount_rate * duration
            StorageConflict: If other writers keep taking the next index
        """
        _require(validate_identity(seller, "seller"))
        _require(validate_amount(starting_price, "starting_price"))
        _require(validate_amount(discount_rate, "discount_rate"))
        _require(validate_item(item, self.config.max_item_length))
        _require(validate_duration(duration))

        resolved = duration if duration > 0 else self.config.default_duration

        is_valid, error = validate_pricing(starting_price, discount_rate, resolved)
        if not is_valid:
            logger.debug(f"Rejected auction from {seller}: {error}")
            raise InvalidPricing(starting_price, discount_rate, resolved)

        with self._write_lock:
            attempt = 0
            while True:
                now = self.clock.now()
                index = len(self._auctions)

                auction = Auction(
                    index=index,
                    seller=seller,
                    starting_price=starting_price,
                    final_price=starting_price,
                    start_at=now,
                    ends_at=now + resolved,
                    discount_rate=discount_rate,
                    item=item,
                )
                created = AuctionCreatedRecord(
                    index=index,
                    item=item,
                    starting_price=starting_price,
                    duration=resolved,
                    timestamp=now,
                )

                if not self.storage_manager:
                    break
                try:
                    self.storage_manager.persist_creation(auction, created)
                    break
                except StorageConflict:
                    attempt += 1
                    if attempt >= MAX_CREATE_ATTEMPTS:
                        logger.warning(f"Giving up on auction from {seller}: index {index} still taken")
                        raise
                    logger.debug(f"Index {index} taken by another writer; reloading")
                    self._merge_stored_state()

            self._auctions.append(auction)
            self.events.record(created)

        logger.info(f"Auction {index} created by {seller}: '{item}', price={starting_price}, duration={resolved}s")
        return index

    # =========================================================================
    # Purchase
    # =========================================================================

    def buy(self, index: int, tendered_amount: int, buyer: str) -> Settlement:
        """
        Purchase an auction at its current price.

        The sale price is the price at the instant the purchase executes.
        Any tender above it is refunded; the protocol fee is kept.

        Args:
            index: Auction index
            tendered_amount: Funds offered, base units
            buyer: Buyer identity

        Returns:
            Settlement with final_price, winner, and the fund split

        Raises:
            InvalidArgument: On malformed input
            NotFound: If index is out of range
            AuctionStopped: If already sold
            AuctionEnded: If the deadline passed
            InsufficientFunds: If tendered_amount < current price
        """
        _require(validate_identity(buyer, "buyer"))
        _require(validate_amount(tendered_amount, "tendered_amount"))

        with self._write_lock:
            auction = self.get_auction(index)
            now = self.clock.now()

            try:
                price = current_price(auction, now)
            except AuctionError as e:
                logger.debug(f"Purchase of auction {index} by {buyer} rejected: {e}")
                raise

            if tendered_amount < price:
                logger.debug(f"Purchase of auction {index} by {buyer} rejected: {tendered_amount} < {price}")
                raise InsufficientFunds(index, price, tendered_amount)

            settlement = self.fees.build_settlement(
                index=index,
                seller=auction.seller,
                winner=buyer,
                price=price,
                tendered=tendered_amount,
                settled_at=now,
            )
            stopped = auction.stop(price, buyer)

            self.accounts.apply_settlement(settlement)
            if self.storage_manager:
                try:
                    self.storage_manager.persist_settlement(settlement)
                except AuctionStopped:
                    self.accounts.revert_settlement(settlement)
                    logger.debug(f"Auction {index} was sold by another writer; reloading")
                    self._merge_stored_state()
                    raise
                except Exception:
                    self.accounts.revert_settlement(settlement)
                    logger.error(f"Failed to persist settlement for auction {index}, payouts reverted")
                    raise

            self._auctions[index] = stopped
            self._settlements.append(settlement)
            self.fees.record(settlement)
            self.events.record(AuctionEndedRecord(index=index, final_price=price, winner=buyer, timestamp=now))

        logger.info(
            f"Auction {index} sold to {buyer} for {price} "
            f"(fee={settlement.fee}, seller={settlement.seller_proceeds}, refund={settlement.refund})"
        )
        return settlement

    # =========================================================================
    # Persistence
    # =========================================================================

    def _load_from_storage(self) -> None:
        """Replay auctions, audit streams and treasury from storage."""
        if not self.storage_manager:
            return

        stored_owner = self.storage_manager.get_owner()
        if stored_owner is None:
            self.storage_manager.save_owner(self._owner)
        elif stored_owner != self._owner:
            logger.warning(f"Ledger owner is fixed at {stored_owner}; ignoring {self._owner}")
            self._owner = stored_owner

        stored_fee = self.storage_manager.get_fee_percent()
        if stored_fee is None:
            self.storage_manager.save_fee_percent(self.fees.fee_percent)
        elif stored_fee != self.fees.fee_percent:
            logger.warning(f"Ledger fee is fixed at {stored_fee}%; ignoring configured {self.fees.fee_percent}%")
            self.fees = FeeManager(stored_fee)

        self._merge_stored_state()
        logger.info(f"Loaded ledger: {len(self._auctions)} auctions, {len(self._settlements)} settlements")

    def _merge_stored_state(self) -> None:
        """
        Pull in auctions and sales stored since this ledger last looked.

        Other ledgers on the same database append auctions and settle sales
        independently. Stored rows win; payouts they made are not re-applied
        to this ledger's account book.
        """
        auctions, created, settlements = self.storage_manager.load_ledger_state()

        for position, auction in enumerate(auctions):
            if auction.index != position:
                raise RuntimeError(f"Corrupt auction table: expected index {position}, found {auction.index}")

        known = len(self._auctions)
        self._auctions.extend(auctions[known:])

        # One creation record per auction, ordered by index
        for record in created[known:]:
            self.events.record(record, notify=False)

        sold = {settlement.index for settlement in self._settlements}
        for settlement in settlements:
            if settlement.index in sold:
                continue
            self._auctions[settlement.index] = auctions[settlement.index]
            self._settlements.append(settlement)
            self.fees.record(settlement)
            self.events.record(
                AuctionEndedRecord(
                    index=settlement.index,
                    final_price=settlement.final_price,
                    winner=settlement.winner,
                    timestamp=settlement.settled_at,
                ),
                notify=False,
            )

    def close(self) -> None:
        """Close storage."""
        if self.storage_manager:
            self.storage_manager.close()

    # =========================================================================
    # Utility
    # =========================================================================

    def __repr__(self) -> str:
        return f"AuctionLedger(owner={self._owner}, auctions={len(self._auctions)}, sold={len(self._settlements)})"

    def stats(self) -> Dict[str, Any]:
        """Get ledger statistics."""
        now = self.clock.now()
        counts = {status.value: 0 for status in AuctionStatus}
        for auction in self._auctions:
            counts[status_at(auction, now).value] += 1

        return {
            "owner": self._owner,
            "auction_count": len(self._auctions),
            "active": counts[AuctionStatus.ACTIVE.value],
            "stopped": counts[AuctionStatus.STOPPED.value],
            "expired": counts[AuctionStatus.EXPIRED.value],
            "default_duration": self.config.default_duration,
            **self.fees.stats(),
        }
