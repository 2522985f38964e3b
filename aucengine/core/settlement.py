"""
Settlement - fee extraction and fund movement for completed sales.

A purchase at price P with tender T splits as:

    fee             = P * fee_percent // 100   (kept by the protocol)
    seller_proceeds = P - fee                  (paid to the seller)
    refund          = T - P                    (returned to the buyer)

so seller_proceeds + fee == P and refund + P == T exactly.

The ledger does not move money itself. It hands a Settlement to an
account book, which either applies the whole settlement or raises.
"""

import threading
from collections import defaultdict
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Protocol

from aucengine.utils.logger import get_logger

logger = get_logger("settlement")


@dataclass(frozen=True)
class Settlement:
    """Two-party result of a successful purchase."""
    index: int
    seller: str
    winner: str
    final_price: int
    tendered: int
    fee: int
    seller_proceeds: int
    refund: int
    settled_at: int

    def balance_changes(self) -> Dict[str, int]:
        """Credits produced by this settlement, per identity."""
        changes: Dict[str, int] = defaultdict(int)
        changes[self.seller] += self.seller_proceeds
        changes[self.winner] += self.refund
        return dict(changes)

    def to_dict(self) -> dict:
        return asdict(self)


class FeeManager:
    """
    Computes fee splits and tracks the protocol treasury.
    """

    def __init__(self, fee_percent: int = 10):
        if not 0 <= fee_percent <= 100:
            raise ValueError(f"fee_percent must be within 0..100, got {fee_percent}")
        self.fee_percent = fee_percent

        # Track totals
        self.total_volume: int = 0
        self.protocol_treasury: int = 0
        self.settlement_count: int = 0

    def calculate_fee(self, price: int) -> int:
        """Protocol fee for a sale at ``price`` (truncated)."""
        return price * self.fee_percent // 100

    def build_settlement(
        self,
        index: int,
        seller: str,
        winner: str,
        price: int,
        tendered: int,
        settled_at: int,
    ) -> Settlement:
        """
        Split a sale into fee, seller proceeds, and refund.

        Does not touch the treasury; call record() once the sale commits.

        Raises:
            ValueError: If tendered < price
        """
        if tendered < price:
            raise ValueError(f"tendered {tendered} below price {price}")

        fee = self.calculate_fee(price)
        return Settlement(
            index=index,
            seller=seller,
            winner=winner,
            final_price=price,
            tendered=tendered,
            fee=fee,
            seller_proceeds=price - fee,
            refund=tendered - price,
            settled_at=settled_at,
        )

    def record(self, settlement: Settlement) -> None:
        """Add a committed settlement's fee to the treasury."""
        self.total_volume += settlement.final_price
        self.protocol_treasury += settlement.fee
        self.settlement_count += 1

    def stats(self) -> dict:
        """Get fee statistics."""
        return {
            "fee_percent": self.fee_percent,
            "settlements": self.settlement_count,
            "total_volume": self.total_volume,
            "treasury_balance": self.protocol_treasury,
        }


# =============================================================================
# Account Book
# =============================================================================


class AccountBook(Protocol):
    """External collaborator that moves funds for a settlement."""

    def apply_settlement(self, settlement: Settlement) -> None:
        """Pay seller proceeds and refund the buyer, all or nothing."""
        ...

    def revert_settlement(self, settlement: Settlement) -> None:
        """Undo a settlement applied by apply_settlement."""
        ...


class InMemoryAccountBook:
    """
    Account book keeping credited balances in memory.

    Records every applied settlement so payouts can be audited.
    """

    def __init__(self):
        self.balances: Dict[str, int] = defaultdict(int)
        self.applied: List[Settlement] = []
        self._lock = threading.Lock()

    def apply_settlement(self, settlement: Settlement) -> None:
        with self._lock:
            for identity, amount in settlement.balance_changes().items():
                self.balances[identity] += amount
            self.applied.append(settlement)

        logger.debug(
            f"Paid {settlement.seller_proceeds} to {settlement.seller}, "
            f"refunded {settlement.refund} to {settlement.winner}"
        )

    def revert_settlement(self, settlement: Settlement) -> None:
        with self._lock:
            if settlement not in self.applied:
                return
            for identity, amount in settlement.balance_changes().items():
                self.balances[identity] -= amount
            self.applied.remove(settlement)

        logger.warning(f"Reverted settlement for auction {settlement.index}")

    def get_balance(self, identity: str) -> int:
        return self.balances.get(identity, 0)


def balances_from(settlements: List[Settlement], identity: Optional[str] = None) -> Dict[str, int]:
    """
    Rebuild credited balances from settlement history.

    Args:
        settlements: Settlements in any order
        identity: If given, only that identity is returned

    Returns:
        identity -> total credited
    """
    totals: Dict[str, int] = defaultdict(int)
    for settlement in settlements:
        for who, amount in settlement.balance_changes().items():
            totals[who] += amount

    if identity is not None:
        return {identity: totals.get(identity, 0)}
    return dict(totals)
