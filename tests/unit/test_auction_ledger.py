"""
Unit tests for the auction ledger.

Tests cover:
1. Auction creation and the pricing invariant
2. Price queries and NotFound
3. Purchase settlement (fee, proceeds, refund)
4. Rejections leave state untouched
5. Audit records
6. Listing and statistics
"""

import pytest

from aucengine.core.auction import (
    AuctionEnded,
    AuctionStatus,
    AuctionStopped,
    InsufficientFunds,
    InvalidArgument,
    InvalidPricing,
    NotFound,
)
from aucengine.core.clock import ManualClock
from aucengine.core.config import LedgerConfig
from aucengine.core.ledger import AuctionCreatedRecord, AuctionEndedRecord, AuctionLedger
from aucengine.core.settlement import InMemoryAccountBook

ETH = 10**18
STARTING_PRICE = 200 * ETH
DISCOUNT_RATE = ETH // 1000
DURATION = 2 * 24 * 60 * 60
ITEM = "Test Item"
START = 1_700_000_000


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def clock():
    return ManualClock(start=START)


@pytest.fixture
def accounts():
    return InMemoryAccountBook()


@pytest.fixture
def ledger(clock, accounts):
    return AuctionLedger(owner="owner", clock=clock, accounts=accounts)


@pytest.fixture
def listed(ledger):
    """Ledger with one default-duration auction at index 0."""
    ledger.create_auction("seller", STARTING_PRICE, DISCOUNT_RATE, ITEM, 0)
    return ledger


# =============================================================================
# Creation
# =============================================================================


class TestCreateAuction:
    """Tests for auction creation."""

    def test_owner_is_set(self, ledger):
        assert ledger.owner == "owner"

    def test_no_auctions_initially(self, ledger):
        assert ledger.auction_count() == 0
        with pytest.raises(NotFound):
            ledger.get_auction(0)

    def test_creates_with_correct_parameters(self, ledger, clock):
        index = ledger.create_auction("seller", STARTING_PRICE, DISCOUNT_RATE, ITEM, 0)

        assert index == 0
        auction = ledger.get_auction(0)
        assert auction.seller == "seller"
        assert auction.starting_price == STARTING_PRICE
        assert auction.final_price == STARTING_PRICE
        assert auction.discount_rate == DISCOUNT_RATE
        assert auction.item == ITEM
        assert auction.stopped is False
        assert auction.winner is None
        assert auction.start_at == START
        assert auction.ends_at == START + DURATION

    def test_custom_duration(self, ledger):
        ledger.create_auction("seller", STARTING_PRICE, DISCOUNT_RATE, ITEM, 3600)
        assert ledger.get_auction(0).ends_at == START + 3600

    def test_emits_created_record(self, ledger):
        ledger.create_auction("seller", STARTING_PRICE, DISCOUNT_RATE, ITEM, 0)

        assert ledger.created_events() == (
            AuctionCreatedRecord(index=0, item=ITEM, starting_price=STARTING_PRICE, duration=DURATION, timestamp=START),
        )

    def test_rejects_price_equal_to_max_discount(self, ledger):
        with pytest.raises(InvalidPricing):
            ledger.create_auction("seller", DISCOUNT_RATE * DURATION, DISCOUNT_RATE, ITEM, 0)
        assert ledger.auction_count() == 0
        assert ledger.created_events() == ()

    def test_invariant_uses_custom_duration(self, ledger):
        """A price too low for the default duration is fine for a short one."""
        price = DISCOUNT_RATE * 3600 + 1
        with pytest.raises(InvalidPricing):
            ledger.create_auction("seller", price, DISCOUNT_RATE, ITEM, 0)
        assert ledger.create_auction("seller", price, DISCOUNT_RATE, ITEM, 3600) == 0

    def test_rejects_zero_price(self, ledger):
        with pytest.raises(InvalidPricing):
            ledger.create_auction("seller", 0, 0, ITEM, 0)

    def test_indices_are_sequential(self, ledger):
        assert ledger.create_auction("seller", STARTING_PRICE, DISCOUNT_RATE, "Item 1", 0) == 0
        assert ledger.create_auction("buyer", STARTING_PRICE, DISCOUNT_RATE, "Item 2", 0) == 1

        assert ledger.get_auction(0).item == "Item 1"
        assert ledger.get_auction(1).item == "Item 2"
        assert ledger.get_auction(0).seller == "seller"
        assert ledger.get_auction(1).seller == "buyer"

    def test_failed_creation_does_not_consume_index(self, ledger):
        with pytest.raises(InvalidPricing):
            ledger.create_auction("seller", 1, DISCOUNT_RATE, ITEM, 0)
        assert ledger.create_auction("seller", STARTING_PRICE, DISCOUNT_RATE, ITEM, 0) == 0

    @pytest.mark.parametrize(
        "seller,price,rate,item,duration",
        [
            ("", STARTING_PRICE, DISCOUNT_RATE, ITEM, 0),
            ("bad seller", STARTING_PRICE, DISCOUNT_RATE, ITEM, 0),
            ("seller", -1, DISCOUNT_RATE, ITEM, 0),
            ("seller", 1.5, DISCOUNT_RATE, ITEM, 0),
            ("seller", STARTING_PRICE, -1, ITEM, 0),
            ("seller", STARTING_PRICE, DISCOUNT_RATE, 42, 0),
            ("seller", STARTING_PRICE, DISCOUNT_RATE, "x" * 2000, 0),
            ("seller", STARTING_PRICE, DISCOUNT_RATE, ITEM, -5),
            ("seller", True, DISCOUNT_RATE, ITEM, 0),
        ],
    )
    def test_rejects_malformed_input(self, ledger, seller, price, rate, item, duration):
        with pytest.raises(InvalidArgument):
            ledger.create_auction(seller, price, rate, item, duration)
        assert ledger.auction_count() == 0

    def test_rejects_bad_owner(self):
        with pytest.raises(InvalidArgument):
            AuctionLedger(owner="")


# =============================================================================
# Price Queries
# =============================================================================


class TestGetPrice:
    """Tests for price queries."""

    def test_starting_price_at_beginning(self, listed):
        assert listed.get_price_for(0) == STARTING_PRICE

    def test_decreases_over_time(self, listed, clock):
        clock.advance(3600)
        assert listed.get_price_for(0) == STARTING_PRICE - DISCOUNT_RATE * 3600

    def test_not_found(self, listed):
        with pytest.raises(NotFound) as exc_info:
            listed.get_price_for(1)
        assert exc_info.value.index == 1
        assert exc_info.value.count == 1

    def test_negative_index_not_found(self, listed):
        with pytest.raises(NotFound):
            listed.get_price_for(-1)

    def test_non_int_index(self, listed):
        with pytest.raises(InvalidArgument):
            listed.get_price_for("0")

    def test_stopped(self, listed):
        listed.buy(0, STARTING_PRICE, "buyer")
        with pytest.raises(AuctionStopped):
            listed.get_price_for(0)

    def test_ended(self, listed, clock):
        clock.advance(DURATION + 1)
        with pytest.raises(AuctionEnded):
            listed.get_price_for(0)

    def test_at_deadline(self, listed, clock):
        clock.advance(DURATION)
        assert listed.get_price_for(0) == STARTING_PRICE - DISCOUNT_RATE * DURATION

    def test_small_discount_rate(self, ledger, clock):
        ledger.create_auction("seller", ETH, 1, ITEM, 3600)
        clock.advance(1800)
        assert ledger.get_price_for(0) == ETH - 1800

    def test_large_price(self, ledger):
        large = 1_000_000 * ETH
        ledger.create_auction("seller", large, ETH, ITEM, 0)
        assert ledger.get_price_for(0) == large


# =============================================================================
# Purchase
# =============================================================================


class TestBuy:
    """Tests for purchase settlement."""

    def test_exact_payment_after_one_hour(self, listed, clock, accounts):
        clock.advance(3600)
        price = 196_400_000_000_000_000_000

        settlement = listed.buy(0, price, "buyer")

        assert settlement.final_price == price
        assert settlement.winner == "buyer"
        assert settlement.fee == 19_640_000_000_000_000_000
        assert settlement.seller_proceeds == 176_760_000_000_000_000_000
        assert settlement.refund == 0
        assert accounts.get_balance("seller") == 176_760_000_000_000_000_000
        assert accounts.get_balance("buyer") == 0

    def test_marks_auction_stopped(self, listed, clock):
        clock.advance(60)
        listed.buy(0, STARTING_PRICE, "buyer")

        auction = listed.get_auction(0)
        assert auction.stopped
        assert auction.final_price == STARTING_PRICE - DISCOUNT_RATE * 60
        assert auction.winner == "buyer"
        assert listed.get_status(0) == AuctionStatus.STOPPED

    def test_emits_ended_record(self, listed, clock):
        clock.advance(10)
        listed.buy(0, STARTING_PRICE, "buyer")

        expected = STARTING_PRICE - DISCOUNT_RATE * 10
        assert listed.ended_events() == (
            AuctionEndedRecord(index=0, final_price=expected, winner="buyer", timestamp=START + 10),
        )

    def test_refunds_overpayment(self, listed, clock, accounts):
        clock.advance(1)
        price = STARTING_PRICE - DISCOUNT_RATE
        overpayment = 5 * ETH

        settlement = listed.buy(0, price + overpayment, "buyer")

        assert settlement.refund == overpayment
        assert accounts.get_balance("buyer") == overpayment

    def test_conservation(self, listed, clock):
        clock.advance(12 * 60 * 60)
        tendered = STARTING_PRICE
        settlement = listed.buy(0, tendered, "buyer")

        assert settlement.seller_proceeds + settlement.fee == settlement.final_price
        assert settlement.refund + settlement.final_price == tendered

    def test_fee_truncates(self, ledger):
        ledger.create_auction("seller", 199, 0, ITEM, 10)
        settlement = ledger.buy(0, 199, "buyer")
        assert settlement.fee == 19
        assert settlement.seller_proceeds == 180

    @pytest.mark.parametrize("price", [100 * ETH, 200 * ETH, 1000 * ETH])
    def test_fee_for_different_prices(self, ledger, clock, price):
        rate = ETH // 100
        ledger.create_auction("seller", price, rate, ITEM, 3600)
        clock.advance(1)
        actual = price - rate

        settlement = ledger.buy(0, price, "buyer")

        assert settlement.final_price == actual
        assert settlement.seller_proceeds == actual - actual * 10 // 100

    def test_custom_fee_percent(self, clock):
        ledger = AuctionLedger(owner="owner", config=LedgerConfig(fee_percent=25), clock=clock)
        ledger.create_auction("seller", 1000, 0, ITEM, 10)
        settlement = ledger.buy(0, 1000, "buyer")
        assert settlement.fee == 250
        assert ledger.fee_percent == 25

    def test_insufficient_funds(self, listed, clock):
        clock.advance(3600)
        with pytest.raises(InsufficientFunds) as exc_info:
            listed.buy(0, 150 * ETH, "buyer")

        assert exc_info.value.required == 196_400_000_000_000_000_000
        assert exc_info.value.tendered == 150 * ETH

    def test_zero_tender_fails(self, listed):
        with pytest.raises(InsufficientFunds):
            listed.buy(0, 0, "buyer")

    def test_ended_auction_rejects_purchase(self, listed, clock):
        clock.advance(DURATION + 1)
        with pytest.raises(AuctionEnded):
            listed.buy(0, STARTING_PRICE, "buyer")
        assert listed.get_status(0) == AuctionStatus.EXPIRED
        assert listed.get_auction(0).stopped is False

    def test_buy_at_deadline_succeeds(self, listed, clock):
        clock.advance(DURATION)
        settlement = listed.buy(0, STARTING_PRICE, "buyer")
        assert settlement.final_price == STARTING_PRICE - DISCOUNT_RATE * DURATION

    def test_second_purchase_fails(self, listed):
        listed.buy(0, STARTING_PRICE, "buyer")
        with pytest.raises(AuctionStopped):
            listed.buy(0, STARTING_PRICE, "other")
        assert len(listed.ended_events()) == 1

    def test_not_found(self, listed):
        with pytest.raises(NotFound):
            listed.buy(5, STARTING_PRICE, "buyer")

    def test_invalid_buyer(self, listed):
        with pytest.raises(InvalidArgument):
            listed.buy(0, STARTING_PRICE, "")

    def test_rejection_leaves_state_untouched(self, listed, clock, accounts):
        clock.advance(3600)
        before = listed.get_auction(0)

        with pytest.raises(InsufficientFunds):
            listed.buy(0, 1, "buyer")

        assert listed.get_auction(0) == before
        assert listed.ended_events() == ()
        assert listed.fees.protocol_treasury == 0
        assert accounts.applied == []

    def test_auctions_are_independent(self, ledger, clock):
        ledger.create_auction("seller", STARTING_PRICE, DISCOUNT_RATE, "Item 1", 0)
        ledger.create_auction("seller", STARTING_PRICE, DISCOUNT_RATE, "Item 2", 0)
        clock.advance(100)
        price_before = ledger.get_price_for(1)

        ledger.buy(0, STARTING_PRICE, "buyer")

        assert ledger.get_price_for(1) == price_before
        assert ledger.get_auction(1).stopped is False
        ledger.buy(1, price_before, "buyer2")

    def test_treasury_accumulates(self, ledger):
        ledger.create_auction("seller", 1000, 0, "a", 10)
        ledger.create_auction("seller", 500, 0, "b", 10)
        ledger.buy(0, 1000, "buyer")
        ledger.buy(1, 500, "buyer")
        assert ledger.fees.protocol_treasury == 150
        assert ledger.fees.total_volume == 1500


# =============================================================================
# Failing Collaborators
# =============================================================================


class FailingAccountBook(InMemoryAccountBook):
    def apply_settlement(self, settlement):
        raise ConnectionError("payment rail down")


class TestAtomicity:
    """A failed payout leaves the ledger exactly as it was."""

    def test_payout_failure_rolls_back(self, clock):
        ledger = AuctionLedger(owner="owner", clock=clock, accounts=FailingAccountBook())
        ledger.create_auction("seller", STARTING_PRICE, DISCOUNT_RATE, ITEM, 0)
        before = ledger.get_auction(0)

        with pytest.raises(ConnectionError):
            ledger.buy(0, STARTING_PRICE, "buyer")

        assert ledger.get_auction(0) == before
        assert ledger.ended_events() == ()
        assert ledger.settlements() == []
        assert ledger.fees.protocol_treasury == 0
        assert ledger.get_price_for(0) == STARTING_PRICE


# =============================================================================
# Listing, Events and Stats
# =============================================================================


class TestListing:
    """Tests for bounded listing and statistics."""

    def test_iter_is_bounded(self, ledger):
        for i in range(3):
            ledger.create_auction("seller", STARTING_PRICE, DISCOUNT_RATE, f"Item {i}", 0)

        seen = []
        for auction in ledger.iter_auctions():
            seen.append(auction.index)
            if auction.index == 0:
                ledger.create_auction("seller", STARTING_PRICE, DISCOUNT_RATE, "late", 0)

        assert seen == [0, 1, 2]
        assert [a.index for a in ledger.iter_auctions()] == [0, 1, 2, 3]

    def test_iter_from_start(self, ledger):
        for i in range(3):
            ledger.create_auction("seller", STARTING_PRICE, DISCOUNT_RATE, f"Item {i}", 0)
        assert [a.index for a in ledger.iter_auctions(start=2)] == [2]
        assert list(ledger.iter_auctions(start=10)) == []

    def test_list_snapshot(self, listed):
        snapshot = listed.list_auctions()
        listed.buy(0, STARTING_PRICE, "buyer")
        assert snapshot[0].stopped is False
        assert listed.list_auctions()[0].stopped is True

    def test_listener_receives_records(self, ledger):
        received = []
        ledger.events.subscribe(received.append)

        ledger.create_auction("seller", STARTING_PRICE, DISCOUNT_RATE, ITEM, 0)
        ledger.buy(0, STARTING_PRICE, "buyer")

        assert [type(e).__name__ for e in received] == ["AuctionCreatedRecord", "AuctionEndedRecord"]

    def test_failing_listener_does_not_break_sale(self, listed):
        def broken(event):
            raise RuntimeError("boom")

        listed.events.subscribe(broken)
        listed.buy(0, STARTING_PRICE, "buyer")
        assert listed.get_auction(0).stopped

    def test_balance_of(self, ledger):
        ledger.create_auction("seller", 1000, 0, ITEM, 10)
        ledger.buy(0, 1200, "buyer")
        assert ledger.balance_of("seller") == 900
        assert ledger.balance_of("buyer") == 200
        assert ledger.balance_of("nobody") == 0

    def test_stats(self, ledger, clock):
        ledger.create_auction("seller", 1000, 0, "sold", 10)
        ledger.create_auction("seller", 1000, 0, "expired", 10)
        ledger.create_auction("seller", 1000, 0, "active", 1000)
        ledger.buy(0, 1000, "buyer")
        clock.advance(11)

        stats = ledger.stats()
        assert stats["auction_count"] == 3
        assert stats["stopped"] == 1
        assert stats["expired"] == 1
        assert stats["active"] == 1
        assert stats["treasury_balance"] == 100
        assert stats["owner"] == "owner"

    def test_repr(self, listed):
        assert "auctions=1" in repr(listed)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
