"""
Tests for the execution ledger and fungible assets.
"""

from decimal import Decimal

import pytest

from errors import InsufficientAllowance, InsufficientBalance
from ledger import FungibleAsset, Ledger


class TestFungibleAsset:
    """Tests for FungibleAsset"""

    @pytest.fixture
    def asset(self):
        asset = FungibleAsset("dai")
        asset.mint("alice", Decimal("100"))
        return asset

    def test_symbol_normalized(self, asset):
        assert asset.symbol == "DAI"

    def test_transfer(self, asset):
        asset.transfer("alice", "bob", Decimal("40"))

        assert asset.balance_of("alice") == Decimal("60")
        assert asset.balance_of("bob") == Decimal("40")
        assert asset.total_supply == Decimal("100")

    def test_transfer_beyond_balance(self, asset):
        with pytest.raises(InsufficientBalance):
            asset.transfer("alice", "bob", Decimal("101"))

        assert asset.balance_of("alice") == Decimal("100")

    def test_negative_amount_rejected(self, asset):
        with pytest.raises(ValueError):
            asset.transfer("alice", "bob", Decimal("-1"))

    def test_transfer_from_consumes_allowance(self, asset):
        assert asset.approve("alice", "venue", Decimal("30"))

        asset.transfer_from("venue", "alice", "venue", Decimal("20"))

        assert asset.allowance("alice", "venue") == Decimal("10")
        assert asset.balance_of("venue") == Decimal("20")

    def test_transfer_from_beyond_allowance(self, asset):
        asset.approve("alice", "venue", Decimal("10"))

        with pytest.raises(InsufficientAllowance):
            asset.transfer_from("venue", "alice", "venue", Decimal("11"))

    def test_approve_zero_clears(self, asset):
        asset.approve("alice", "venue", Decimal("10"))
        asset.approve("alice", "venue", Decimal("0"))

        assert asset.allowance("alice", "venue") == 0
        assert asset.snapshot()[1] == {}

    def test_blocked_spender(self, asset):
        asset.block_spender("venue")

        assert asset.approve("alice", "venue", Decimal("10")) is False
        assert asset.allowance("alice", "venue") == 0

        asset.unblock_spender("venue")
        assert asset.approve("alice", "venue", Decimal("10")) is True


class TestLedger:
    """Tests for Ledger units of work"""

    @pytest.fixture
    def ledger(self):
        return Ledger(clock=lambda: 1_700_000_000.7)

    @pytest.fixture
    def dai(self, ledger):
        asset = ledger.create_asset("DAI")
        asset.mint("alice", Decimal("100"))
        return asset

    def test_duplicate_asset_rejected(self, ledger, dai):
        with pytest.raises(ValueError, match="already registered"):
            ledger.create_asset("dai")

    def test_get_asset(self, ledger, dai):
        assert ledger.get_asset("dai") is dai

        with pytest.raises(ValueError):
            ledger.get_asset("USDC")

    def test_commit_keeps_changes(self, ledger, dai):
        with ledger.unit_of_work():
            dai.transfer("alice", "bob", Decimal("10"))
            ledger.emit("transferred")

        assert dai.balance_of("bob") == Decimal("10")
        assert ledger.events == ["transferred"]

    def test_failure_restores_everything(self, ledger, dai):
        with pytest.raises(RuntimeError):
            with ledger.unit_of_work():
                dai.transfer("alice", "bob", Decimal("10"))
                dai.approve("alice", "venue", Decimal("5"))
                ledger.emit("transferred")
                raise RuntimeError("boom")

        assert dai.balance_of("alice") == Decimal("100")
        assert dai.balance_of("bob") == 0
        assert dai.allowance("alice", "venue") == 0
        assert ledger.events == []

    def test_events_published_only_by_outermost_unit(self, ledger, dai):
        received = []
        ledger.on_event(received.append)

        with ledger.unit_of_work():
            with ledger.unit_of_work():
                ledger.emit("inner")
            assert received == []
            ledger.emit("outer")

        assert received == ["inner", "outer"]

    def test_caught_inner_failure_keeps_outer_changes(self, ledger, dai):
        with ledger.unit_of_work():
            dai.transfer("alice", "bob", Decimal("10"))
            try:
                with ledger.unit_of_work():
                    dai.transfer("alice", "carol", Decimal("10"))
                    ledger.emit("inner")
                    raise RuntimeError("inner failure")
            except RuntimeError:
                pass
            ledger.emit("outer")

        assert dai.balance_of("bob") == Decimal("10")
        assert dai.balance_of("carol") == 0
        assert ledger.events == ["outer"]

    def test_timestamp_frozen_inside_unit(self):
        ticks = iter([100, 200, 300])
        ledger = Ledger(clock=lambda: next(ticks))

        with ledger.unit_of_work():
            assert ledger.in_unit_of_work
            first = ledger.timestamp()
            second = ledger.timestamp()

        assert first == second == 100
        assert ledger.timestamp() == 200
        assert not ledger.in_unit_of_work

    def test_timestamp_is_whole_seconds(self, ledger):
        assert ledger.timestamp() == 1_700_000_000

    def test_callback_errors_do_not_propagate(self, ledger):
        def broken(event):
            raise RuntimeError("listener down")

        ledger.on_event(broken)
        ledger.emit("event")

        assert ledger.events == ["event"]

    def test_get_state(self, ledger, dai):
        state = ledger.get_state()

        assert state["DAI"]["total_supply"] == "100"
        assert state["DAI"]["balances"] == {"alice": "100"}
