"""Flash loan arbitrage execution engine"""
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterator, List, Optional

from config import (
    BORROW_AMOUNT,
    DEADLINE_BUFFER_SECONDS,
    EXECUTOR_ADDRESS,
    FLASH_LOAN_FEE_BPS,
    HISTORY_LIMIT,
    MIN_OUTPUT_HOP_1,
    MIN_OUTPUT_HOP_2,
    OWNER_ADDRESS,
)
from credit import BPS_DENOMINATOR, CreditFacility, FlashLoanReceiver
from engine_metrics import MetricsEngine
from errors import ApprovalFailed, ArbitrageError, Unauthorized, Unprofitable, UnsupportedAsset
from ledger import FungibleAsset, Ledger
from venues.base import BaseVenue

logger = logging.getLogger(__name__)


@dataclass
class RouteConfig:
    """
    The two-hop route: principal -> bridge on venue_1, bridge -> principal on venue_2.

    `net_of_premium` makes the profit check require the round trip to also
    cover the facility premium, so a thin margin fails as Unprofitable
    instead of at the facility's repayment pull.
    """
    principal_asset: FungibleAsset
    bridge_asset: FungibleAsset
    venue_1: BaseVenue
    venue_2: BaseVenue
    borrow_amount: Decimal = BORROW_AMOUNT
    fee_bps: int = FLASH_LOAN_FEE_BPS
    min_output_hop1: Decimal = MIN_OUTPUT_HOP_1
    min_output_hop2: Decimal = MIN_OUTPUT_HOP_2
    deadline_buffer_seconds: int = DEADLINE_BUFFER_SECONDS
    net_of_premium: bool = True

    def __post_init__(self):
        if self.principal_asset is self.bridge_asset:
            raise ValueError("Principal and bridge assets must differ")
        if self.borrow_amount <= 0:
            raise ValueError("Borrow amount must be positive")
        if self.fee_bps < 0:
            raise ValueError("Fee must be non-negative")
        if self.min_output_hop1 < 0 or self.min_output_hop2 < 0:
            raise ValueError("Minimum outputs must be non-negative")
        if self.deadline_buffer_seconds < 0:
            raise ValueError("Deadline buffer must be non-negative")

    def to_dict(self) -> dict:
        return {
            "principal_asset": self.principal_asset.symbol,
            "bridge_asset": self.bridge_asset.symbol,
            "venue_1": self.venue_1.name,
            "venue_2": self.venue_2.name,
            "borrow_amount": str(self.borrow_amount),
            "fee_bps": self.fee_bps,
            "min_output_hop1": str(self.min_output_hop1),
            "min_output_hop2": str(self.min_output_hop2),
            "deadline_buffer_seconds": self.deadline_buffer_seconds,
            "net_of_premium": self.net_of_premium,
        }


@dataclass
class SwapExecuted:
    """Emitted once per hop"""
    venue: str
    amount_in: Decimal
    amount_out: Decimal

    def to_dict(self) -> dict:
        return {
            "event": "SwapExecuted",
            "venue": self.venue,
            "amount_in": str(self.amount_in),
            "amount_out": str(self.amount_out),
        }


@dataclass
class ArbitrageExecuted:
    """Emitted once per successful route, after both hops"""
    profit: Decimal
    timestamp: int

    def to_dict(self) -> dict:
        return {
            "event": "ArbitrageExecuted",
            "profit": str(self.profit),
            "timestamp": self.timestamp,
        }


@dataclass
class ArbitrageEstimate:
    """Simulated outcome of the route; unpacks as (quote1, quote2, profitable)"""
    borrow_amount: Decimal
    quote1: Decimal
    quote2: Decimal
    fee: Decimal
    profitable: bool
    timestamp: int

    @property
    def expected_profit(self) -> Decimal:
        return self.quote2 - self.borrow_amount - self.fee

    def __iter__(self) -> Iterator:
        return iter((self.quote1, self.quote2, self.profitable))

    def to_dict(self) -> dict:
        return {
            "borrow_amount": str(self.borrow_amount),
            "quote1": str(self.quote1),
            "quote2": str(self.quote2),
            "fee": str(self.fee),
            "expected_profit": str(self.expected_profit),
            "profitable": self.profitable,
            "timestamp": datetime.fromtimestamp(self.timestamp).isoformat(),
        }


@dataclass
class ArbitrageExecution:
    """Committed result of one route"""
    borrow_amount: Decimal
    premium: Decimal
    bridge_amount: Decimal
    principal_returned: Decimal
    balance_before: Decimal
    balance_after: Decimal
    timestamp: int

    @property
    def profit(self) -> Decimal:
        return self.balance_after - self.balance_before

    @property
    def repayment(self) -> Decimal:
        return self.borrow_amount + self.premium

    @property
    def retained(self) -> Decimal:
        return self.balance_after - self.repayment

    def to_dict(self) -> dict:
        return {
            "borrow_amount": str(self.borrow_amount),
            "premium": str(self.premium),
            "repayment": str(self.repayment),
            "bridge_amount": str(self.bridge_amount),
            "principal_returned": str(self.principal_returned),
            "profit": str(self.profit),
            "retained": str(self.retained),
            "timestamp": datetime.fromtimestamp(self.timestamp).isoformat(),
        }


class FlashArbitrageEngine(FlashLoanReceiver):
    """
    Borrows the principal asset, round-trips it through two venues and
    repays the facility, keeping the surplus.

    The whole sequence runs inside one ledger unit of work: if any hop,
    the profit check or the repayment fails, nothing changes.
    """

    def __init__(
        self,
        ledger: Ledger,
        facility: CreditFacility,
        route: RouteConfig,
        owner: str = OWNER_ADDRESS,
        address: str = EXECUTOR_ADDRESS,
        metrics: Optional[MetricsEngine] = None,
    ):
        super().__init__(address, facility)
        self.ledger = ledger
        self.route = route
        self.owner = owner
        self.metrics = metrics or MetricsEngine()

        self.last_estimate: Optional[ArbitrageEstimate] = None
        # Committed executions (last HISTORY_LIMIT)
        self.history: List[ArbitrageExecution] = []
        self._on_execution_callbacks: List[Callable] = []
        self._pending_execution: Optional[ArbitrageExecution] = None
        # Set only while initiate() has a loan open
        self._in_progress = False

        for asset in (route.principal_asset, route.bridge_asset):
            if ledger.assets.get(asset.symbol) is not asset:
                raise ValueError(f"Route asset {asset.symbol} is not registered on the ledger")

        if route.fee_bps != facility.premium_bps:
            logger.warning(
                f"Route fee {route.fee_bps} bps differs from facility premium "
                f"{facility.premium_bps} bps; estimates will not match execution"
            )

    def on_execution(self, callback: Callable):
        """Register callback for committed executions"""
        self._on_execution_callbacks.append(callback)

    # Trigger

    def initiate(self, caller: str, amount: Optional[Decimal] = None) -> ArbitrageExecution:
        """
        Run the route once. Owner only.

        Returns after the loan is repaid; raises if anything failed, in
        which case no balance moved and no event was published.
        """
        if caller != self.owner:
            self.metrics.record_failure(Unauthorized.reason)
            logger.warning(f"Rejected initiate() from {caller}: only owner")
            raise Unauthorized("Only owner")

        amount = self._resolve_amount(amount)

        self._pending_execution = None
        self._in_progress = True
        try:
            with self.ledger.unit_of_work():
                self.facility.advance(
                    self,
                    self.route.principal_asset,
                    amount,
                    aux_data=b"",
                    referral_code=0,
                    caller=self.address,
                )
        except ArbitrageError as e:
            self.metrics.record_failure(e.reason)
            logger.warning(f"Arbitrage aborted ({e.reason}): {e.message}")
            raise
        finally:
            self._in_progress = False
            execution, self._pending_execution = self._pending_execution, None

        self._record_execution(execution)
        return execution

    # Execution callback

    def execute_operation(
        self,
        asset: FungibleAsset,
        amount: Decimal,
        premium: Decimal,
        initiator: str,
        aux_data: bytes,
    ) -> bool:
        principal = self.route.principal_asset
        if asset is not principal:
            raise UnsupportedAsset(f"Route borrows {principal.symbol}, got {asset.symbol}")
        if not self._in_progress:
            raise Unauthorized("Loan callback outside initiate()")

        balance_before = principal.balance_of(self.address)

        bridge_amount = self._swap(
            self.route.venue_1, principal, self.route.bridge_asset, amount,
            self.route.min_output_hop1,
        )
        # The whole bridge output goes into the second hop
        principal_returned = self._swap(
            self.route.venue_2, self.route.bridge_asset, principal, bridge_amount,
            self.route.min_output_hop2,
        )

        balance_after = principal.balance_of(self.address)
        threshold = balance_before + premium if self.route.net_of_premium else balance_before
        if balance_after <= threshold:
            raise Unprofitable(
                f"No profit made: {balance_before} -> {balance_after} {principal.symbol}"
                f" (premium {premium})"
            )

        timestamp = self.ledger.timestamp()
        self.ledger.emit(ArbitrageExecuted(profit=balance_after - balance_before, timestamp=timestamp))

        owed = amount + premium
        if not principal.approve(self.address, self.facility.address, owed):
            raise ApprovalFailed(f"{principal.symbol} refused repayment approval of {owed}")

        self._pending_execution = ArbitrageExecution(
            borrow_amount=amount,
            premium=premium,
            bridge_amount=bridge_amount,
            principal_returned=principal_returned,
            balance_before=balance_before,
            balance_after=balance_after,
            timestamp=timestamp,
        )
        return True

    # Swap helper

    def _swap(
        self,
        venue: BaseVenue,
        asset_in: FungibleAsset,
        asset_out: FungibleAsset,
        amount_in: Decimal,
        min_amount_out: Decimal = Decimal("0"),
    ) -> Decimal:
        """Exact-input swap with an exact, single-use allowance"""
        if not asset_in.approve(self.address, venue.address, amount_in):
            raise ApprovalFailed(f"{asset_in.symbol} refused approval of {amount_in} to {venue.name}")

        deadline = self.ledger.timestamp() + self.route.deadline_buffer_seconds
        amounts = venue.swap_exact_input(
            amount_in,
            min_amount_out,
            [asset_in, asset_out],
            recipient=self.address,
            deadline=deadline,
            caller=self.address,
        )
        amount_out = amounts[-1]

        # Never leave an allowance standing
        if asset_in.allowance(self.address, venue.address) > 0:
            asset_in.approve(self.address, venue.address, Decimal("0"))

        self.ledger.emit(SwapExecuted(venue=venue.address, amount_in=amount_in, amount_out=amount_out))
        return amount_out

    # Profitability estimator

    def estimate(self, amount: Optional[Decimal] = None) -> ArbitrageEstimate:
        """Quote the route on both venues without moving funds"""
        amount = self._resolve_amount(amount)
        principal, bridge = self.route.principal_asset, self.route.bridge_asset

        quote1 = self.route.venue_1.quote(amount, [principal, bridge])[-1]
        quote2 = self.route.venue_2.quote(quote1, [bridge, principal])[-1]
        fee = amount * self.route.fee_bps / BPS_DENOMINATOR

        estimate = ArbitrageEstimate(
            borrow_amount=amount,
            quote1=quote1,
            quote2=quote2,
            fee=fee,
            profitable=quote2 > amount + fee,
            timestamp=self.ledger.timestamp(),
        )
        self.last_estimate = estimate
        self.metrics.record_estimate(estimate.profitable, estimate.expected_profit)
        return estimate

    def _resolve_amount(self, amount: Optional[Decimal]) -> Decimal:
        amount = self.route.borrow_amount if amount is None else Decimal(amount)
        if amount <= 0:
            raise ValueError("Borrow amount must be positive")
        return amount

    def _record_execution(self, execution: ArbitrageExecution):
        self.metrics.record_swap(self.route.venue_1.name)
        self.metrics.record_swap(self.route.venue_2.name)
        self.metrics.record_success(execution.retained)

        logger.info(
            f"ARBITRAGE: {execution.borrow_amount} {self.route.principal_asset.symbol} "
            f"via {self.route.venue_1.name} -> {self.route.venue_2.name} | "
            f"profit {execution.profit}, repaid {execution.repayment}, retained {execution.retained}"
        )

        self.history.append(execution)
        if len(self.history) > HISTORY_LIMIT:
            self.history.pop(0)

        for callback in self._on_execution_callbacks:
            try:
                callback(execution)
            except Exception as e:
                logger.error(f"Execution callback error: {e}")

    def get_state(self) -> dict:
        """Get current state for API/dashboard"""
        principal, bridge = self.route.principal_asset, self.route.bridge_asset
        return {
            "address": self.address,
            "owner": self.owner,
            "route": self.route.to_dict(),
            "balances": {
                principal.symbol: str(principal.balance_of(self.address)),
                bridge.symbol: str(bridge.balance_of(self.address)),
            },
            "facility": self.facility.to_dict(),
            "last_estimate": self.last_estimate.to_dict() if self.last_estimate else None,
            "history": [e.to_dict() for e in self.history[-20:]],  # Last 20
        }
