"""
Execution ledger

Holds fungible asset balances and allowances for every participant and
provides the all-or-nothing unit of work the arbitrage route runs inside:

- Snapshot of every registered asset on entry
- Full restore of balances and allowances when the unit raises
- Events buffered until the outermost unit commits
- A single execution timestamp for the whole unit (block-time semantics)
"""

import logging
import time
from collections import defaultdict
from contextlib import contextmanager
from decimal import Decimal
from typing import Callable, Dict, Iterator, List, Optional, Set, Tuple

from errors import InsufficientAllowance, InsufficientBalance

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _require_non_negative(amount: Decimal, what: str):
    if amount < 0:
        raise ValueError(f"{what} must be non-negative, got {amount}")


class FungibleAsset:
    """
    Balance / transfer / allowance surface of a fungible asset.

    Holders and spenders are identified by plain string addresses.
    """

    def __init__(self, symbol: str, decimals: int = 18, address: Optional[str] = None):
        self.symbol = symbol.upper()
        self.decimals = decimals
        self.address = address or f"asset:{self.symbol.lower()}"
        self._balances: Dict[str, Decimal] = defaultdict(Decimal)
        self._allowances: Dict[Tuple[str, str], Decimal] = {}
        # Spenders whose approvals this asset refuses
        self._blocked_spenders: Set[str] = set()

    def __repr__(self) -> str:
        return f"FungibleAsset({self.symbol})"

    @property
    def total_supply(self) -> Decimal:
        return sum(self._balances.values(), ZERO)

    def balance_of(self, holder: str) -> Decimal:
        return self._balances.get(holder, ZERO)

    def allowance(self, owner: str, spender: str) -> Decimal:
        return self._allowances.get((owner, spender), ZERO)

    def mint(self, holder: str, amount: Decimal):
        """Create new units for a holder (deployment / test seeding only)"""
        _require_non_negative(amount, "Mint amount")
        self._balances[holder] += amount

    def burn(self, holder: str, amount: Decimal):
        """Destroy units held by a holder"""
        _require_non_negative(amount, "Burn amount")
        self._debit(holder, amount)

    def transfer(self, sender: str, recipient: str, amount: Decimal) -> bool:
        """Move `amount` from sender to recipient"""
        _require_non_negative(amount, "Transfer amount")
        self._debit(sender, amount)
        self._balances[recipient] += amount
        return True

    def approve(self, owner: str, spender: str, amount: Decimal) -> bool:
        """
        Set the allowance `spender` may pull from `owner`.

        Returns False when the asset refuses the grant; the caller decides
        how to fail.
        """
        _require_non_negative(amount, "Allowance")
        if spender in self._blocked_spenders:
            logger.debug(f"[{self.symbol}] approval to {spender} refused")
            return False
        if amount == 0:
            self._allowances.pop((owner, spender), None)
        else:
            self._allowances[(owner, spender)] = amount
        return True

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: Decimal) -> bool:
        """Pull `amount` from owner to recipient using spender's allowance"""
        _require_non_negative(amount, "Transfer amount")
        allowed = self.allowance(owner, spender)
        if allowed < amount:
            raise InsufficientAllowance(
                f"{spender} may pull {allowed} {self.symbol} from {owner}, needs {amount}"
            )
        self._debit(owner, amount)
        self._balances[recipient] += amount
        remaining = allowed - amount
        if remaining == 0:
            self._allowances.pop((owner, spender), None)
        else:
            self._allowances[(owner, spender)] = remaining
        return True

    def block_spender(self, spender: str):
        """Refuse every future approval to `spender`"""
        self._blocked_spenders.add(spender)

    def unblock_spender(self, spender: str):
        self._blocked_spenders.discard(spender)

    def _debit(self, holder: str, amount: Decimal):
        balance = self.balance_of(holder)
        if balance < amount:
            raise InsufficientBalance(
                f"{holder} holds {balance} {self.symbol}, needs {amount}"
            )
        self._balances[holder] = balance - amount

    # Unit-of-work support

    def snapshot(self) -> Tuple[Dict[str, Decimal], Dict[Tuple[str, str], Decimal]]:
        return dict(self._balances), dict(self._allowances)

    def restore(self, snapshot: Tuple[Dict[str, Decimal], Dict[Tuple[str, str], Decimal]]):
        balances, allowances = snapshot
        self._balances = defaultdict(Decimal, balances)
        self._allowances = dict(allowances)


class Ledger:
    """
    Shared state of one execution environment.

    Every state change made by the executor, the credit facility and the
    venues goes through assets registered here, so a failing unit of work
    can put all of them back exactly as they were.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self.assets: Dict[str, FungibleAsset] = {}
        # Committed events, in emission order
        self.events: List = []
        self._pending: List = []
        self._depth = 0
        self._execution_timestamp: Optional[int] = None
        self._on_event_callbacks: List[Callable] = []

    def create_asset(self, symbol: str, decimals: int = 18) -> FungibleAsset:
        return self.register_asset(FungibleAsset(symbol, decimals))

    def register_asset(self, asset: FungibleAsset) -> FungibleAsset:
        if asset.symbol in self.assets:
            raise ValueError(f"Asset '{asset.symbol}' already registered")
        self.assets[asset.symbol] = asset
        return asset

    def get_asset(self, symbol: str) -> FungibleAsset:
        try:
            return self.assets[symbol.upper()]
        except KeyError:
            raise ValueError(f"Unknown asset '{symbol}'") from None

    def on_event(self, callback: Callable):
        """Register callback for committed events"""
        self._on_event_callbacks.append(callback)

    @property
    def in_unit_of_work(self) -> bool:
        return self._depth > 0

    def timestamp(self) -> int:
        """Execution time; frozen while a unit of work is open"""
        if self._execution_timestamp is not None:
            return self._execution_timestamp
        return int(self.clock())

    def emit(self, event):
        """Record an event; it becomes visible only once the unit commits"""
        if self._depth == 0:
            self._publish([event])
        else:
            self._pending.append(event)

    @contextmanager
    def unit_of_work(self) -> Iterator["Ledger"]:
        """
        All-or-nothing execution boundary.

        On any exception every registered asset is restored to its state at
        entry, events emitted inside the unit are dropped and the exception
        propagates. Units nest; only the outermost one publishes events.
        """
        snapshots = {symbol: asset.snapshot() for symbol, asset in self.assets.items()}
        mark = len(self._pending)
        if self._depth == 0:
            self._execution_timestamp = int(self.clock())
        self._depth += 1

        try:
            yield self
        except Exception as e:
            for symbol, snapshot in snapshots.items():
                self.assets[symbol].restore(snapshot)
            dropped = len(self._pending) - mark
            del self._pending[mark:]
            logger.debug(f"Unit of work rolled back ({type(e).__name__}), {dropped} events dropped")
            raise
        finally:
            self._depth -= 1
            if self._depth == 0:
                self._execution_timestamp = None

        if self._depth == 0:
            committed, self._pending = self._pending, []
            self._publish(committed)

    def _publish(self, events: List):
        self.events.extend(events)
        for event in events:
            for callback in self._on_event_callbacks:
                try:
                    callback(event)
                except Exception as e:
                    logger.error(f"Event callback error: {e}")

    def get_state(self) -> dict:
        """Balances per asset for API/dashboard"""
        return {
            symbol: {
                "total_supply": str(asset.total_supply),
                "balances": {
                    holder: str(balance)
                    for holder, balance in asset.snapshot()[0].items()
                    if balance != 0
                },
            }
            for symbol, asset in self.assets.items()
        }
