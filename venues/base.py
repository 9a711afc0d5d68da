"""Base price venue"""
import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from errors import DeadlineExpired, SlippageExceeded, VenueError
from ledger import FungibleAsset, Ledger

logger = logging.getLogger(__name__)


class BaseVenue(ABC):
    """
    Base class for price venues.

    A venue quotes and executes exact-input swaps along a two-asset path.
    Its liquidity is whatever it holds on the shared ledger.
    """

    def __init__(self, name: str, ledger: Ledger, address: Optional[str] = None):
        self.name = name
        self.ledger = ledger
        self.address = address or f"venue:{name.lower()}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name})"

    @abstractmethod
    def _get_amount_out(self, amount_in: Decimal, asset_in: FungibleAsset, asset_out: FungibleAsset) -> Decimal:
        """Output for an exact input - venue specific"""
        pass

    def liquidity(self, asset: FungibleAsset) -> Decimal:
        """Units of `asset` the venue can pay out"""
        return asset.balance_of(self.address)

    def quote(self, amount_in: Decimal, path: Sequence[FungibleAsset]) -> List[Decimal]:
        """Simulate a swap; returns amounts keyed by path position"""
        asset_in, asset_out = self._resolve_path(path)
        return [amount_in, self._get_amount_out(amount_in, asset_in, asset_out)]

    def swap_exact_input(
        self,
        amount_in: Decimal,
        min_amount_out: Decimal,
        path: Sequence[FungibleAsset],
        recipient: str,
        deadline: int,
        caller: str,
    ) -> List[Decimal]:
        """
        Execute a swap of exactly `amount_in`.

        Pulls the input from `caller` (needs an allowance for this venue)
        and pays the output to `recipient`.
        """
        asset_in, asset_out = self._resolve_path(path)
        if amount_in <= 0:
            raise VenueError(f"[{self.name}] Swap amount must be positive")
        if deadline < self.ledger.timestamp():
            raise DeadlineExpired(f"[{self.name}] Deadline {deadline} has passed")

        with self.ledger.unit_of_work():
            amount_out = self._get_amount_out(amount_in, asset_in, asset_out)
            if amount_out < min_amount_out:
                raise SlippageExceeded(
                    f"[{self.name}] Output {amount_out} {asset_out.symbol} below minimum {min_amount_out}"
                )
            if self.liquidity(asset_out) < amount_out:
                raise VenueError(
                    f"[{self.name}] Insufficient {asset_out.symbol} liquidity for {amount_out}"
                )

            asset_in.transfer_from(self.address, caller, self.address, amount_in)
            asset_out.transfer(self.address, recipient, amount_out)

        logger.debug(
            f"[{self.name}] Swapped {amount_in} {asset_in.symbol} -> {amount_out} {asset_out.symbol}"
        )
        return [amount_in, amount_out]

    def _resolve_path(self, path: Sequence[FungibleAsset]) -> Tuple[FungibleAsset, FungibleAsset]:
        if len(path) != 2:
            raise VenueError(f"[{self.name}] Only direct two-asset paths are supported")
        asset_in, asset_out = path
        if asset_in is asset_out:
            raise VenueError(f"[{self.name}] Path must use two different assets")
        return asset_in, asset_out
