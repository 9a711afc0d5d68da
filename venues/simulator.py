"""Fixed-rate simulated venue for tests and local runs"""
import logging
from decimal import Decimal
from typing import Dict, Tuple

from config import SIM_VENUE_LIQUIDITY, SIM_VENUE_1_PRICE, SIM_VENUE_2_PRICE
from errors import VenueError
from ledger import FungibleAsset, Ledger

from .base import BaseVenue

logger = logging.getLogger(__name__)


class SimulatedVenue(BaseVenue):
    """
    Venue that converts at a configured rate, independent of trade size.

    `set_price(asset_in, asset_out, price)` means one unit of `asset_in`
    buys `price` units of `asset_out`.
    """

    def __init__(self, name: str, ledger: Ledger, address: str = None):
        super().__init__(name, ledger, address)
        self.prices: Dict[Tuple[str, str], Decimal] = {}
        self.halted = False

    def set_price(self, asset_in: FungibleAsset, asset_out: FungibleAsset, price: Decimal):
        if price < 0:
            raise ValueError("Price must be non-negative")
        self.prices[(asset_in.symbol, asset_out.symbol)] = Decimal(price)
        logger.info(f"[{self.name}] 1 {asset_in.symbol} = {price} {asset_out.symbol}")

    def add_liquidity(self, asset: FungibleAsset, amount: Decimal):
        asset.mint(self.address, amount)

    def remove_liquidity(self, asset: FungibleAsset):
        """Drain the venue's holdings of `asset`"""
        asset.burn(self.address, asset.balance_of(self.address))

    def halt(self):
        """Reject every quote and swap until resumed"""
        self.halted = True

    def resume(self):
        self.halted = False

    def _get_amount_out(self, amount_in: Decimal, asset_in: FungibleAsset, asset_out: FungibleAsset) -> Decimal:
        if self.halted:
            raise VenueError(f"[{self.name}] Market halted")
        price = self.prices.get((asset_in.symbol, asset_out.symbol))
        if price is None:
            raise VenueError(f"[{self.name}] No market for {asset_in.symbol}/{asset_out.symbol}")
        return amount_in * price


def create_simulated_venues(
    ledger: Ledger,
    principal: FungibleAsset,
    bridge: FungibleAsset,
) -> Tuple[SimulatedVenue, SimulatedVenue]:
    """
    Create two venues whose configured prices disagree, seeded with
    liquidity in both assets.
    """
    venue_1 = SimulatedVenue("Venue1-SIM", ledger)
    venue_2 = SimulatedVenue("Venue2-SIM", ledger)

    venue_1.set_price(principal, bridge, SIM_VENUE_1_PRICE)
    venue_2.set_price(bridge, principal, SIM_VENUE_2_PRICE)

    for venue in (venue_1, venue_2):
        venue.add_liquidity(principal, SIM_VENUE_LIQUIDITY)
        venue.add_liquidity(bridge, SIM_VENUE_LIQUIDITY)

    return venue_1, venue_2
