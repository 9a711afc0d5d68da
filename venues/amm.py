"""
Constant-product (x * y = k) venue

Reserves are the venue's own ledger balances, so the price moves with
every swap the same way an AMM pool does.
"""
import logging
from decimal import Decimal
from typing import Optional

from ledger import FungibleAsset, Ledger

from .base import BaseVenue

logger = logging.getLogger(__name__)

DEFAULT_FEE_TIER = Decimal("0.003")  # 0.3%


class ConstantProductVenue(BaseVenue):
    """Two-asset liquidity pool priced by the constant product formula"""

    def __init__(
        self,
        name: str,
        ledger: Ledger,
        fee_tier: Decimal = DEFAULT_FEE_TIER,
        address: Optional[str] = None,
    ):
        super().__init__(name, ledger, address)
        if not 0 <= fee_tier < 1:
            raise ValueError("Fee tier must be in [0, 1)")
        self.fee_tier = Decimal(fee_tier)

    def add_liquidity(self, asset: FungibleAsset, amount: Decimal):
        asset.mint(self.address, amount)

    def get_price(self, asset_in: FungibleAsset, asset_out: FungibleAsset) -> Decimal:
        """Spot price of `asset_in` in units of `asset_out`"""
        reserve_in = self.liquidity(asset_in)
        if reserve_in == 0:
            return Decimal("0")
        return self.liquidity(asset_out) / reserve_in

    def get_price_impact(self, amount_in: Decimal, asset_in: FungibleAsset) -> Decimal:
        """Simplified price impact: trade size / input reserve"""
        reserve_in = self.liquidity(asset_in)
        if reserve_in == 0:
            return Decimal("1")
        return amount_in / reserve_in

    def _get_amount_out(self, amount_in: Decimal, asset_in: FungibleAsset, asset_out: FungibleAsset) -> Decimal:
        reserve_in = self.liquidity(asset_in)
        reserve_out = self.liquidity(asset_out)
        if reserve_in == 0 or reserve_out == 0:
            return Decimal("0")

        input_with_fee = amount_in * (1 - self.fee_tier)

        # (x + dx) * (y - dy) = x * y  =>  dy = y * dx / (x + dx)
        return (reserve_out * input_with_fee) / (reserve_in + input_with_fee)
