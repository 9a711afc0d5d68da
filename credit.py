"""
Credit facility (flash loan provider)

Advances capital to a borrower, hands control to the borrower's callback
and pulls back principal + premium, all inside one unit of work. If any
step fails the advance itself is discarded.
"""

import logging
from abc import ABC, abstractmethod
from decimal import Decimal

from config import CREDIT_FACILITY_ADDRESS, FLASH_LOAN_FEE_BPS
from errors import (
    CallbackFailed,
    InsufficientAllowance,
    InsufficientBalance,
    InsufficientLiquidity,
    InsufficientRepayment,
    Unauthorized,
)
from ledger import FungibleAsset, Ledger

logger = logging.getLogger(__name__)

BPS_DENOMINATOR = Decimal("10000")


class FlashLoanReceiver(ABC):
    """
    Base class for borrowers.

    Only the configured facility may deliver the callback, and only for a
    loan this receiver initiated itself.
    """

    def __init__(self, address: str, facility: "CreditFacility"):
        self.address = address
        self.facility = facility

    def on_loan_advanced(
        self,
        asset: FungibleAsset,
        amount: Decimal,
        premium: Decimal,
        initiator: str,
        aux_data: bytes,
        caller: str,
    ) -> bool:
        if caller != self.facility.address:
            raise Unauthorized(f"Loan callback from {caller}, expected {self.facility.address}")
        if initiator != self.address:
            raise Unauthorized(f"Loan initiated by {initiator}, not by {self.address}")
        return self.execute_operation(asset, amount, premium, initiator, aux_data)

    @abstractmethod
    def execute_operation(
        self,
        asset: FungibleAsset,
        amount: Decimal,
        premium: Decimal,
        initiator: str,
        aux_data: bytes,
    ) -> bool:
        """Use the advanced funds and approve repayment - borrower specific"""
        pass


class CreditFacility:
    """Flat-premium flash loan provider backed by its own ledger balances"""

    def __init__(
        self,
        ledger: Ledger,
        address: str = CREDIT_FACILITY_ADDRESS,
        premium_bps: int = FLASH_LOAN_FEE_BPS,
    ):
        if premium_bps < 0:
            raise ValueError("Premium must be non-negative")
        self.ledger = ledger
        self.address = address
        self.premium_bps = premium_bps

        self.loans_advanced = 0
        self.premiums_earned = Decimal("0")

    def premium_for(self, amount: Decimal) -> Decimal:
        return amount * self.premium_bps / BPS_DENOMINATOR

    def available_liquidity(self, asset: FungibleAsset) -> Decimal:
        return asset.balance_of(self.address)

    def add_liquidity(self, asset: FungibleAsset, amount: Decimal):
        asset.mint(self.address, amount)

    def advance(
        self,
        borrower: FlashLoanReceiver,
        asset: FungibleAsset,
        amount: Decimal,
        aux_data: bytes = b"",
        referral_code: int = 0,
        *,
        caller: str,
    ) -> Decimal:
        """
        Lend `amount` of `asset` to `borrower` for the duration of its callback.

        `caller` is whoever requested the loan and is passed to the borrower
        as the initiator. The borrower must leave an allowance of
        amount + premium for this facility. Returns the premium collected.
        """
        if amount <= 0:
            raise ValueError("Loan amount must be positive")
        if self.available_liquidity(asset) < amount:
            raise InsufficientLiquidity(
                f"Facility holds {self.available_liquidity(asset)} {asset.symbol}, requested {amount}"
            )

        premium = self.premium_for(amount)
        owed = amount + premium

        with self.ledger.unit_of_work():
            asset.transfer(self.address, borrower.address, amount)

            result = borrower.on_loan_advanced(
                asset, amount, premium, initiator=caller, aux_data=aux_data, caller=self.address
            )
            if result is not True:
                raise CallbackFailed(f"Borrower {borrower.address} callback returned {result!r}")

            try:
                asset.transfer_from(self.address, borrower.address, self.address, owed)
            except (InsufficientAllowance, InsufficientBalance) as e:
                raise InsufficientRepayment(
                    f"Could not pull {owed} {asset.symbol} from {borrower.address}: {e.message}"
                ) from e

        self.loans_advanced += 1
        self.premiums_earned += premium
        logger.info(
            f"Flash loan settled: {amount} {asset.symbol} to {borrower.address}, "
            f"premium {premium} (referral {referral_code})"
        )
        return premium

    def to_dict(self) -> dict:
        return {
            "address": self.address,
            "premium_bps": self.premium_bps,
            "loans_advanced": self.loans_advanced,
            "premiums_earned": str(self.premiums_earned),
        }
