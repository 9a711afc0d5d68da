"""
Pytest configuration and fixtures for the arbitrage executor tests.
"""

from decimal import Decimal
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from api import token_service
from credit import CreditFacility
from dashboard import create_app
from engine import FlashArbitrageEngine, RouteConfig
from engine_metrics import MetricsEngine
from ledger import Ledger
from venues import SimulatedVenue

OWNER = "owner"
OTHER_ACCOUNT = "other-account"

INITIAL_LIQUIDITY = Decimal("10000")
FLASH_LOAN_AMOUNT = Decimal("1000")
FACILITY_LIQUIDITY = Decimal("1000000")
FIXED_TIME = 1_700_000_000

# 1 DAI = 0.0004 WETH on venue 1
VENUE_1_PRICE = Decimal("0.0004")
# 0.4 WETH -> 2600 DAI on venue 2
PROFITABLE_PRICE = Decimal("6500")
# 0.4 WETH -> 1000.5 DAI on venue 2, short of 1000 + 0.9 premium
UNPROFITABLE_PRICE = Decimal("2501.25")


@pytest.fixture
def ledger() -> Ledger:
    """Fresh ledger with a frozen clock"""
    return Ledger(clock=lambda: FIXED_TIME)


@pytest.fixture
def dai(ledger: Ledger):
    return ledger.create_asset("DAI")


@pytest.fixture
def weth(ledger: Ledger):
    return ledger.create_asset("WETH")


@pytest.fixture
def venue_1(ledger: Ledger, dai, weth) -> SimulatedVenue:
    venue = SimulatedVenue("Uniswap-SIM", ledger)
    venue.add_liquidity(dai, INITIAL_LIQUIDITY)
    venue.add_liquidity(weth, INITIAL_LIQUIDITY)
    venue.set_price(dai, weth, VENUE_1_PRICE)
    return venue


@pytest.fixture
def venue_2(ledger: Ledger, dai, weth) -> SimulatedVenue:
    venue = SimulatedVenue("Sushiswap-SIM", ledger)
    venue.add_liquidity(dai, INITIAL_LIQUIDITY)
    venue.add_liquidity(weth, INITIAL_LIQUIDITY)
    venue.set_price(weth, dai, PROFITABLE_PRICE)
    return venue


@pytest.fixture
def facility(ledger: Ledger, dai) -> CreditFacility:
    facility = CreditFacility(ledger, address="credit-facility", premium_bps=9)
    facility.add_liquidity(dai, FACILITY_LIQUIDITY)
    return facility


@pytest.fixture
def route(dai, weth, venue_1, venue_2) -> RouteConfig:
    return RouteConfig(
        principal_asset=dai,
        bridge_asset=weth,
        venue_1=venue_1,
        venue_2=venue_2,
        borrow_amount=FLASH_LOAN_AMOUNT,
        fee_bps=9,
    )


@pytest.fixture
def engine(ledger: Ledger, facility: CreditFacility, route: RouteConfig) -> FlashArbitrageEngine:
    """Executor owned by OWNER, with its own metrics registry"""
    return FlashArbitrageEngine(
        ledger,
        facility,
        route,
        owner=OWNER,
        address="flash-arbitrage",
        metrics=MetricsEngine(),
    )


@pytest.fixture
def client(engine: FlashArbitrageEngine) -> Generator[TestClient, None, None]:
    """Synchronous test client bound to the engine fixture"""
    with TestClient(create_app(engine)) as c:
        yield c


@pytest.fixture
def owner_headers():
    token = token_service.create_access_token(OWNER)
    return {"Authorization": f"Bearer {token.access_token}"}


@pytest.fixture
def other_headers():
    token = token_service.create_access_token(OTHER_ACCOUNT)
    return {"Authorization": f"Bearer {token.access_token}"}


def holdings(ledger: Ledger) -> dict:
    """Every non-zero balance and allowance on the ledger"""
    return {symbol: asset.snapshot() for symbol, asset in ledger.assets.items()}
