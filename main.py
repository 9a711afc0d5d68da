"""
Flash Loan Arbitrage Executor - Main Entry Point

Wires a simulated deployment (ledger, principal and bridge assets, two
price venues, a credit facility) to the executor and serves its API:

- GET  /api/estimate   profitability estimate (public)
- POST /api/initiate   run the route (owner bearer token)
- GET  /api/state      route, balances, history
- GET  /metrics        Prometheus metrics
"""
import logging
import signal
import sys

import uvicorn

from api import token_service
from config import (
    BRIDGE_ASSET,
    OWNER_ADDRESS,
    PRINCIPAL_ASSET,
    SIM_FACILITY_LIQUIDITY,
    WEB_HOST,
    WEB_PORT,
)
from credit import CreditFacility
from dashboard import create_app
from engine import FlashArbitrageEngine, RouteConfig
from ledger import Ledger
from venues import create_simulated_venues

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s',
    datefmt='%H:%M:%S'
)
logger = logging.getLogger(__name__)

# Reduce noise from libraries
logging.getLogger('uvicorn.access').setLevel(logging.WARNING)


def create_simulated_deployment() -> FlashArbitrageEngine:
    """Executor wired to simulated collaborators"""
    ledger = Ledger()
    principal = ledger.create_asset(PRINCIPAL_ASSET)
    bridge = ledger.create_asset(BRIDGE_ASSET)

    venue_1, venue_2 = create_simulated_venues(ledger, principal, bridge)

    facility = CreditFacility(ledger)
    facility.add_liquidity(principal, SIM_FACILITY_LIQUIDITY)

    route = RouteConfig(
        principal_asset=principal,
        bridge_asset=bridge,
        venue_1=venue_1,
        venue_2=venue_2,
    )
    engine = FlashArbitrageEngine(ledger, facility, route)

    logger.info(f"Route: {principal.symbol} -> {bridge.symbol} on {venue_1.name}, back on {venue_2.name}")
    logger.info(f"Borrow amount: {route.borrow_amount} {principal.symbol}, fee {route.fee_bps} bps")
    return engine


def handle_sigint(sig, frame):
    """Handle Ctrl+C gracefully"""
    logger.info("Received SIGINT, shutting down...")
    sys.exit(0)


def main():
    """Main entry point"""
    signal.signal(signal.SIGINT, handle_sigint)

    engine = create_simulated_deployment()
    app = create_app(engine)

    token = token_service.create_access_token(OWNER_ADDRESS)
    logger.info("=" * 60)
    logger.info(f"Owner token ({OWNER_ADDRESS}): {token.access_token}")
    logger.info(f"API at http://localhost:{WEB_PORT}/api/estimate")
    logger.info(f"Prometheus metrics at http://localhost:{WEB_PORT}/metrics")
    logger.info("=" * 60)

    uvicorn.run(
        app,
        host=WEB_HOST,
        port=WEB_PORT,
        log_level="warning"
    )


if __name__ == "__main__":
    main()
