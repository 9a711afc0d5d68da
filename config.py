"""Configuration for the Flash Loan Arbitrage Executor"""
import os
from decimal import Decimal

# ============================================================
# ROUTE
# ============================================================
# Principal asset is borrowed and repaid; bridge asset is held only
# between the two hops.
PRINCIPAL_ASSET = os.getenv("PRINCIPAL_ASSET", "DAI")
BRIDGE_ASSET = os.getenv("BRIDGE_ASSET", "WETH")

# Notional borrowed from the credit facility per execution
BORROW_AMOUNT = Decimal(os.getenv("BORROW_AMOUNT", "1000"))

# Credit facility premium in basis points (9 bps = 0.09%)
FLASH_LOAN_FEE_BPS = int(os.getenv("FLASH_LOAN_FEE_BPS", "9"))

# Minimum acceptable output per hop. 0 disables the floor and leaves the
# final profit check as the only guard.
MIN_OUTPUT_HOP_1 = Decimal(os.getenv("MIN_OUTPUT_HOP_1", "0"))
MIN_OUTPUT_HOP_2 = Decimal(os.getenv("MIN_OUTPUT_HOP_2", "0"))

# Seconds added to the execution time for the swap deadline
DEADLINE_BUFFER_SECONDS = int(os.getenv("DEADLINE_BUFFER_SECONDS", "0"))

# Executions kept in the in-memory history
HISTORY_LIMIT = 100

# ============================================================
# IDENTITIES
# ============================================================
OWNER_ADDRESS = os.getenv("OWNER_ADDRESS", "owner")
EXECUTOR_ADDRESS = os.getenv("EXECUTOR_ADDRESS", "flash-arbitrage")
CREDIT_FACILITY_ADDRESS = os.getenv("CREDIT_FACILITY_ADDRESS", "credit-facility")

# ============================================================
# SIMULATED DEPLOYMENT
# ============================================================
# Used by main.py when no real collaborators are wired in.
SIM_VENUE_1_PRICE = Decimal(os.getenv("SIM_VENUE_1_PRICE", "0.0004"))  # 1 DAI = 0.0004 WETH
SIM_VENUE_2_PRICE = Decimal(os.getenv("SIM_VENUE_2_PRICE", "2600"))    # 1 WETH = 2600 DAI
SIM_VENUE_LIQUIDITY = Decimal(os.getenv("SIM_VENUE_LIQUIDITY", "10000"))
SIM_FACILITY_LIQUIDITY = Decimal(os.getenv("SIM_FACILITY_LIQUIDITY", "1000000"))

# ============================================================
# AUTH
# ============================================================
JWT_SECRET = os.getenv("JWT_SECRET", "your-super-secret-key-change-me-in-production")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRY_HOURS = int(os.getenv("JWT_EXPIRY_HOURS", "24"))

# Web server settings
WEB_HOST = os.getenv("WEB_HOST", "0.0.0.0")
WEB_PORT = int(os.getenv("WEB_PORT", "8000"))
