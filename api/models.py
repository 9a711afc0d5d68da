"""
API data models using Pydantic.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field


class Token(BaseModel):
    """JWT token response"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds until expiration
    subject: str


class TokenData(BaseModel):
    """Data decoded from JWT token"""
    subject: Optional[str] = None
    exp: Optional[datetime] = None


class InitiateRequest(BaseModel):
    """Optional per-call notional; omitted means the configured borrow amount"""
    amount: Optional[Decimal] = Field(default=None, gt=0)


class EstimateResponse(BaseModel):
    """Simulated route outcome"""
    borrow_amount: Decimal
    quote1: Decimal
    quote2: Decimal
    fee: Decimal
    expected_profit: Decimal
    profitable: bool
    timestamp: datetime


class ExecutionResponse(BaseModel):
    """Committed route outcome"""
    success: bool
    message: str

    borrow_amount: Decimal
    premium: Decimal
    repayment: Decimal
    bridge_amount: Decimal
    principal_returned: Decimal
    profit: Decimal
    retained: Decimal
    timestamp: datetime

