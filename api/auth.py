"""
Bearer token management for the executor's HTTP surface.

A token only proves which identity is calling; whether that identity may
trigger the route is decided by the engine's owner check.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from jose import JWTError, jwt

from config import JWT_ALGORITHM, JWT_EXPIRY_HOURS, JWT_SECRET

from .models import Token, TokenData

logger = logging.getLogger(__name__)


class TokenService:
    """JWT token generation and validation"""

    def __init__(
        self,
        secret: str = JWT_SECRET,
        algorithm: str = JWT_ALGORITHM,
        expiry_hours: int = JWT_EXPIRY_HOURS,
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.expiry_hours = expiry_hours

    def create_access_token(
        self,
        subject: str,
        expires_delta: Optional[timedelta] = None
    ) -> Token:
        """Create JWT access token for an identity"""
        if expires_delta is None:
            expires_delta = timedelta(hours=self.expiry_hours)

        expire = datetime.utcnow() + expires_delta

        to_encode = {
            "sub": subject,
            "exp": expire,
        }

        access_token = jwt.encode(to_encode, self.secret, algorithm=self.algorithm)

        return Token(
            access_token=access_token,
            token_type="bearer",
            expires_in=int(expires_delta.total_seconds()),
            subject=subject,
        )

    def verify_token(self, token: str) -> Optional[TokenData]:
        """Verify and decode JWT token"""
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
            subject: str = payload.get("sub")
            exp = payload.get("exp")

            if subject is None:
                return None

            return TokenData(
                subject=subject,
                exp=datetime.fromtimestamp(exp) if exp else None,
            )
        except JWTError as e:
            logger.warning(f"JWT verification failed: {e}")
            return None


# Global token service instance
token_service = TokenService()
