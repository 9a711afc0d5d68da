"""Failure reasons raised by the arbitrage executor and its collaborators"""


class ArbitrageError(Exception):
    """Base class for every aborted call. `reason` is the short failure code."""

    reason = "ArbitrageError"

    def __init__(self, message: str = ""):
        super().__init__(message or self.reason)
        self.message = message or self.reason

    def to_dict(self) -> dict:
        return {"reason": self.reason, "message": self.message}


# Executor failures

class Unauthorized(ArbitrageError):
    reason = "Unauthorized"


class ApprovalFailed(ArbitrageError):
    reason = "ApprovalFailed"


class Unprofitable(ArbitrageError):
    reason = "Unprofitable"


class UnsupportedAsset(ArbitrageError):
    reason = "UnsupportedAsset"


# Credit facility failures

class InsufficientRepayment(ArbitrageError):
    reason = "InsufficientRepayment"


class InsufficientLiquidity(ArbitrageError):
    reason = "InsufficientLiquidity"


class CallbackFailed(ArbitrageError):
    reason = "CallbackFailed"


# Asset failures

class InsufficientBalance(ArbitrageError):
    reason = "InsufficientBalance"


class InsufficientAllowance(ArbitrageError):
    reason = "InsufficientAllowance"


# Venue failures

class VenueError(ArbitrageError):
    reason = "VenueError"


class DeadlineExpired(VenueError):
    reason = "DeadlineExpired"


class SlippageExceeded(VenueError):
    reason = "SlippageExceeded"
