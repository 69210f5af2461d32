"""Errors raised before a debate starts. Nothing after the precondition check escapes the engine."""

from decimal import Decimal


class DebateError(Exception):
    """Base class for debate arena errors."""


class PreconditionError(DebateError, ValueError):
    """A debate was rejected before any agent was invoked."""


class InvalidTopicError(PreconditionError):
    def __init__(self, topic: object) -> None:
        self.topic = topic
        super().__init__("Debate topic must be a non-empty string")


class InsufficientBalanceError(PreconditionError):
    def __init__(self, balance: Decimal, required: Decimal, asset: str = "USDC") -> None:
        self.balance = balance
        self.required = required
        self.asset = asset
        super().__init__(f"Insufficient balance. Need at least {required} {asset}, have {balance} {asset}")
