from __future__ import annotations


class InvalidFeeTierError(ValueError):
    def __init__(self, fee_tier: int, known: list[int] | None = None):
        self.fee_tier = fee_tier
        expected = f"; expected one of {known}" if known else ""
        super().__init__(f"Unknown fee tier {fee_tier}{expected}")


class MalformedPriceStateError(ValueError):
    """A sqrt price that must be positive was zero or negative."""


class SlippageError(ValueError):
    """Invalid input to a minimum-received / maximum-sent computation."""


class InvalidPathError(ValueError):
    """Empty, discontinuous or over-long swap path."""


class QuoteCallError(RuntimeError):
    def __init__(self, method: str, reason: str):
        self.method = method
        self.reason = reason
        super().__init__(f"{method} failed: {reason}")
