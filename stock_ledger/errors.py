"""Error taxonomy for the ledger engine."""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for ledger computation failures."""


class ReferenceNotFound(LedgerError):
    """A referenced broker, order or dividend does not exist."""

    def __init__(self, kind: str, identifier: object):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} {identifier!r} not found")


class InsufficientData(LedgerError):
    """A SELL has no BUY history to draw an average cost from.

    The ledger does not raise this; it degrades the SELL to a zero cost basis
    and logs the condition with this type's message.
    """

    def __init__(self, stock_code: str, quantity: int, trade_date: object):
        self.stock_code = stock_code
        self.quantity = quantity
        self.trade_date = trade_date
        super().__init__(
            f"SELL of {quantity} {stock_code} on {trade_date} has no BUY history; cost basis set to 0"
        )


class AllocationImpossible(LedgerError):
    """Rounding drift cannot be corrected without a negative quantity."""


class DividendAlreadyApplied(LedgerError):
    """The dividend has already been applied to its orders."""

    def __init__(self, dividend_id: object):
        self.dividend_id = dividend_id
        super().__init__(f"Dividend {dividend_id!r} has already been applied")


class DividendTransformIncomplete(LedgerError):
    """Persisting a dividend batch stopped partway through."""

    def __init__(self, adjusted: int, remaining: int, message: str | None = None):
        self.adjusted = adjusted
        self.remaining = remaining
        super().__init__(
            message or f"Dividend transform stopped after {adjusted} orders, {remaining} not adjusted"
        )


class RechainIncomplete(LedgerError):
    """A dividend was fully applied or reverted, but replaying later orders stopped.

    The dividend state is already persisted; a recalculation of the stock
    brings the ``pending`` orders up to date.
    """

    def __init__(self, stock_code: str, saved: int, pending: int):
        self.stock_code = stock_code
        self.saved = saved
        self.pending = pending
        super().__init__(
            f"Replay of {stock_code} stopped after {saved} orders, {pending} pending recalculation"
        )


__all__ = [
    "LedgerError",
    "ReferenceNotFound",
    "InsufficientData",
    "AllocationImpossible",
    "DividendAlreadyApplied",
    "DividendTransformIncomplete",
    "RechainIncomplete",
]
