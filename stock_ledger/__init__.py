"""Ledger computation engine for intraday and long-term equity trades."""

from .dividends import apply_dividend, revert_dividend, split_ratio
from .ledger import PositionLedger
from .models import (
    Dividend,
    DividendType,
    FeeSchedule,
    LedgerKey,
    LongTermOrder,
    OrderType,
    PositionSummary,
    T0Order,
    TransformResult,
)
from .orchestrator import LedgerOrchestrator
from .t0 import compute_t0

__all__ = [
    "Dividend",
    "DividendType",
    "FeeSchedule",
    "LedgerKey",
    "LedgerOrchestrator",
    "LongTermOrder",
    "OrderType",
    "PositionLedger",
    "PositionSummary",
    "T0Order",
    "TransformResult",
    "apply_dividend",
    "compute_t0",
    "revert_dividend",
    "split_ratio",
]
