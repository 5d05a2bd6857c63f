"""Proportional integer allocation with exact-sum correction."""

from __future__ import annotations

from decimal import Decimal
from typing import Sequence

from .errors import AllocationImpossible
from .money import round_half_up


def allocate_largest_remainder(quantities: Sequence[int], target: int) -> list[int]:
    """Split ``target`` across buckets in proportion to ``quantities``.

    Each bucket first gets ``round(target * quantity / total)``. Any drift
    from ``target`` is then corrected one unit at a time, walking the
    buckets round-robin in their given order and never taking a bucket
    below zero. The result always sums to ``target``.
    """

    if not quantities:
        return []
    if target < 0:
        raise AllocationImpossible(f"Cannot allocate a negative total of {target}")
    total = sum(quantities)
    if total <= 0:
        raise AllocationImpossible("Cannot allocate against a zero total quantity")

    allocated = [
        round_half_up(Decimal(target) * Decimal(quantity) / Decimal(total)) for quantity in quantities
    ]
    difference = target - sum(allocated)

    while difference != 0:
        progressed = False
        for index in range(len(allocated)):
            if difference == 0:
                break
            if difference > 0:
                allocated[index] += 1
                difference -= 1
                progressed = True
            elif allocated[index] > 0:
                allocated[index] -= 1
                difference += 1
                progressed = True
        if not progressed:
            raise AllocationImpossible(
                f"No bucket has headroom to remove {-difference} more units"
            )
    return allocated


__all__ = ["allocate_largest_remainder"]
