"""Broker fee schedule lookup."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Protocol

from .errors import ReferenceNotFound
from .models import FeeSchedule


class FeeScheduleProvider(Protocol):
    """Read-only source of per-broker fee and tax rates."""

    async def lookup(self, company_id: int) -> FeeSchedule:
        ...


@dataclass
class StaticFeeScheduleProvider:
    """Serve fee schedules from a fixed mapping."""

    schedules: Dict[int, FeeSchedule] = field(default_factory=dict)

    async def lookup(self, company_id: int) -> FeeSchedule:
        if company_id not in self.schedules:
            raise ReferenceNotFound("Company", company_id)
        return self.schedules[company_id]


__all__ = ["FeeScheduleProvider", "StaticFeeScheduleProvider"]
