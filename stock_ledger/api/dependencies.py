"""Shared FastAPI dependencies for the ledger API."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import LedgerSettings
from ..errors import (
    AllocationImpossible,
    DividendAlreadyApplied,
    DividendTransformIncomplete,
    LedgerError,
    RechainIncomplete,
    ReferenceNotFound,
)
from ..orchestrator import LedgerOrchestrator
from .store import SqlFeeScheduleProvider, SqlRecordStore

PRIVILEGED_ROLE = "admin"


@dataclass
class RequestContext:
    user_id: str
    role: str | None = None

    @property
    def is_privileged(self) -> bool:
        return self.role == PRIVILEGED_ROLE

    @property
    def owner_scope(self) -> str | None:
        """Owner filter for lookups; ``None`` lets privileged callers see every owner."""

        return None if self.is_privileged else self.user_id


def get_request_context(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> RequestContext:
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing user context")
    return RequestContext(user_id=x_user_id, role=x_user_role.lower() if x_user_role else None)


def build_orchestrator(session: AsyncSession, settings: LedgerSettings) -> LedgerOrchestrator:
    return LedgerOrchestrator(
        SqlRecordStore(session),
        SqlFeeScheduleProvider(session),
        rechain_after_dividend=settings.rechain_after_dividend,
    )


def http_error(exc: Exception, *, reference_status: int = status.HTTP_404_NOT_FOUND) -> HTTPException:
    """Translate a ledger or validation failure into an HTTP error."""

    if isinstance(exc, ReferenceNotFound):
        return HTTPException(status_code=reference_status, detail=str(exc))
    if isinstance(exc, DividendAlreadyApplied):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, AllocationImpossible):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    if isinstance(exc, DividendTransformIncomplete):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": str(exc), "adjusted": exc.adjusted, "remaining": exc.remaining},
        )
    if isinstance(exc, RechainIncomplete):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": str(exc), "saved": exc.saved, "pending": exc.pending},
        )
    if isinstance(exc, (LedgerError, ValueError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    raise TypeError(f"Unhandled error type {type(exc).__name__}") from exc


__all__ = ["RequestContext", "get_request_context", "build_orchestrator", "http_error", "PRIVILEGED_ROLE"]
