"""
Audit Logger

DESIGN DECISION: Every significant ledger action is logged.
This provides:
1. Traceability from transaction to journal entry
2. Debugging capability when postings are rejected
3. A reconciliation trail for failed postings

The audit logger:
- Is async to not block main flow
- Gracefully handles storage failures (doesn't break posting if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from meluribook.models.audit import AuditEvent, AuditEventBuilder
from meluribook.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence), when configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_chart_seeded(
        self,
        business_id: str,
        created_codes: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log chart-of-accounts provisioning (including the no-op case)."""
        await self.log(AuditEventBuilder.chart_seeded(
            business_id=business_id,
            created_codes=created_codes,
            correlation_id=correlation_id,
        ))

    async def log_journal_entry_posted(
        self,
        business_id: str,
        entry_id: UUID,
        total: str,
        line_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.journal_entry_posted(
            business_id=business_id,
            entry_id=entry_id,
            total=total,
            line_count=line_count,
            correlation_id=correlation_id,
        ))

    async def log_journal_entry_rejected(
        self,
        business_id: str,
        error_code: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.journal_entry_rejected(
            business_id=business_id,
            error_code=error_code,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_transaction_recorded(
        self,
        business_id: str,
        transaction_id: UUID,
        transaction_type: str,
        amount: str,
        currency: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_recorded(
            business_id=business_id,
            transaction_id=transaction_id,
            transaction_type=transaction_type,
            amount=amount,
            currency=currency,
            correlation_id=correlation_id,
        ))

    async def log_transaction_posted(
        self,
        business_id: str,
        transaction_id: UUID,
        entry_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_posted(
            business_id=business_id,
            transaction_id=transaction_id,
            entry_id=entry_id,
            correlation_id=correlation_id,
        ))

    async def log_transaction_posting_failed(
        self,
        business_id: str,
        transaction_id: UUID,
        error_code: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_posting_failed(
            business_id=business_id,
            transaction_id=transaction_id,
            error_code=error_code,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_tax_estimated(
        self,
        business_id: str,
        transaction_id: UUID,
        country_code: str,
        results: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.tax_estimated(
            business_id=business_id,
            transaction_id=transaction_id,
            country_code=country_code,
            results=results,
            correlation_id=correlation_id,
        ))

    async def log_tax_estimate_failed(
        self,
        business_id: str,
        transaction_id: UUID,
        country_code: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.tax_estimate_failed(
            business_id=business_id,
            transaction_id=transaction_id,
            country_code=country_code,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., recording a transaction).
    Pass it through all subsequent operations.
    """
    return uuid4()
