"""
Audit Models for Meluribook

Every significant ledger action is logged for audit purposes.
This provides:
1. Traceability from a transaction to its journal entry
2. Debugging information when a posting is rejected
3. A reconciliation trail for transactions whose posting failed

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
This is an operational log; it does not version postings.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Chart of accounts
    CHART_OF_ACCOUNTS_SEEDED = "chart_of_accounts_seeded"
    CHART_OF_ACCOUNTS_ALREADY_PRESENT = "chart_of_accounts_already_present"

    # Journal
    JOURNAL_ENTRY_POSTED = "journal_entry_posted"
    JOURNAL_ENTRY_REJECTED = "journal_entry_rejected"

    # Transactions
    TRANSACTION_RECORDED = "transaction_recorded"
    TRANSACTION_POSTED = "transaction_posted"
    TRANSACTION_POSTING_FAILED = "transaction_posting_failed"

    # Tax
    TAX_ESTIMATED = "tax_estimated"
    TAX_ESTIMATE_FAILED = "tax_estimate_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    business_id: Optional[str] = None
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'journal_entry', 'transaction')"
    )
    entity_id: Optional[str] = None

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all events in one transaction flow)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "business_id": self.business_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, business_id, entity_type,
         entity_id, correlation_id, description, details_json, error_code,
         error_message]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.business_id or "",
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_code or "",
            self.error_message or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.journal_entry_posted(entry, correlation_id)
        event = AuditEventBuilder.transaction_posting_failed(tx, error, correlation_id)
    """

    @staticmethod
    def chart_seeded(
        business_id: str,
        created_codes: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        if not created_codes:
            return AuditEvent(
                event_type=AuditEventType.CHART_OF_ACCOUNTS_ALREADY_PRESENT,
                business_id=business_id,
                entity_type="business",
                entity_id=business_id,
                correlation_id=correlation_id,
                description="Chart of accounts already present; nothing created",
            )
        return AuditEvent(
            event_type=AuditEventType.CHART_OF_ACCOUNTS_SEEDED,
            business_id=business_id,
            entity_type="business",
            entity_id=business_id,
            correlation_id=correlation_id,
            description=f"Seeded {len(created_codes)} default accounts",
            details={"codes": created_codes},
        )

    @staticmethod
    def journal_entry_posted(
        business_id: str,
        entry_id: UUID,
        total: str,
        line_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.JOURNAL_ENTRY_POSTED,
            business_id=business_id,
            entity_type="journal_entry",
            entity_id=str(entry_id),
            correlation_id=correlation_id,
            description=f"Journal entry posted: {line_count} lines totalling {total}",
            details={"total": total, "line_count": line_count},
        )

    @staticmethod
    def journal_entry_rejected(
        business_id: str,
        error_code: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.JOURNAL_ENTRY_REJECTED,
            severity=AuditSeverity.WARNING,
            business_id=business_id,
            entity_type="journal_entry",
            correlation_id=correlation_id,
            description=f"Journal entry rejected: {error_code}",
            error_code=error_code,
            error_message=error_message,
        )

    @staticmethod
    def transaction_recorded(
        business_id: str,
        transaction_id: UUID,
        transaction_type: str,
        amount: str,
        currency: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_RECORDED,
            business_id=business_id,
            entity_type="transaction",
            entity_id=str(transaction_id),
            correlation_id=correlation_id,
            description=f"{transaction_type} recorded: {currency} {amount}",
            details={
                "type": transaction_type,
                "amount": amount,
                "currency": currency,
            },
        )

    @staticmethod
    def transaction_posted(
        business_id: str,
        transaction_id: UUID,
        entry_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_POSTED,
            business_id=business_id,
            entity_type="transaction",
            entity_id=str(transaction_id),
            correlation_id=correlation_id,
            description="Transaction posted to the ledger",
            details={"journal_entry_id": str(entry_id)},
        )

    @staticmethod
    def transaction_posting_failed(
        business_id: str,
        transaction_id: UUID,
        error_code: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_POSTING_FAILED,
            severity=AuditSeverity.ERROR,
            business_id=business_id,
            entity_type="transaction",
            entity_id=str(transaction_id),
            correlation_id=correlation_id,
            description="Ledger posting failed; transaction marked for reconciliation",
            error_code=error_code,
            error_message=error_message,
        )

    @staticmethod
    def tax_estimated(
        business_id: str,
        transaction_id: UUID,
        country_code: str,
        results: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TAX_ESTIMATED,
            business_id=business_id,
            entity_type="transaction",
            entity_id=str(transaction_id),
            correlation_id=correlation_id,
            description=f"Tax estimated for {country_code}: {len(results)} lines",
            details={"country_code": country_code, "results": results},
        )

    @staticmethod
    def tax_estimate_failed(
        business_id: str,
        transaction_id: UUID,
        country_code: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TAX_ESTIMATE_FAILED,
            severity=AuditSeverity.WARNING,
            business_id=business_id,
            entity_type="transaction",
            entity_id=str(transaction_id),
            correlation_id=correlation_id,
            description=f"Tax estimate failed for {country_code}",
            error_message=error_message,
            details={"country_code": country_code},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
