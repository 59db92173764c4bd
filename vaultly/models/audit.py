"""
Audit Models for Vaultly

Every mutation of the record stores is logged for audit purposes.
This provides:
1. Complete traceability of money movements
2. Debugging information when a cross-store flow fails halfway
3. The ability to reconstruct what happened to a balance

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Wallet transactions
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_REMOVED = "transaction_removed"
    CATEGORY_RENAMED = "category_renamed"
    SCHEDULED_PROCESSED = "scheduled_processed"

    # Earmarking
    GOAL_CONTRIBUTION = "goal_contribution"
    GOAL_WITHDRAWAL = "goal_withdrawal"
    FUND_DEPOSIT = "fund_deposit"
    FUND_WITHDRAWAL = "fund_withdrawal"

    # Credits
    CREDIT_PAYMENT = "credit_payment"
    CREDIT_PAID_OFF = "credit_paid_off"

    # Projects
    CAPITAL_INJECTED = "capital_injected"
    PROJECT_TRANSACTION_ADDED = "project_transaction_added"
    BUDGET_LINE_CREATED = "budget_line_created"

    # Failures
    VALIDATION_FAILED = "validation_failed"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    STORE_WRITE_FAILED = "store_write_failed"
    CONSISTENCY_GAP = "consistency_gap"
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

    Every store mutation creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what record is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Collection of the record (e.g., 'goals', 'credits')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the record this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., both writes of a credit payment)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.goal_contribution(goal_id, amount, correlation_id)
        await audit_logger.log(event)
    """

    @staticmethod
    def transaction_added(
        transaction_id: str,
        transaction_type: str,
        amount: float,
        category: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transactions",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"{transaction_type.capitalize()} of {amount:.2f} recorded in '{category}'",
            details={"type": transaction_type, "amount": amount, "category": category},
            is_user_action=True,
        )

    @staticmethod
    def transaction_removed(
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_REMOVED,
            entity_type="transactions",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description="Transaction removed",
            is_user_action=True,
        )

    @staticmethod
    def category_renamed(
        old_category: str,
        new_category: str,
        affected: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_RENAMED,
            entity_type="transactions",
            correlation_id=correlation_id,
            description=f"Category '{old_category}' renamed to '{new_category}'",
            details={"old": old_category, "new": new_category, "affected": affected},
            is_user_action=True,
        )

    @staticmethod
    def scheduled_processed(
        created: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SCHEDULED_PROCESSED,
            entity_type="scheduled",
            correlation_id=correlation_id,
            description=f"{len(created)} recurring transactions processed",
            details={"transaction_ids": created},
        )

    @staticmethod
    def savings_movement(
        event_type: AuditEventType,
        collection: str,
        record_id: str,
        amount: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        """Goal contribution/withdrawal or fund deposit/withdrawal."""
        return AuditEvent(
            event_type=event_type,
            entity_type=collection,
            entity_id=record_id,
            correlation_id=correlation_id,
            description=f"{event_type.value.replace('_', ' ').capitalize()} of {amount:.2f}",
            details={"amount": amount},
            is_user_action=True,
        )

    @staticmethod
    def credit_payment(
        credit_id: str,
        amount: float,
        total_paid: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CREDIT_PAYMENT,
            entity_type="credits",
            entity_id=credit_id,
            correlation_id=correlation_id,
            description=f"Payment of {amount:.2f} registered",
            details={"amount": amount, "total_paid": total_paid},
            is_user_action=True,
        )

    @staticmethod
    def credit_paid_off(
        credit_id: str,
        total_paid: float,
        total_to_pay: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CREDIT_PAID_OFF,
            entity_type="credits",
            entity_id=credit_id,
            correlation_id=correlation_id,
            description="Credit fully paid",
            details={"total_paid": total_paid, "total_to_pay": total_to_pay},
        )

    @staticmethod
    def capital_injected(
        project_id: str,
        amount: float,
        wallet_transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CAPITAL_INJECTED,
            entity_type="projects",
            entity_id=project_id,
            correlation_id=correlation_id,
            description=f"Capital of {amount:.2f} moved from wallet into project",
            details={"amount": amount, "wallet_transaction_id": wallet_transaction_id},
            is_user_action=True,
        )

    @staticmethod
    def project_transaction_added(
        project_id: str,
        transaction_id: str,
        transaction_type: str,
        amount: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROJECT_TRANSACTION_ADDED,
            entity_type="projects",
            entity_id=project_id,
            correlation_id=correlation_id,
            description=f"Project {transaction_type} of {amount:.2f} recorded",
            details={"transaction_id": transaction_id, "type": transaction_type, "amount": amount},
            is_user_action=True,
        )

    @staticmethod
    def budget_line_created(
        project_id: str,
        line_id: str,
        allocated: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_LINE_CREATED,
            entity_type="projects",
            entity_id=project_id,
            correlation_id=correlation_id,
            description=f"Budget line allocated {allocated:.2f}",
            details={"budget_line_id": line_id, "allocated": allocated},
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        action: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"Validation failed for {action}",
            details={"action": action, "issues": issues},
        )

    @staticmethod
    def insufficient_funds(
        action: str,
        available: float,
        needed: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSUFFICIENT_FUNDS,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"Insufficient funds for {action}",
            details={"action": action, "available": available, "needed": needed},
            is_user_action=True,
        )

    @staticmethod
    def store_write_failed(
        collection: str,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_WRITE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type=collection,
            correlation_id=correlation_id,
            description=f"Failed to {operation} in {collection}",
            error_message=error_message,
        )

    @staticmethod
    def consistency_gap(
        flow: str,
        orphan_collection: str,
        orphan_id: str,
        failed_step: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        """The first write of a two-store flow landed, the second did not."""
        return AuditEvent(
            event_type=AuditEventType.CONSISTENCY_GAP,
            severity=AuditSeverity.CRITICAL,
            entity_type=orphan_collection,
            entity_id=orphan_id,
            correlation_id=correlation_id,
            description=f"{flow} left an orphan record after '{failed_step}' failed",
            details={"flow": flow, "failed_step": failed_step},
            error_message=error_message,
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
            correlation_id=correlation_id,
            description=f"System error: {error_type}",
            details=details or {},
            error_message=error_message,
        )
