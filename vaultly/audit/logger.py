"""
Audit Logger

DESIGN DECISION: Every mutation of a record store is logged.
This provides:
1. Complete traceability of money movements
2. A record of which half of a cross-store flow landed when one fails
3. User-visible history of their actions

The audit logger:
- Is async so flows can await it between store writes
- Gracefully handles failures (a failed audit write never fails the action)
- Supports correlation IDs to tie together the writes of one flow
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from vaultly.models.audit import AuditEvent, AuditEventBuilder, AuditEventType, AuditSeverity
from vaultly.services.storage import AuditStorageInterface


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


def configure_logging(log_level: str = "INFO") -> None:
    """Route structlog's JSON lines through stdlib logging at `log_level`."""
    level = getattr(logging, log_level.upper())
    logging.basicConfig(format="%(message)s", level=level)
    logging.getLogger().setLevel(level)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and user visibility)
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
        self._logger = structlog.get_logger("vaultly.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
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

    async def log_transaction_added(
        self,
        transaction_id: str,
        transaction_type: str,
        amount: float,
        category: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_added(
            transaction_id=transaction_id,
            transaction_type=transaction_type,
            amount=amount,
            category=category,
            correlation_id=correlation_id,
        ))

    async def log_savings_movement(
        self,
        event_type: AuditEventType,
        collection: str,
        record_id: str,
        amount: float,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Goal contribution/withdrawal or fund deposit/withdrawal."""
        await self.log(AuditEventBuilder.savings_movement(
            event_type=event_type,
            collection=collection,
            record_id=record_id,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_validation_failed(
        self,
        action: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.validation_failed(
            action=action,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_insufficient_funds(
        self,
        action: str,
        available: float,
        needed: float,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.insufficient_funds(
            action=action,
            available=available,
            needed=needed,
            correlation_id=correlation_id,
        ))

    async def log_store_write_failed(
        self,
        collection: str,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.store_write_failed(
            collection=collection,
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_consistency_gap(
        self,
        flow: str,
        orphan_collection: str,
        orphan_id: str,
        failed_step: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """A two-store flow wrote its first record but not its second."""
        await self.log(AuditEventBuilder.consistency_gap(
            flow=flow,
            orphan_collection=orphan_collection,
            orphan_id=orphan_id,
            failed_step=failed_step,
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

    Use this at the start of a user action (e.g., a credit payment) and pass
    it to every audit event the action produces.
    """
    return uuid4()
