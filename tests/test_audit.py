"""Tests for the audit logger."""

from unittest.mock import AsyncMock

import pytest

from vaultly.audit import AuditLogger, create_correlation_id
from vaultly.models.audit import AuditEventBuilder, AuditEventType, AuditSeverity


class TestAuditLogger:
    """Tests for AuditLogger."""

    @pytest.mark.asyncio
    async def test_persists_events(self, audit_logger, audit_storage):
        correlation_id = create_correlation_id()
        await audit_logger.log_transaction_added("t1", "income", 10.0, "Sueldo", correlation_id)

        assert len(audit_storage.events) == 1
        event = audit_storage.events[0]
        assert event.event_type == AuditEventType.TRANSACTION_ADDED
        assert event.entity_id == "t1"
        assert event.correlation_id == correlation_id

    @pytest.mark.asyncio
    async def test_without_storage_logs_locally(self):
        logger = AuditLogger()
        assert await logger.log(AuditEventBuilder.transaction_removed("t1")) is True

    @pytest.mark.asyncio
    async def test_storage_failure_never_raises(self):
        storage = AsyncMock()
        storage.append_event.side_effect = RuntimeError("sheet gone")
        logger = AuditLogger(storage)

        await logger.log_error("test", "boom")

        storage.append_event.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_consistency_gap_is_critical(self, audit_logger, audit_storage):
        await audit_logger.log_consistency_gap(
            flow="capital_injection",
            orphan_collection="transactions",
            orphan_id="t9",
            failed_step="add project income",
            error_message="unavailable",
        )
        assert audit_storage.events[0].severity == AuditSeverity.CRITICAL

    @pytest.mark.asyncio
    async def test_events_by_correlation_id(self, audit_logger, audit_storage):
        first, second = create_correlation_id(), create_correlation_id()
        await audit_logger.log_insufficient_funds("fund_deposit", 1.0, 2.0, first)
        await audit_logger.log_validation_failed("fund_deposit", [], second)
        await audit_logger.log_store_write_failed("funds", "update", "down", first)

        related = await audit_storage.get_events_by_correlation_id(first)
        assert [e.event_type for e in related] == [
            AuditEventType.INSUFFICIENT_FUNDS,
            AuditEventType.STORE_WRITE_FAILED,
        ]
