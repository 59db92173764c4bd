"""
Shared fixtures for Vaultly tests.

Every test runs against in-memory stores and a frozen clock; nothing talks
to Google Sheets.
"""

from datetime import date, datetime

import pytest

from vaultly.audit import AuditLogger
from vaultly.config import EngineSettings
from vaultly.engine import FinanceEngine
from vaultly.services.storage import FinanceRepositories, InMemoryAuditStorage

NOW = datetime(2025, 3, 15, 10, 30)
TODAY = NOW.date()


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def engine_settings() -> EngineSettings:
    return EngineSettings()


@pytest.fixture
def repositories() -> FinanceRepositories:
    return FinanceRepositories.in_memory("user-1")


@pytest.fixture
def engine(repositories, clock, engine_settings) -> FinanceEngine:
    return FinanceEngine(repositories, clock=clock, settings=engine_settings)


@pytest.fixture
def audit_storage() -> InMemoryAuditStorage:
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage) -> AuditLogger:
    return AuditLogger(audit_storage)
