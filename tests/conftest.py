"""
Shared fixtures for Meluribook tests.

Everything runs against the in-memory backend; no Google API calls.
"""

import pytest

from meluribook.audit import AuditLogger
from meluribook.ledger import LedgerService
from meluribook.orchestrator import BusinessSetupFlow, TransactionFlow
from meluribook.services.storage import (
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
    InMemoryTransactionStorage,
)
from meluribook.tax import create_default_registry


BUSINESS_ID = "biz-acme"


@pytest.fixture
def business_id():
    return BUSINESS_ID


@pytest.fixture
def ledger_storage():
    return InMemoryLedgerStorage()


@pytest.fixture
def transaction_storage():
    return InMemoryTransactionStorage()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def ledger(ledger_storage, audit_logger):
    return LedgerService(ledger_storage, audit_logger=audit_logger)


@pytest.fixture
def business_setup(ledger):
    return BusinessSetupFlow(ledger)


@pytest.fixture
def transaction_flow(ledger, transaction_storage, audit_logger):
    return TransactionFlow(
        ledger,
        transaction_storage,
        tax_registry=create_default_registry(),
        audit_logger=audit_logger,
    )
