"""
Pytest fixtures for Stockledger tests.
"""

import threading

import pytest

from stockledger.adapters import NoopAuditSink, reset_audit_sink
from stockledger.models import Product
from stockledger.protocols import ActorContext
from stockledger.service import MovementService


class RecordingAuditSink:
    """AuditSink that keeps every event in memory."""

    def __init__(self):
        self.events = []

    def notify(self, event):
        self.events.append(event)


class FailingAuditSink:
    """AuditSink whose backend is down."""

    def notify(self, event):
        raise ConnectionError('audit backend unavailable')


class HangingAuditSink:
    """AuditSink whose backend never answers until released."""

    def __init__(self):
        self.release = threading.Event()

    def notify(self, event):
        self.release.wait(timeout=5)


@pytest.fixture(autouse=True)
def _reset_audit_sink():
    """Each test resolves AUDIT_SINK from its own settings."""
    reset_audit_sink()
    yield
    reset_audit_sink()


@pytest.fixture
def actor():
    """Authenticated actor performing movements."""
    return ActorContext(id='42', name='Ana Souza', role='admin')


@pytest.fixture
def audit_sink():
    """In-memory audit sink."""
    return RecordingAuditSink()


@pytest.fixture
def service(audit_sink):
    """MovementService wired to the ORM repositories and a recording sink."""
    return MovementService(audit_sink=audit_sink)


@pytest.fixture
def quiet_service():
    """MovementService that discards audit events."""
    return MovementService(audit_sink=NoopAuditSink())


@pytest.fixture
def make_product(db):
    """Factory for products."""
    def _make(code='P1', stock=0, **kwargs):
        kwargs.setdefault('name', f'Produto {code}')
        return Product.objects.create(code=code, stock=stock, **kwargs)
    return _make


@pytest.fixture
def product(make_product):
    """Product P1 with no stock, negative stock not allowed."""
    return make_product('P1', stock=0)


@pytest.fixture
def stocked_product(make_product):
    """Product with 10 units, negative stock not allowed."""
    return make_product('STK-10', stock=10)


@pytest.fixture
def overdraft_product(make_product):
    """Product that allows negative stock."""
    return make_product('NEG-1', stock=2, allow_negative_stock=True)
