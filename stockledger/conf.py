"""
Stockledger configuration.

Usage in settings.py:
    STOCKLEDGER = {
        "AUDIT_SINK": "stockledger.adapters.logger.LoggerAuditSink",
        "AUDIT_TIMEOUT": 2.0,
        "MAX_CONFLICT_RETRIES": 3,
        "DEFAULT_PAGE_SIZE": 20,
        "MAX_PAGE_SIZE": 100,
        "LOW_STOCK_THRESHOLD": None,
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings


@dataclass
class StockledgerSettings:
    """Stockledger configuration settings."""

    # Audit sink backend (dotted path)
    AUDIT_SINK: str = "stockledger.adapters.logger.LoggerAuditSink"

    # Seconds the caller waits for AuditSink.notify (None = no limit)
    AUDIT_TIMEOUT: float | None = 2.0

    # Attempts after the first one when the product version changed under us
    MAX_CONFLICT_RETRIES: int = 3

    # Pagination for movement history
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    # Fixed low-stock threshold (None = use each product's min_stock)
    LOW_STOCK_THRESHOLD: int | None = None


def get_stockledger_settings() -> StockledgerSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "STOCKLEDGER", {})
    return StockledgerSettings(**{
        k: v for k, v in user_settings.items()
        if k in StockledgerSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_stockledger_settings(), name)


stockledger_settings = _LazySettings()
