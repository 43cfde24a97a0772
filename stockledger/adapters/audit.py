"""
Audit sink loader — resolves the configured AuditSink.

Usage:
    from stockledger.adapters import get_audit_sink

    sink = get_audit_sink()
    sink.notify(event)

Settings:
    STOCKLEDGER = {
        "AUDIT_SINK": "myproject.audit.DatabaseAuditSink",
    }
"""

from __future__ import annotations

import logging
import threading

from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from stockledger.conf import stockledger_settings
from stockledger.protocols.audit import AuditSink

logger = logging.getLogger(__name__)


# Cached sink instance
_lock = threading.Lock()
_audit_sink: AuditSink | None = None


def get_audit_sink() -> AuditSink:
    """
    Return the configured audit sink.

    Returns:
        AuditSink instance

    Raises:
        ImproperlyConfigured: If AUDIT_SINK is empty or import fails
    """
    global _audit_sink

    if _audit_sink is None:
        with _lock:
            if _audit_sink is None:  # double-checked
                sink_path = stockledger_settings.AUDIT_SINK

                if not sink_path:
                    raise ImproperlyConfigured(
                        "STOCKLEDGER['AUDIT_SINK'] must be configured. "
                        "Example: 'stockledger.adapters.logger.LoggerAuditSink'"
                    )

                try:
                    sink_class = import_string(sink_path)
                except ImportError as e:
                    raise ImproperlyConfigured(
                        f"Failed to import audit sink '{sink_path}': {e}"
                    ) from e

                sink = sink_class()
                if not isinstance(sink, AuditSink):
                    raise ImproperlyConfigured(
                        f"'{sink_path}' does not implement AuditSink (missing notify())"
                    )
                _audit_sink = sink
                logger.debug("Loaded audit sink: %s", sink_path)

    return _audit_sink


def reset_audit_sink() -> None:
    """Reset the cached sink. Useful for testing."""
    global _audit_sink
    _audit_sink = None
