"""vigil observability: lifecycle events and structured logging.

Public API:
    emit(event)     : Fire-and-forget event emission (no-op if not configured)
    configure(cfg)  : Initialize logging + emitter + subscribers (call once at startup)
    reset()         : Reset for testing

Logging (swappable formatter x destination):
    get_logger(name)             : Get a structured logger
    register_formatter(n, fn)    : Register a LogFormatter factory
    register_destination(n, fn)  : Register a LogDestination factory
"""

from vigil.observability.config import ObservabilityConfig
from vigil.observability.emitter import configure, emit, is_configured, reset
from vigil.observability.events import (
    ConditionCreated,
    ConditionDeleted,
    ConditionRejected,
    ConditionsListed,
    ConditionUpdated,
)
from vigil.observability.logging import (
    LogDestination,
    LogFormatter,
    get_logger,
    register_destination,
    register_formatter,
)

__all__ = [
    "emit",
    "configure",
    "is_configured",
    "reset",
    "ObservabilityConfig",
    "get_logger",
    "LogFormatter",
    "LogDestination",
    "register_formatter",
    "register_destination",
    "ConditionCreated",
    "ConditionUpdated",
    "ConditionDeleted",
    "ConditionsListed",
    "ConditionRejected",
]
