"""Process-wide event emitter.

Library code only ever calls emit(). Until an entry point calls configure()
(the CLI does, tests may), emit() drops events on the floor.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pyventus.events import EventEmitter

if TYPE_CHECKING:
    from vigil.observability.config import ObservabilityConfig

_emitter: EventEmitter | None = None


def emit(event: Any) -> None:
    if _emitter is not None:
        _emitter.emit(event)


def configure(config: ObservabilityConfig | None = None) -> EventEmitter:
    """Set up logging, the emitter, and the log subscriber. Safe to call twice."""
    global _emitter

    if _emitter is not None:
        return _emitter

    from pyventus.core.processing.asyncio import AsyncIOProcessingService

    from vigil.observability.config import ObservabilityConfig
    from vigil.observability.linker import VigilEventLinker
    from vigil.observability.logging import setup_logging
    from vigil.observability.subscribers.structlog_sub import register_structlog_subscriber

    setup_logging(config or ObservabilityConfig())
    register_structlog_subscriber()
    _emitter = EventEmitter(
        event_linker=VigilEventLinker,
        event_processor=AsyncIOProcessingService(),
    )
    return _emitter


def is_configured() -> bool:
    return _emitter is not None


def reset() -> None:
    """Drop the emitter, its subscribers and our log handler (tests)."""
    global _emitter

    from vigil.observability.linker import VigilEventLinker
    from vigil.observability.logging import shutdown_logging

    _emitter = None
    VigilEventLinker.remove_all()
    shutdown_logging()
