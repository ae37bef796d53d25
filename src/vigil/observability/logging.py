"""Structured logging for vigil.

Two independent choices, both picked from ObservabilityConfig:

    formatter    how a record is rendered   structlog (default) | stdlib
    destination  where the rendered line goes   stderr (default) | jsonl

setup_logging() builds one handler from the pair and installs it on the root
logger, replacing any handler it installed earlier. Handlers owned by other
code (pytest's caplog, an embedding application) are left alone.

Extra formatters/destinations can be plugged in before configure():

    register_destination("datadog", lambda cfg: DatadogDestination())
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass
from functools import partialmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Protocol, runtime_checkable

if TYPE_CHECKING:
    from vigil.observability.config import ObservabilityConfig

_MANAGED = "_vigil_managed"
_DEFAULT_JSONL = "~/.vigil/vigil.jsonl"


@runtime_checkable
class LogFormatter(Protocol):
    def setup(self, config: ObservabilityConfig) -> logging.Formatter: ...

    def get_logger(self, name: str, **kwargs: Any) -> Any: ...


@runtime_checkable
class LogDestination(Protocol):
    def create_handler(self, formatter: logging.Formatter) -> logging.Handler: ...

    def shutdown(self) -> None: ...


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


class StructlogFormatter:
    """Routes structlog through stdlib so both APIs share one handler."""

    def setup(self, config: ObservabilityConfig) -> logging.Formatter:
        import structlog

        pre_chain = [
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
        ]
        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                *pre_chain,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        renderer = (
            structlog.dev.ConsoleRenderer()
            if config.log_format == "console"
            else structlog.processors.JSONRenderer()
        )
        return structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )

    def get_logger(self, name: str, **kwargs: Any) -> Any:
        import structlog

        return structlog.get_logger(name, **kwargs)


class StdlibFormatter:
    """Plain logging module; JSON lines unless log_format is "console"."""

    def setup(self, config: ObservabilityConfig) -> logging.Formatter:
        if config.log_format == "console":
            return logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        return _JsonLineFormatter()

    def get_logger(self, name: str, **kwargs: Any) -> Any:
        return _KwargsLogger(logging.getLogger(name))


class _JsonLineFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": record.getMessage(),
            **getattr(record, "_structured", {}),
        }
        if record.exc_info and record.exc_info[1] is not None:
            line["exception"] = self.formatException(record.exc_info)
        return json.dumps(line, default=str)


class _KwargsLogger:
    """logger.info("event", key=value) on top of a stdlib Logger.

    Keyword arguments ride along on the record as `_structured`.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def _log(self, level: int, event: str, **fields: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        exc_info = fields.pop("exc_info", None)
        if exc_info is True:
            exc_info = sys.exc_info()
        record = self._logger.makeRecord(
            self._logger.name, level, "(vigil)", 0, event, (), exc_info or None,
            extra={"_structured": fields},
        )
        self._logger.handle(record)

    debug = partialmethod(_log, logging.DEBUG)
    info = partialmethod(_log, logging.INFO)
    warning = partialmethod(_log, logging.WARNING)
    error = partialmethod(_log, logging.ERROR)

    def exception(self, event: str, **fields: Any) -> None:
        fields.setdefault("exc_info", True)
        self._log(logging.ERROR, event, **fields)


# ---------------------------------------------------------------------------
# Destinations
# ---------------------------------------------------------------------------


class StderrDestination:
    def create_handler(self, formatter: logging.Formatter) -> logging.Handler:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)
        return handler

    def shutdown(self) -> None:
        pass


class JsonlFileDestination:
    """Appends one line per record to a file (VIGIL_LOG_PATH)."""

    def __init__(self, path: str | None = None) -> None:
        self.path = Path(path or _DEFAULT_JSONL).expanduser()
        self._handler: logging.FileHandler | None = None

    def create_handler(self, formatter: logging.Formatter) -> logging.Handler:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._handler = logging.FileHandler(self.path, encoding="utf-8")
        self._handler.setFormatter(formatter)
        return self._handler

    def shutdown(self) -> None:
        if self._handler is not None:
            self._handler.close()
            self._handler = None


# ---------------------------------------------------------------------------
# Registries: name -> factory(config)
# ---------------------------------------------------------------------------

_FORMATTERS: dict[str, Callable[[ObservabilityConfig], LogFormatter]] = {
    "structlog": lambda cfg: StructlogFormatter(),
    "stdlib": lambda cfg: StdlibFormatter(),
}

_DESTINATIONS: dict[str, Callable[[ObservabilityConfig], LogDestination]] = {
    "stderr": lambda cfg: StderrDestination(),
    "jsonl": lambda cfg: JsonlFileDestination(cfg.jsonl_path),
}


def register_formatter(name: str, factory: Callable[[ObservabilityConfig], LogFormatter]) -> None:
    _FORMATTERS[name] = factory


def register_destination(
    name: str, factory: Callable[[ObservabilityConfig], LogDestination]
) -> None:
    _DESTINATIONS[name] = factory


def _lookup(registry: dict[str, Any], kind: str, name: str) -> Any:
    try:
        return registry[name]
    except KeyError:
        raise ValueError(
            f"Unknown log {kind}: {name!r}. Available: {sorted(registry)}. "
            f"Add one with register_{kind}()."
        ) from None


# ---------------------------------------------------------------------------
# Active pipeline
# ---------------------------------------------------------------------------


@dataclass
class _Pipeline:
    formatter: LogFormatter
    destination: LogDestination


_active: _Pipeline | None = None


def _level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def _detach_managed(root: logging.Logger) -> None:
    root.handlers = [h for h in root.handlers if not getattr(h, _MANAGED, False)]


def setup_logging(config: ObservabilityConfig) -> None:
    """Install the configured formatter x destination on the root logger."""
    global _active

    make_formatter = _lookup(_FORMATTERS, "formatter", config.log_formatter)
    make_destination = _lookup(_DESTINATIONS, "destination", config.log_destination)
    formatter = make_formatter(config)
    destination = make_destination(config)

    handler = destination.create_handler(formatter.setup(config))
    setattr(handler, _MANAGED, True)

    root = logging.getLogger()
    _detach_managed(root)
    root.addHandler(handler)
    root.setLevel(_level(config.log_level))

    if _active is not None:
        _active.destination.shutdown()
    _active = _Pipeline(formatter, destination)


def get_logger(name: str = "", **kwargs: Any) -> Any:
    """Logger from the active formatter; a kwargs-capable stdlib wrapper before setup."""
    if _active is not None:
        return _active.formatter.get_logger(name, **kwargs)
    return _KwargsLogger(logging.getLogger(name))


def shutdown_logging() -> None:
    """Close the active destination and remove our handler from the root logger."""
    global _active

    if _active is not None:
        _active.destination.shutdown()
    _detach_managed(logging.getLogger())
    _active = None
