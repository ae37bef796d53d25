"""Logging settings, read from VIGIL_LOG_* env vars at construction time.

    VIGIL_LOG_FORMATTER     structlog (default) | stdlib
    VIGIL_LOG_DESTINATION   stderr (default) | jsonl
    VIGIL_LOG_LEVEL         INFO
    VIGIL_LOG_FORMAT        json (default) | console
    VIGIL_LOG_PATH          jsonl file, default ~/.vigil/vigil.jsonl
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field


def _env(name: str, default: str | None = None):
    return field(default_factory=lambda: os.environ.get(name, default))


@dataclass
class ObservabilityConfig:
    log_formatter: str = _env("VIGIL_LOG_FORMATTER", "structlog")
    log_destination: str = _env("VIGIL_LOG_DESTINATION", "stderr")
    log_level: str = _env("VIGIL_LOG_LEVEL", "INFO")
    log_format: str = _env("VIGIL_LOG_FORMAT", "json")
    jsonl_path: str | None = _env("VIGIL_LOG_PATH")
