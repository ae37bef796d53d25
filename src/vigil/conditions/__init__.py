"""vigil conditions: alert-condition lifecycle for streams.

Public API:
    AlertConditionManager  : create(), update(), list(), delete(), get()
    AlertConditionFactory  : build_new(), apply_update() (pure, errors as values)
    ConditionTypeRegistry  : type id -> TypeDescriptor (schema + constructor)
    GracePeriodTracker     : is_in_grace_period()
    AlertConditionStore    : Protocol for persistence backends
    SqliteConditionStore   : SQLite backend (default)
    JsonConditionStore     : JSON file backend
    build_manager(config)  : wire all of the above from VigilConfig
"""

from __future__ import annotations

from vigil.collaborators import (
    AuthorizationCheck,
    IdentityContext,
    MemoryTriggerHistory,
    StreamLookup,
    TriggerHistory,
    YamlStreamLookup,
)
from vigil.conditions.factory import AlertConditionFactory, BuildResult
from vigil.conditions.grace import GracePeriodTracker
from vigil.conditions.manager import STREAMS_EDIT, STREAMS_READ, AlertConditionManager
from vigil.conditions.registry import (
    BUILTIN_TYPES,
    ConditionTypeRegistry,
    TypeDescriptor,
    default_registry,
)
from vigil.conditions.store import AlertConditionStore, JsonConditionStore, SqliteConditionStore
from vigil.conditions.types import (
    AlertCondition,
    ConditionLocator,
    ConditionSummary,
    CreatedCondition,
    GracePeriodState,
)
from vigil.config import VigilConfig


def build_manager(
    config: VigilConfig,
    streams: StreamLookup | None = None,
    history: TriggerHistory | None = None,
    authorizer: AuthorizationCheck | None = None,
    identity: IdentityContext | None = None,
    registry: ConditionTypeRegistry | None = None,
) -> AlertConditionManager:
    """Compose registry, factory, store, tracker and manager from config.

    Streams default to the YAML catalog at {state_dir}/streams.yaml.
    """
    state_dir = str(config.state_path)
    streams = streams or YamlStreamLookup(config.state_path / "streams.yaml")

    store: AlertConditionStore
    if config.store_backend == "json":
        store = JsonConditionStore(state_dir, streams=streams, retries=config.storage_retries)
    else:
        store = SqliteConditionStore(state_dir, streams=streams, retries=config.storage_retries)

    factory = AlertConditionFactory(
        registry or default_registry(),
        allow_type_change=config.allow_type_change,
    )
    tracker = GracePeriodTracker(history or MemoryTriggerHistory())
    return AlertConditionManager(
        streams=streams,
        store=store,
        factory=factory,
        tracker=tracker,
        authorizer=authorizer,
        identity=identity,
    )


__all__ = [
    "AlertConditionManager",
    "AlertConditionFactory",
    "BuildResult",
    "ConditionTypeRegistry",
    "TypeDescriptor",
    "BUILTIN_TYPES",
    "default_registry",
    "GracePeriodTracker",
    "AlertConditionStore",
    "SqliteConditionStore",
    "JsonConditionStore",
    "AlertCondition",
    "ConditionLocator",
    "ConditionSummary",
    "CreatedCondition",
    "GracePeriodState",
    "STREAMS_READ",
    "STREAMS_EDIT",
    "build_manager",
]
