"""GracePeriodTracker: is a condition inside its post-trigger cool-down?

Computed on demand from the evaluation engine's trigger history and the
condition's "grace" parameter (minutes). Nothing is cached or persisted.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Callable

from vigil.collaborators import TriggerHistory
from vigil.conditions.types import AlertCondition, GracePeriodState, parse_ts


def _grace_minutes(condition: AlertCondition) -> int:
    raw = condition.parameters.get("grace")
    if raw is None or isinstance(raw, bool):
        return 0
    try:
        return max(int(raw), 0)
    except (TypeError, ValueError):
        return 0


class GracePeriodTracker:
    def __init__(
        self,
        history: TriggerHistory,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self.history = history
        self._clock = clock

    def now(self) -> datetime:
        return parse_ts(self._clock())

    def state(self, condition: AlertCondition) -> GracePeriodState:
        last = self.history.last_trigger_time(condition.id)
        return GracePeriodState(
            last_triggered_at=None if last is None else parse_ts(last),
            grace_minutes=_grace_minutes(condition),
        )

    def grace_ends_at(self, condition: AlertCondition) -> datetime | None:
        """When the cool-down after the last trigger ends, or None if there is none."""
        st = self.state(condition)
        if st.last_triggered_at is None or st.grace_minutes == 0:
            return None
        return st.last_triggered_at + timedelta(minutes=st.grace_minutes)

    def is_in_grace_period(self, condition: AlertCondition, now: datetime | None = None) -> bool:
        ends_at = self.grace_ends_at(condition)
        if ends_at is None:
            return False
        return parse_ts(now or self._clock()) < ends_at
