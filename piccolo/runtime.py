from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .events import utc_now
from .reconciler import ComponentResult, Outcome


class AgentState(str, Enum):
    AUTHENTICATING = "authenticating"
    FETCHING = "fetching"
    RECONCILING = "reconciling"
    SLEEPING = "sleeping"


@dataclass
class IterationReport:
    """What one agent tick saw and did. Discarded after it is logged."""

    iteration: int
    started_at: str = field(default_factory=utc_now)
    finished_at: str | None = None
    authenticated: bool = False
    catalogs: int = 0
    results: list[ComponentResult] = field(default_factory=list)
    error: str | None = None

    def _count(self, outcome: Outcome) -> int:
        return sum(1 for r in self.results if r.outcome is outcome)

    @property
    def launched(self) -> int:
        return self._count(Outcome.DONE)

    @property
    def skipped(self) -> int:
        return self._count(Outcome.SKIPPED)

    @property
    def failed(self) -> int:
        return self._count(Outcome.FAILED)

    def summary(self) -> str:
        if not self.authenticated:
            return "not authenticated, skipping reconcile"
        return (
            f"{self.catalogs} catalog(s), {len(self.results)} component(s): "
            f"{self.launched} started, {self.skipped} skipped, {self.failed} failed"
        )
