from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .docker_ops import DockerRuntime
from .errors import ConfigurationError, RuntimeExitFailure, RuntimeInvocationError
from .events import EventLog
from .models import IMAGE_PROPERTY, CatalogState, ComponentSpec


class Action(str, Enum):
    SKIP = "skip"
    LAUNCH = "launch"


class Outcome(str, Enum):
    SKIPPED = "skipped"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class ComponentResult:
    catalog: str
    component: str
    outcome: Outcome
    detail: str = ""
    image: str | None = None


class ReconcileEngine:
    """Brings one component at a time to its desired state (start if absent)."""

    def __init__(self, runtime: DockerRuntime, events: EventLog | None = None):
        self.runtime = runtime
        self.events = events or EventLog()

    def reconcile_catalog(self, catalog: CatalogState) -> list[ComponentResult]:
        name = catalog.spec.name
        removed = catalog.spec.properties.removed_components or []
        if removed:
            # Removal is not implemented; the list is only reported.
            self.events.log_event(
                "DEBUG",
                f"ignoring {len(removed)} removed component(s): {', '.join(c.name for c in removed)}",
                catalog=name,
            )
        return [self.reconcile(c, catalog=name) for c in catalog.spec.properties.desired_components()]

    def reconcile(self, component: ComponentSpec, catalog: str = "") -> ComponentResult:
        try:
            action, image = self._plan(component)
        except ConfigurationError as e:
            return self._report(catalog, component.name, Outcome.FAILED, str(e))

        if action is Action.SKIP:
            return self._report(catalog, component.name, Outcome.SKIPPED, "already running")

        try:
            cid = self.runtime.launch(component.name, image)
        except (RuntimeInvocationError, RuntimeExitFailure) as e:
            return self._report(catalog, component.name, Outcome.FAILED, str(e), image)
        return self._report(catalog, component.name, Outcome.DONE, f"started {cid} from {image}", image)

    def _plan(self, component: ComponentSpec) -> tuple[Action, str | None]:
        if not component.name:
            raise ConfigurationError("component has no name")
        if self.runtime.is_running(component.name):
            return Action.SKIP, None
        image = component.image
        if not image:
            raise ConfigurationError(f"missing '{IMAGE_PROPERTY}' property")
        return Action.LAUNCH, image

    def _report(
        self,
        catalog: str,
        component: str,
        outcome: Outcome,
        detail: str,
        image: str | None = None,
    ) -> ComponentResult:
        level = "ERROR" if outcome is Outcome.FAILED else "INFO"
        self.events.log_event(level, f"reconcile {outcome.value}: {detail}", catalog=catalog, component=component)
        return ComponentResult(catalog=catalog, component=component, outcome=outcome, detail=detail, image=image)
