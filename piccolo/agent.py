from __future__ import annotations

import time
from typing import Callable

from .control_plane import ControlPlaneClient
from .events import EventLog, utc_now
from .reconciler import ReconcileEngine
from .runtime import AgentState, IterationReport
from .settings import Settings


class Agent:
    """Pull desired state, reconcile it against the runtime, sleep, repeat.

    ``tick`` runs one iteration without sleeping so it can be single-stepped;
    ``run`` is the forever loop around it.
    """

    def __init__(
        self,
        settings: Settings,
        client: ControlPlaneClient,
        engine: ReconcileEngine,
        events: EventLog | None = None,
    ):
        self.settings = settings
        self.client = client
        self.engine = engine
        self.events = events or EventLog()
        self.state = AgentState.AUTHENTICATING
        self.iteration = 0

    def run(self, max_iterations: int | None = None, sleep: Callable[[float], None] = time.sleep) -> None:
        self.events.log_event("INFO", f"agent started, polling {self.settings.base_url} every {self.settings.poll_interval_s}s")
        done = 0
        while max_iterations is None or done < max_iterations:
            self.tick()
            done += 1
            if max_iterations is not None and done >= max_iterations:
                break
            # Fixed delay after each iteration, not a fixed rate.
            sleep(self.settings.poll_interval_s)

    def tick(self) -> IterationReport:
        self.iteration += 1
        report = IterationReport(iteration=self.iteration)
        try:
            self._step(report)
        except Exception as e:
            report.error = f"{type(e).__name__}: {e}"
            self.events.log_event("ERROR", f"iteration {self.iteration} aborted: {report.error}")
        finally:
            self.state = AgentState.SLEEPING
            report.finished_at = utc_now()
        self.events.log_event("INFO", f"iteration {self.iteration}: {report.summary()}")
        return report

    def _step(self, report: IterationReport) -> None:
        self.state = AgentState.AUTHENTICATING
        credential = self.client.authenticate(self.settings.auth_username, self.settings.auth_password)
        if credential is None:
            return
        report.authenticated = True

        self.state = AgentState.FETCHING
        catalogs = self.client.fetch_catalogs(credential)
        report.catalogs = len(catalogs)

        self.state = AgentState.RECONCILING
        for catalog in catalogs:
            report.results.extend(self.engine.reconcile_catalog(catalog))
