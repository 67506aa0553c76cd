"""Ordered, idempotent execution of provisioning steps.

A step is skipped when its precondition already holds. Otherwise its action
runs, transient failures are retried per the step's policy, and the
postcondition must hold before the next step starts. The first failure ends
the run; nothing is rolled back, and re-running from the top resumes where
the previous attempt stopped.
"""

from __future__ import annotations

import time
from typing import Callable

from .errors import CollaboratorError, StepFailed, TransientError
from .executil import log, trace
from .model import Run, RunReport, Step, StepOutcome

StepListener = Callable[[str, Step], None]


class Sequencer:
    def __init__(
        self,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        listener: StepListener | None = None,
    ) -> None:
        self._sleep = sleep
        self._clock = clock
        self._listener = listener

    def _notify(self, event: str, step: Step) -> None:
        if self._listener is not None:
            self._listener(event, step)

    def execute(self, run: Run) -> RunReport:
        report = RunReport(target=run.target)
        trace("step.run_start", target=run.target, steps=[s.name for s in run.steps])
        for step in run.steps:
            try:
                outcome = self._run_step(step)
            except CollaboratorError as exc:
                if exc.step is None:
                    exc.step = step.name
                log("ERROR", "step.failed", step=step.name, error=str(exc), cmd=exc.cmd, rc=exc.rc)
                raise
            except StepFailed as exc:
                log("ERROR", "step.failed", step=step.name, expected=exc.expected, observed=exc.observed)
                raise
            report.outcomes.append(outcome)
        trace("step.run_done", target=run.target, executed=report.executed, skipped=report.skipped)
        return report

    def _run_step(self, step: Step) -> StepOutcome:
        trace("step.start", step=step.name)
        if step.precondition():
            trace("step.skip", step=step.name, reason="precondition satisfied")
            self._notify("skip", step)
            return StepOutcome(name=step.name, status="skipped")

        self._notify("execute", step)
        started = self._clock()
        attempts = self._attempt(step)
        if not step.verify():
            raise StepFailed(step.name, step.expected, "postcondition not satisfied after action", hint=step.hint)
        duration = self._clock() - started
        trace("step.done", step=step.name, attempts=attempts, dur=duration)
        return StepOutcome(name=step.name, status="executed", attempts=attempts, duration=duration)

    def _attempt(self, step: Step) -> int:
        policy = step.retry
        attempt = 0
        while True:
            attempt += 1
            try:
                step.action()
            except OSError as exc:
                # filesystem failures from the action surface like a failed tool
                raise CollaboratorError(f"{step.name}: {exc}", err=str(exc)) from exc
            except TransientError as exc:
                if attempt >= policy.attempts:
                    raise StepFailed(
                        step.name,
                        step.expected,
                        f"{exc} (after {attempt} attempt{'s' if attempt != 1 else ''})",
                        hint=step.hint,
                    ) from exc
                trace("step.retry", step=step.name, attempt=attempt, error=str(exc), wait=policy.interval)
                self._notify("retry", step)
                self._sleep(policy.interval)
                continue
            return attempt
