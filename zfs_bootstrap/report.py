"""Console output for the operator."""

from __future__ import annotations

import sys
from typing import Iterable, TextIO

from .errors import CollaboratorError, StepFailed, ValidationError
from .model import BootstrapConfig, RunReport, Step


def say(msg: str, stream: TextIO | None = None) -> None:
    print(f"==> {msg}", file=stream or sys.stdout, flush=True)


def note(msg: str = "", stream: TextIO | None = None) -> None:
    print(msg, file=stream or sys.stdout, flush=True)


def error(msg: str) -> None:
    print(f"Error: {msg}", file=sys.stderr, flush=True)


def step_listener(event: str, step: Step) -> None:
    """Progress lines for :class:`~zfs_bootstrap.sequencer.Sequencer`."""

    if event == "skip":
        note(f"{step.name}: already done ({step.expected})")
    elif event == "execute":
        say(f"{step.name}...")
    elif event == "retry":
        note(f"{step.name}: waiting ({step.expected})")


def banner(config: BootstrapConfig) -> None:
    say("ZFS bootstrap")
    note(f"Using disk: {config.target}")
    note()
    note(f"This will create an encrypted ZFS pool: {config.pool_name}")
    note("Datasets are created by configuration management after bootstrap.")
    note()


def summary_lines(report: RunReport) -> list[str]:
    lines = [f"executed {len(report.executed)} step(s), skipped {len(report.skipped)}"]
    for outcome in report.outcomes:
        if outcome.status == "executed":
            detail = f"executed in {outcome.duration:.1f}s"
            if outcome.attempts > 1:
                detail += f" after {outcome.attempts} attempts"
        else:
            detail = "skipped"
        lines.append(f"  {outcome.name}: {detail}")
    return lines


def completion_notes(config: BootstrapConfig) -> list[str]:
    return [
        f"WARNING: Back up {config.key_file} to a secure location!",
        "         Without this key, your ZFS data is unrecoverable.",
        "",
        "Next steps:",
        "1. Run configuration management to create datasets and replication",
        "2. Reboot to verify ZFS mounts automatically",
    ]


def explain_failure(exc: Exception) -> list[str]:
    """Short, operator-facing explanation of why the run stopped."""

    if isinstance(exc, ValidationError):
        lines = [str(exc)]
        if exc.candidates:
            lines.append("Available disks:")
            lines.extend(f"  {c}" for c in exc.candidates)
        return lines
    if isinstance(exc, StepFailed):
        lines = [f"step {exc.step} failed", f"  expected: {exc.expected}", f"  observed: {exc.observed}"]
        if exc.hint:
            lines.append(f"  hint: {exc.hint}")
        lines.append("Fix the cause and re-run; completed steps will be skipped.")
        return lines
    if isinstance(exc, CollaboratorError):
        lines = [f"step {exc.step} failed" if exc.step else "external tool failed", f"  {exc}"]
        if exc.err and exc.err.strip() not in str(exc):
            lines.extend(f"  {line}" for line in exc.err.strip().splitlines())
        return lines
    return [f"unexpected error: {exc}"]


def emit_lines(lines: Iterable[str], stream: TextIO | None = None) -> None:
    for line in lines:
        note(line, stream=stream)
