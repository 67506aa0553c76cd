"""Error taxonomy for the bootstrap run."""

from __future__ import annotations

from typing import Iterable, Optional, Sequence


class BootstrapError(RuntimeError):
    """Base class for every error the bootstrap reports to the operator."""


class ValidationError(BootstrapError):
    """Bad input or missing prerequisite; raised before any step runs."""

    def __init__(self, message: str, *, candidates: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.candidates = list(candidates)


class TransientError(BootstrapError):
    """Condition expected to clear on its own (udev has not caught up yet)."""


class StepFailed(BootstrapError):
    def __init__(self, step: str, expected: str, observed: str, *, hint: Optional[str] = None) -> None:
        super().__init__(f"step {step} failed: expected {expected}; observed {observed}")
        self.step = step
        self.expected = expected
        self.observed = observed
        self.hint = hint


class CollaboratorError(BootstrapError):
    """An external tool failed; its output is carried verbatim."""

    def __init__(
        self,
        message: str,
        *,
        cmd: Optional[Sequence[str]] = None,
        rc: Optional[int] = None,
        out: Optional[str] = None,
        err: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.cmd = list(cmd) if cmd is not None else None
        self.rc = rc
        self.out = out
        self.err = err
        self.step: Optional[str] = None


class ProbeError(CollaboratorError):
    """A probe could not tell whether the target state was reached."""
