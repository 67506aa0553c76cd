"""Subprocess wrapper and JSONL trace log."""

from __future__ import annotations

import datetime as _dt
import json
import os
import subprocess
import time
from typing import Sequence

from .errors import CollaboratorError
from .paths import logs_dir

LOG_NAME = "zfs-bootstrap.jsonl"

LOG_DIRS: list[str] | None = None
LOG_PATH: str | None = None


def _log_dirs() -> list[str]:
    if LOG_DIRS:
        return list(LOG_DIRS)
    return [
        logs_dir(),
        "/var/log/zfs-bootstrap",
        "/tmp/zfs-bootstrap-logs",
    ]


def _ensure_logger() -> str | None:
    global LOG_PATH
    if LOG_PATH:
        return LOG_PATH
    for d in _log_dirs():
        d_expanded = os.path.expanduser(d)
        try:
            os.makedirs(d_expanded, exist_ok=True)
        except OSError:
            continue
        LOG_PATH = os.path.join(d_expanded, LOG_NAME)
        return LOG_PATH
    LOG_PATH = None
    return None


def resolve_log_path() -> str | None:
    """Return the active log path, creating directories when possible."""

    return _ensure_logger()


class Result:
    def __init__(self, rc: int, out: str, err: str, duration: float):
        self.rc, self.out, self.err, self.duration = rc, out, err, duration


LEVELS = {"TRACE": 10, "INFO": 20, "WARN": 30, "ERROR": 40, "NONE": 100}
LOG_LEVEL = os.environ.get("ZFS_BOOTSTRAP_LOG_LEVEL", "TRACE").upper()


def append_jsonl(path: str, obj: dict):
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(obj, ensure_ascii=False) + "\n")
    except OSError:
        # the log is best-effort; provisioning carries on without it
        pass


def log(level: str, event: str, **fields):
    lvl = LEVELS.get(level.upper(), 100)
    cur = LEVELS.get(LOG_LEVEL, 100)
    if lvl < cur:
        return
    path = _ensure_logger()
    if not path:
        return
    ts = _dt.datetime.now(_dt.timezone.utc).isoformat().replace("+00:00", "Z")
    rec = {"ts": ts, "level": level.upper(), "event": event}
    rec.update(fields)
    append_jsonl(path, rec)


def trace(event: str, **fields):
    log("TRACE", event, **fields)


def _spawn(cmd: Sequence[str], timeout: float, env: dict | None) -> subprocess.CompletedProcess:
    return subprocess.run(
        list(cmd),
        capture_output=True,
        text=True,
        timeout=timeout,
        env=env,
    )


def run(
    cmd: Sequence[str],
    check: bool = True,
    timeout: float = 60.0,
    env: dict | None = None,
) -> Result:
    trace("exec.start", cmd=list(cmd))
    started = time.time()
    try:
        try:
            proc = _spawn(cmd, timeout, env)
        except subprocess.TimeoutExpired:
            # a pending udev event is the usual culprit; settle and try once more
            udev_settle()
            proc = _spawn(cmd, timeout, env)
    except subprocess.TimeoutExpired as exc:
        log("ERROR", "exec.timeout", cmd=list(cmd), timeout=timeout)
        raise CollaboratorError(f"{cmd[0]} timed out after {timeout:.0f}s", cmd=cmd) from exc
    except OSError as exc:
        log("ERROR", "exec.spawn_failed", cmd=list(cmd), error=str(exc))
        raise CollaboratorError(f"{cmd[0]} could not be executed: {exc}", cmd=cmd) from exc
    dur = time.time() - started
    trace("exec.done", cmd=list(cmd), rc=proc.returncode, dur=dur, out=proc.stdout, err=proc.stderr)
    if check and proc.returncode != 0:
        detail = (proc.stderr or proc.stdout or "").strip()
        raise CollaboratorError(
            f"{' '.join(cmd)} exited with {proc.returncode}: {detail}",
            cmd=cmd,
            rc=proc.returncode,
            out=proc.stdout,
            err=proc.stderr,
        )
    return Result(proc.returncode, proc.stdout, proc.stderr, dur)


def udev_settle():
    try:
        subprocess.run(["udevadm", "settle"], check=False)
    except OSError:
        trace("exec.udev_settle_unavailable")
