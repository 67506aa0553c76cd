import ast
import sys
import threading
from collections import defaultdict
from pathlib import Path
from types import SimpleNamespace
from typing import Dict, Iterable, Set

import pytest

_ROOT_DIR = Path(__file__).absolute().parent.parent
_PACKAGE_DIR = (_ROOT_DIR / "zfs_bootstrap").absolute()

_EXECUTED_LINES: Dict[Path, Set[int]] = defaultdict(set)
_CANDIDATE_LINES: Dict[Path, Set[int]] = {}
_PREVIOUS_TRACE = None
_TRACE_ACTIVE = False


class RunRecorder:
    """Stands in for ``executil.run``: records commands, replays results."""

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []

    def __call__(self, cmd, **kwargs):
        self.calls.append(list(cmd))
        res = self.responses.get(tuple(cmd))
        if res is None:
            res = SimpleNamespace(rc=0, out="", err="", duration=0.0)
        if isinstance(res, Exception):
            raise res
        return res


@pytest.fixture
def recorder():
    return RunRecorder()


@pytest.fixture(autouse=True)
def _isolated_log(tmp_path, monkeypatch):
    from zfs_bootstrap import executil

    monkeypatch.setattr(executil, "LOG_DIRS", [str(tmp_path / "logs")])
    monkeypatch.setattr(executil, "LOG_PATH", None)


def _statement_lines(path: Path) -> Set[int]:
    source = path.read_text(encoding="utf-8")
    try:
        tree = ast.parse(source, filename=str(path))
    except SyntaxError:
        return set()
    lines: Set[int] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Expr) and isinstance(node.value, ast.Constant):
            continue
        if isinstance(node, ast.stmt):
            lines.add(node.lineno)
    return lines


def _iter_python_files(directory: Path) -> Iterable[Path]:
    for path in directory.rglob("*.py"):
        if path.is_file():
            yield path.absolute()


for file_path in _iter_python_files(_PACKAGE_DIR):
    _CANDIDATE_LINES[file_path] = _statement_lines(file_path)


def _trace(frame, event, arg):
    if event != "line":
        return _trace
    filename = Path(frame.f_code.co_filename)
    if filename in _CANDIDATE_LINES:
        _EXECUTED_LINES[filename].add(frame.f_lineno)
    return _trace


def pytest_sessionstart(session):
    global _PREVIOUS_TRACE, _TRACE_ACTIVE
    if _TRACE_ACTIVE or sys.gettrace() is not None:
        # another tracer (debugger, coverage.py) owns the hook
        return
    _TRACE_ACTIVE = True
    _EXECUTED_LINES.clear()
    _PREVIOUS_TRACE = sys.gettrace()
    sys.settrace(_trace)
    threading.settrace(_trace)


def pytest_sessionfinish(session, exitstatus):
    global _TRACE_ACTIVE
    if not _TRACE_ACTIVE:
        return
    _TRACE_ACTIVE = False
    sys.settrace(_PREVIOUS_TRACE)
    threading.settrace(None)
    _report_coverage(session)


def _report_coverage(session) -> None:
    terminal = session.config.pluginmanager.get_plugin("terminalreporter")
    write_line = terminal.write_line if terminal else print

    total = covered = 0
    write_line("")
    write_line("Statement coverage for 'zfs_bootstrap':")
    for path in sorted(_CANDIDATE_LINES):
        candidates = _CANDIDATE_LINES[path]
        if not candidates:
            continue
        hit = len(_EXECUTED_LINES.get(path, set()) & candidates)
        total += len(candidates)
        covered += hit
        write_line(f"  {str(path.relative_to(_ROOT_DIR)):<40} {hit:>4}/{len(candidates):<4} {hit / len(candidates) * 100.0:6.1f}%")
    if total:
        write_line(f"  {'TOTAL':<40} {covered:>4}/{total:<4} {covered / total * 100.0:6.1f}%")
