"""CLI entrypoint for the ZFS bootstrap."""

from __future__ import annotations

import argparse
import json
import sys
import time
from typing import Any, Dict, NoReturn, Optional

from . import devices, partitioning, pool, registry, report
from .errors import CollaboratorError, StepFailed, ValidationError
from .executil import append_jsonl, log, resolve_log_path
from .model import BootstrapConfig, RunReport
from .paths import UNIT_SOURCE_RELPATH
from .sequencer import Sequencer

RESULT_CODES: Dict[str, int] = {
    "BOOTSTRAP_OK": 0,
    "FAIL_VALIDATION": 1,
    "FAIL_STEP": 1,
    "FAIL_COLLABORATOR": 1,
    "FAIL_UNHANDLED": 1,
}

JSON_OUTPUT_ENABLED = True
CLI_START_MONO = time.perf_counter()


class _Parser(argparse.ArgumentParser):
    """Argument errors are validation failures (exit 1), not usage errors."""

    def error(self, message: str) -> NoReturn:  # type: ignore[override]
        self.print_usage(sys.stderr)
        raise ValidationError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _Parser(
        prog="zfs-bootstrap",
        description="Create an encrypted ZFS pool on a Fedora host.",
    )
    parser.add_argument("device", nargs="?", default=None, help="target disk, a /dev/disk/by-id/ path")
    parser.add_argument("--pool-name", default="tank", help="pool name (default tank)")
    parser.add_argument(
        "--skip-host-setup",
        action="store_true",
        help="do not touch packages or the kernel module",
    )
    parser.add_argument("--json", dest="json", action="store_true", default=True)
    parser.add_argument("--no-json", dest="json", action="store_false")
    return parser


def _json_requested(argv: list[str]) -> bool:
    """Read --json/--no-json ahead of parsing so argument errors honour it."""

    enabled = True
    for arg in argv:
        if arg == "--":
            break
        if arg == "--json":
            enabled = True
        elif arg == "--no-json":
            enabled = False
    return enabled


def _emit_result(kind: str, extra: Optional[Dict[str, Any]] = None) -> NoReturn:
    payload: Dict[str, Any] = {"result": kind, "ts": int(time.time())}
    if extra:
        payload.update(extra)
    log_path = resolve_log_path()
    payload["log_path"] = log_path
    payload["timing_total_ms"] = int(max(0.0, (time.perf_counter() - CLI_START_MONO) * 1000))
    if log_path:
        append_jsonl(log_path, payload)
    if JSON_OUTPUT_ENABLED:
        print(json.dumps(payload, sort_keys=True, separators=(",", ":")))
    raise SystemExit(RESULT_CODES.get(kind, 1))


def _fail(kind: str, exc: Exception, device: Optional[str]) -> NoReturn:
    for line in report.explain_failure(exc):
        print(line, file=sys.stderr)
    extra: Dict[str, Any] = {"device": device, "error": str(exc)}
    if isinstance(exc, StepFailed):
        extra.update({"step": exc.step, "expected": exc.expected, "observed": exc.observed})
    elif isinstance(exc, CollaboratorError):
        extra.update({"step": exc.step, "cmd": exc.cmd, "rc": exc.rc, "stderr": exc.err})
    elif isinstance(exc, ValidationError) and exc.candidates:
        extra["candidates"] = exc.candidates
    log("ERROR", "cli.failed", kind=kind, **extra)
    _emit_result(kind, extra)


def _prepare(args: argparse.Namespace) -> BootstrapConfig:
    if not args.device:
        raise ValidationError(
            f"usage: zfs-bootstrap {devices.BY_ID_DIR}/<disk-id>",
            candidates=devices.list_candidates(),
        )
    devices.require_root()
    target = devices.validate_target(args.device)
    config = BootstrapConfig(target=target, pool_name=args.pool_name)
    devices.require_file(
        config.unit_source,
        hint=f"run this tool from a checkout that ships {UNIT_SOURCE_RELPATH}",
    )
    return config


def _execute(config: BootstrapConfig, include_host: bool) -> RunReport:
    sequencer = Sequencer(listener=report.step_listener)
    combined = RunReport(target=config.target)
    if include_host:
        report.say("Preparing host (ZFS repository, packages, kernel module)...")
        combined.outcomes += sequencer.execute(registry.build_host_run(config)).outcomes
    report.note()
    report.note("Current partition layout:")
    report.note(partitioning.show_layout(config.target))
    combined.outcomes += sequencer.execute(registry.build_run(config, include_host=False)).outcomes
    return combined


def _main_impl(argv: Optional[list[str]] = None) -> int:
    global JSON_OUTPUT_ENABLED
    parser = build_parser()
    device: Optional[str] = None
    JSON_OUTPUT_ENABLED = _json_requested(sys.argv[1:] if argv is None else argv)
    try:
        args = parser.parse_args(argv)
        JSON_OUTPUT_ENABLED = args.json
        device = args.device
        config = _prepare(args)
    except ValidationError as exc:
        _fail("FAIL_VALIDATION", exc, device)

    report.banner(config)
    try:
        run_report = _execute(config, include_host=not args.skip_host_setup)
    except StepFailed as exc:
        _fail("FAIL_STEP", exc, config.target)
    except CollaboratorError as exc:
        _fail("FAIL_COLLABORATOR", exc, config.target)
    except Exception as exc:  # noqa: BLE001
        _fail("FAIL_UNHANDLED", exc, config.target)

    report.note()
    report.say("ZFS setup complete!")
    report.emit_lines(report.summary_lines(run_report))
    report.note()
    report.note(pool.status(config.pool_name))
    report.note(pool.datasets(config.pool_name))
    report.emit_lines(report.completion_notes(config))
    _emit_result(
        "BOOTSTRAP_OK",
        {
            "device": config.target,
            "pool": config.pool_name,
            "executed": run_report.executed,
            "skipped": run_report.skipped,
        },
    )


def main(argv: Optional[list[str]] = None) -> int:
    try:
        return _main_impl(argv)
    except SystemExit:
        raise
    except Exception as exc:  # noqa: BLE001
        _fail("FAIL_UNHANDLED", exc, None)


if __name__ == "__main__":
    sys.exit(main())
