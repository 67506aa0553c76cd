"""Boot-time unit deployment (systemd)."""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Iterable

from .executil import run

UNIT_MODE = 0o644


def _write_file(path: Path, source: Path, mode: int) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    shutil.copyfile(source, tmp_path)
    with open(tmp_path, "rb") as fh:
        os.fsync(fh.fileno())
    os.replace(tmp_path, path)
    os.chmod(path, mode)


def deploy_unit(source: str, systemd_dir: str) -> str:
    """Install ``source`` into ``systemd_dir`` and reload systemd.

    Runs even when the units are already enabled and ``enable_units`` is
    skipped, so a changed unit always takes effect.
    """

    dest = Path(systemd_dir) / Path(source).name
    _write_file(dest, Path(source), UNIT_MODE)
    run(["systemctl", "daemon-reload"], check=True)
    return str(dest)


def enable_units(units: Iterable[str]) -> None:
    run(["systemctl", "daemon-reload"], check=True)
    for unit in units:
        run(["systemctl", "enable", unit], check=True)
