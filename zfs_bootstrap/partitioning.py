"""GPT partition creation for the pool (sgdisk)."""

from __future__ import annotations

import os

from . import probes
from .errors import TransientError
from .executil import run, trace, udev_settle


def show_layout(disk: str) -> str:
    return run(["sgdisk", "-p", disk], check=False).out


def reread(disk: str) -> None:
    run(["partprobe", os.path.realpath(disk)], check=True, timeout=60.0)
    udev_settle()


def create_partition(disk: str, number: int, typecode: str, label: str) -> None:
    """Add partition ``number`` spanning the free space, then wait for udev.

    The table entry is only written when missing, so a retry after the
    symlink timed out does not touch the disk again.
    """

    if probes.partition_in_table(disk, number):
        trace("partitioning.exists_in_table", disk=disk, number=number)
    else:
        run(
            [
                "sgdisk",
                "-n", f"{number}:0:0",
                "-t", f"{number}:{typecode}",
                "-c", f"{number}:{label}",
                disk,
            ],
            check=True,
            timeout=60.0,
        )
        reread(disk)
    part = f"{disk}-part{number}"
    if not probes.block_device_exists(part):
        udev_settle()
        raise TransientError(f"partition symlink {part} not yet present")
