"""Target disk validation and start-up prerequisites."""

from __future__ import annotations

import glob
import os
import re
from typing import Callable

from . import probes
from .errors import ValidationError
from .executil import trace

BY_ID_DIR = "/dev/disk/by-id"
EXAMPLE_TARGET = "/dev/disk/by-id/nvme-Samsung_SSD_990_PRO_1TB_XXXXXX"

_PARTITION_RE = re.compile(r"-part\d+$")


def _is_candidate(name: str) -> bool:
    if name.startswith("dm-") or name.startswith("lvm-"):
        return False
    return not _PARTITION_RE.search(name)


def list_candidates(by_id_dir: str = BY_ID_DIR) -> list[str]:
    """Whole-disk by-id entries, minus device-mapper, partition and LVM links."""

    entries = sorted(glob.glob(os.path.join(by_id_dir, "*")))
    return [path for path in entries if _is_candidate(os.path.basename(path))]


def validate_target(target: str, by_id_dir: str = BY_ID_DIR) -> str:
    """Return ``target`` normalised, or raise :class:`ValidationError`.

    Only stable ``/dev/disk/by-id`` names are accepted so that the partition
    path derived from the disk keeps naming the same hardware across boots.
    """

    if not target:
        raise ValidationError("a target disk is required", candidates=list_candidates(by_id_dir))

    prefix = by_id_dir.rstrip("/") + "/"
    normalized = os.path.normpath(target)
    if not normalized.startswith(prefix) or "/" in normalized[len(prefix):]:
        raise ValidationError(
            f"disk must be a {prefix} path (example: {EXAMPLE_TARGET})",
            candidates=list_candidates(by_id_dir),
        )
    name = normalized[len(prefix):]
    if not _is_candidate(name):
        raise ValidationError(
            f"{normalized} is not a whole disk",
            candidates=list_candidates(by_id_dir),
        )
    if not probes.block_device_exists(normalized):
        raise ValidationError(
            f"{normalized} does not exist or is not a block device",
            candidates=list_candidates(by_id_dir),
        )
    trace("devices.target", target=normalized, resolved=os.path.realpath(normalized))
    return normalized


def require_root(geteuid: Callable[[], int] | None = None) -> None:
    if (geteuid or os.geteuid)() != 0:
        raise ValidationError("this tool must be run as root")


def require_file(path: str, hint: str | None = None) -> None:
    if not os.path.isfile(path):
        message = f"{path} not found"
        if hint:
            message = f"{message}; {hint}"
        raise ValidationError(message)
