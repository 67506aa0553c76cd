from __future__ import annotations

import os
from pathlib import Path

_DEFAULT_BASE = "/var/lib/zfs-bootstrap"

UNIT_SOURCE_RELPATH = Path("roles") / "zfs" / "files" / "zfs-load-key.service"

# zpool leaves the cachefile property unset ("-") when it names this path
ZPOOL_CACHE_DEFAULT = "/etc/zfs/zpool.cache"


def _expand(path: str) -> str:
    candidate = Path(path).expanduser()
    try:
        return str(candidate.resolve())
    except FileNotFoundError:
        return str(candidate)


def base_path() -> str:
    """Return the base directory for bootstrap logs.

    ``ZFS_BOOTSTRAP_BASE_PATH`` overrides the default so unprivileged test
    runs can point the logs somewhere writable.
    """

    override = os.environ.get("ZFS_BOOTSTRAP_BASE_PATH")
    if override:
        return _expand(override)
    return _expand(_DEFAULT_BASE)


def logs_dir() -> str:
    return str(Path(base_path()) / "logs")


def repo_root() -> Path:
    return Path(__file__).resolve().parent.parent


def default_unit_source() -> str:
    """Location of the key-load unit shipped next to the tool."""

    return str(repo_root() / UNIT_SOURCE_RELPATH)
