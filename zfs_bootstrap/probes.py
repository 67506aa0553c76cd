"""Read-only probes over live system state.

Each probe answers True/False or raises :class:`ProbeError` when it cannot
tell. Callers must never read an unknown answer as "needs action": the
actions behind these probes partition disks and create pools.
"""

from __future__ import annotations

import filecmp
import os
import stat
from typing import Iterable, Sequence

from .errors import CollaboratorError, ProbeError
from .executil import Result, run, trace
from .paths import ZPOOL_CACHE_DEFAULT

MODULES_PATH = "/proc/modules"

# systemctl is-enabled states that mean "will be started at boot"
_ENABLED_STATES = {"enabled", "enabled-runtime", "alias", "static", "indirect", "generated", "transient"}
_DISABLED_STATES = {"disabled", "masked", "masked-runtime", "linked", "linked-runtime", "not-found"}


def _query(cmd: Sequence[str], timeout: float = 30.0) -> Result:
    try:
        return run(cmd, check=False, timeout=timeout)
    except CollaboratorError as exc:
        raise ProbeError(f"probe {' '.join(cmd)} could not run: {exc}", cmd=cmd) from exc


def _unknown(cmd: Sequence[str], res: Result) -> ProbeError:
    detail = (res.err or res.out or "").strip()
    return ProbeError(
        f"probe {' '.join(cmd)} gave an unrecognised answer (rc={res.rc}): {detail}",
        cmd=cmd,
        rc=res.rc,
        out=res.out,
        err=res.err,
    )


def package_installed(name: str) -> bool:
    cmd = ["rpm", "-q", name]
    res = _query(cmd)
    if res.rc == 0:
        return True
    if "is not installed" in (res.out or "") + (res.err or ""):
        return False
    raise _unknown(cmd, res)


def packages_installed(names: Iterable[str]) -> bool:
    return all(package_installed(name) for name in names)


def any_package_installed(names: Iterable[str]) -> bool:
    return any(package_installed(name) for name in names)


def module_loaded(name: str, modules_path: str = MODULES_PATH) -> bool:
    try:
        with open(modules_path, "r", encoding="utf-8") as fh:
            for line in fh:
                if line.split(" ", 1)[0] == name:
                    return True
    except OSError as exc:
        raise ProbeError(f"cannot read {modules_path}: {exc}") from exc
    return False


def zfs_available() -> bool:
    """True when the userland tools can talk to the loaded module."""

    res = _query(["zpool", "version"])
    return res.rc == 0


def block_device_exists(path: str) -> bool:
    try:
        st = os.stat(path)
    except FileNotFoundError:
        return False
    except OSError as exc:
        raise ProbeError(f"cannot stat {path}: {exc}") from exc
    return stat.S_ISBLK(st.st_mode)


def partition_in_table(disk: str, number: int) -> bool:
    cmd = ["sgdisk", "-i", str(number), disk]
    res = _query(cmd)
    text = (res.out or "") + (res.err or "")
    if res.rc != 0:
        raise _unknown(cmd, res)
    if "does not exist" in text:
        return False
    if "Partition GUID code" in text:
        return True
    raise _unknown(cmd, res)


def file_exists(path: str) -> bool:
    return os.path.isfile(path)


def pool_exists(name: str) -> bool:
    cmd = ["zpool", "list", "-H", "-o", "name", name]
    res = _query(cmd)
    if res.rc == 0:
        return (res.out or "").strip().splitlines()[:1] == [name]
    if "no such pool" in (res.err or "") + (res.out or ""):
        return False
    raise _unknown(cmd, res)


def pool_cachefile(name: str) -> str:
    cmd = ["zpool", "get", "-H", "-o", "value", "cachefile", name]
    res = _query(cmd)
    if res.rc != 0:
        raise _unknown(cmd, res)
    return (res.out or "").strip()


def cache_file_current(name: str, path: str, default: str = ZPOOL_CACHE_DEFAULT) -> bool:
    """Pool records ``path`` as its cachefile and the file has been written.

    ``zpool get`` prints ``-`` when the property is the built-in default, so
    that answer counts as ``default``. ``none`` means the pool is not cached.
    """

    if not pool_exists(name):
        return False
    value = pool_cachefile(name)
    trace("probes.cachefile", pool=name, value=value, expected=path)
    if value in ("-", ""):
        value = default
    return os.path.normpath(value) == os.path.normpath(path) and os.path.isfile(path)


def unit_file_matches(source: str, systemd_dir: str) -> bool:
    installed = os.path.join(systemd_dir, os.path.basename(source))
    if not os.path.isfile(installed):
        return False
    try:
        same = filecmp.cmp(source, installed, shallow=False)
        mode = stat.S_IMODE(os.stat(installed).st_mode)
    except OSError as exc:
        raise ProbeError(f"cannot compare {installed} with {source}: {exc}") from exc
    return same and mode == 0o644


def unit_enabled(name: str) -> bool:
    cmd = ["systemctl", "is-enabled", name]
    res = _query(cmd)
    state = (res.out or "").strip().splitlines()
    state = state[0].strip() if state else ""
    if state in _ENABLED_STATES:
        return True
    if state in _DISABLED_STATES:
        return False
    if res.rc != 0 and "No such file or directory" in (res.err or ""):
        return False
    raise _unknown(cmd, res)


def units_enabled(names: Iterable[str]) -> bool:
    return all(unit_enabled(name) for name in names)
