"""Host preparation: ZFS repository, packages and kernel module."""

from __future__ import annotations

from typing import Iterable

from . import probes
from .executil import run

DNF_TIMEOUT = 1800
MODPROBE_TIMEOUT = 120


def dist_tag() -> str:
    """Fedora dist suffix, e.g. ``.fc40``."""

    return run(["rpm", "--eval", "%{dist}"], check=True).out.strip()


def release_package_url(template: str) -> str:
    return template.format(dist=dist_tag())


def install_repository(release_url_template: str) -> None:
    run(["dnf", "install", "-y", release_package_url(release_url_template)], check=True, timeout=DNF_TIMEOUT)


def remove_conflicting(names: Iterable[str]) -> None:
    # zfs-fuse ships its own zpool/zfs binaries and shadows OpenZFS
    installed = [name for name in names if probes.package_installed(name)]
    if installed:
        run(["dnf", "remove", "-y", *installed], check=True, timeout=DNF_TIMEOUT)


def install_packages(names: Iterable[str]) -> None:
    run(["dnf", "install", "-y", *names], check=True, timeout=DNF_TIMEOUT)


def load_module(name: str) -> None:
    run(["modprobe", name], check=True, timeout=MODPROBE_TIMEOUT)
