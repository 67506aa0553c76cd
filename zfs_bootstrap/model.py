from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

from .paths import ZPOOL_CACHE_DEFAULT, default_unit_source

Probe = Callable[[], bool]
Action = Callable[[], None]

ZFS_UNITS = (
    "zfs-import-cache.service",
    "zfs-load-key.service",
    "zfs-mount.service",
    "zfs-import.target",
    "zfs.target",
    "zfs-zed.service",
)

ZFS_PACKAGES = ("gdisk", "kernel-devel", "kernel-headers", "zfs")

ZFS_RELEASE_URL = "https://zfsonlinux.org/fedora/zfs-release-3-0{dist}.noarch.rpm"


@dataclass(frozen=True)
class RetryPolicy:
    attempts: int = 1
    interval: float = 1.0

    def __post_init__(self):
        if self.attempts < 1:
            raise ValueError("retry policy needs at least one attempt")
        if self.interval < 0:
            raise ValueError("retry interval cannot be negative")

    @property
    def retryable(self) -> bool:
        return self.attempts > 1


NO_RETRY = RetryPolicy()

# the first attempt checks right after the table write, then up to ten
# one-second polls for udev to publish the by-id symlink
PARTITION_WAIT = RetryPolicy(attempts=11, interval=1.0)


@dataclass(frozen=True)
class Step:
    """One provisioning action guarded by live-state probes.

    ``precondition`` returning true means the artifact is already in place and
    ``action`` must not run. ``postcondition`` defaults to the precondition,
    which fits steps whose "done" test is simply "artifact exists".
    """

    name: str
    precondition: Probe
    action: Action
    postcondition: Optional[Probe] = None
    retry: RetryPolicy = NO_RETRY
    expected: str = ""
    hint: Optional[str] = None

    @property
    def retryable(self) -> bool:
        return self.retry.retryable

    def verify(self) -> bool:
        probe = self.postcondition or self.precondition
        return probe()


@dataclass(frozen=True)
class Run:
    target: str
    steps: tuple[Step, ...]

    def __post_init__(self):
        seen: set[str] = set()
        for step in self.steps:
            if step.name in seen:
                raise ValueError(f"duplicate step name {step.name!r}")
            seen.add(step.name)


@dataclass
class StepOutcome:
    name: str
    status: str  # "executed" | "skipped"
    attempts: int = 0
    duration: float = 0.0


@dataclass
class RunReport:
    target: str
    outcomes: list[StepOutcome] = field(default_factory=list)

    @property
    def executed(self) -> list[str]:
        return [o.name for o in self.outcomes if o.status == "executed"]

    @property
    def skipped(self) -> list[str]:
        return [o.name for o in self.outcomes if o.status == "skipped"]


@dataclass(frozen=True)
class BootstrapConfig:
    target: str
    pool_name: str = "tank"
    partition_number: int = 9
    partition_typecode: str = "BF01"
    partition_label: str = "zfs-data"
    key_file: str = "/etc/zfs/zpool.key"
    cache_file: str = ZPOOL_CACHE_DEFAULT
    unit_source: str = field(default_factory=default_unit_source)
    systemd_dir: str = "/etc/systemd/system"
    units: tuple[str, ...] = ZFS_UNITS
    packages: tuple[str, ...] = ZFS_PACKAGES
    conflicting_packages: tuple[str, ...] = ("zfs-fuse",)
    repo_file: str = "/etc/yum.repos.d/zfs.repo"
    release_url: str = ZFS_RELEASE_URL
    kernel_module: str = "zfs"
    partition_wait: RetryPolicy = PARTITION_WAIT

    @property
    def partition_path(self) -> str:
        # by-id partitions are published as <disk>-part<N>
        return f"{self.target}-part{self.partition_number}"
