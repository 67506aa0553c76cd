"""Encrypted pool creation and cache file handling (zpool)."""

from __future__ import annotations

from . import probes
from .errors import TransientError
from .executil import run

ZPOOL_TIMEOUT = 300.0

POOL_PROPERTIES = (
    ("ashift", "12"),
    ("autotrim", "on"),
)

FILESYSTEM_PROPERTIES = (
    ("acltype", "posixacl"),
    ("xattr", "sa"),
    ("dnodesize", "auto"),
    ("normalization", "formD"),
    ("relatime", "on"),
    ("canmount", "off"),
    ("mountpoint", "none"),
    ("compression", "zstd"),
    ("encryption", "aes-256-gcm"),
    ("keyformat", "hex"),
)


def create_command(pool_name: str, device: str, key_file: str) -> list[str]:
    cmd = ["zpool", "create", "-f"]
    for key, value in POOL_PROPERTIES:
        cmd += ["-o", f"{key}={value}"]
    for key, value in FILESYSTEM_PROPERTIES:
        cmd += ["-O", f"{key}={value}"]
    cmd += ["-O", f"keylocation=file://{key_file}"]
    cmd += [pool_name, device]
    return cmd


def create_pool(pool_name: str, device: str, key_file: str) -> None:
    if not probes.block_device_exists(device):
        raise TransientError(f"partition symlink {device} not yet present")
    run(create_command(pool_name, device, key_file), check=True, timeout=ZPOOL_TIMEOUT)


def set_cachefile(pool_name: str, cache_file: str) -> None:
    run(["zpool", "set", f"cachefile={cache_file}", pool_name], check=True)


def status(pool_name: str) -> str:
    res = run(["zpool", "status", pool_name], check=False)
    return res.out or res.err


def datasets(pool_name: str) -> str:
    res = run(["zfs", "list", "-r", pool_name], check=False)
    return res.out or res.err
