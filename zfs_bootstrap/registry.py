"""Declares the ordered provisioning steps for one target disk."""

from __future__ import annotations

from . import keys, packages, partitioning, pool, probes, services
from .model import BootstrapConfig, Run, Step


def host_steps(config: BootstrapConfig) -> list[Step]:
    return [
        Step(
            name="conflicting-packages-remove",
            precondition=lambda: not probes.any_package_installed(config.conflicting_packages),
            action=lambda: packages.remove_conflicting(config.conflicting_packages),
            expected=f"none of {', '.join(config.conflicting_packages)} installed",
        ),
        Step(
            name="zfs-repository",
            precondition=lambda: probes.file_exists(config.repo_file),
            action=lambda: packages.install_repository(config.release_url),
            expected=f"repository file {config.repo_file} present",
        ),
        Step(
            name="zfs-packages",
            precondition=lambda: probes.packages_installed(config.packages),
            action=lambda: packages.install_packages(config.packages),
            expected=f"packages {' '.join(config.packages)} installed",
        ),
        Step(
            name="zfs-module",
            precondition=lambda: probes.module_loaded(config.kernel_module) and probes.zfs_available(),
            action=lambda: packages.load_module(config.kernel_module),
            expected=f"kernel module {config.kernel_module} loaded and zpool responding",
            hint="you may need to reboot and try again, or check dmesg for errors",
        ),
    ]


def pool_steps(config: BootstrapConfig) -> list[Step]:
    part = config.partition_path
    return [
        Step(
            name="partition-create",
            precondition=lambda: probes.block_device_exists(part),
            action=lambda: partitioning.create_partition(
                config.target,
                config.partition_number,
                config.partition_typecode,
                config.partition_label,
            ),
            retry=config.partition_wait,
            expected=f"partition {part} is a block device",
        ),
        Step(
            name="key-generate",
            precondition=lambda: probes.file_exists(config.key_file),
            action=lambda: keys.generate_key(config.key_file),
            postcondition=lambda: keys.key_file_ready(config.key_file),
            expected=f"key file {config.key_file} with mode 0600",
        ),
        Step(
            name="pool-create",
            precondition=lambda: probes.pool_exists(config.pool_name),
            action=lambda: pool.create_pool(config.pool_name, part, config.key_file),
            retry=config.partition_wait,
            expected=f"pool {config.pool_name} exists",
        ),
        Step(
            name="service-deploy",
            precondition=lambda: probes.unit_file_matches(config.unit_source, config.systemd_dir),
            action=lambda: services.deploy_unit(config.unit_source, config.systemd_dir),
            expected=f"unit {config.unit_source} installed in {config.systemd_dir}",
        ),
        Step(
            name="service-enable",
            precondition=lambda: probes.units_enabled(config.units),
            action=lambda: services.enable_units(config.units),
            expected=f"units {' '.join(config.units)} enabled",
        ),
        Step(
            name="cache-write",
            precondition=lambda: probes.cache_file_current(config.pool_name, config.cache_file),
            action=lambda: pool.set_cachefile(config.pool_name, config.cache_file),
            expected=f"pool {config.pool_name} cached in {config.cache_file}",
        ),
    ]


def build_host_run(config: BootstrapConfig) -> Run:
    return Run(target=config.target, steps=tuple(host_steps(config)))


def build_run(config: BootstrapConfig, include_host: bool = True) -> Run:
    steps = host_steps(config) if include_host else []
    steps += pool_steps(config)
    return Run(target=config.target, steps=tuple(steps))
