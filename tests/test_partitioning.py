import pytest

from zfs_bootstrap import partitioning
from zfs_bootstrap.errors import TransientError

DISK = "/dev/disk/by-id/test-disk"


@pytest.fixture
def patched(monkeypatch, recorder):
    settles = []
    monkeypatch.setattr(partitioning, "run", recorder)
    monkeypatch.setattr(partitioning, "udev_settle", lambda: settles.append(1))
    monkeypatch.setattr(partitioning.os.path, "realpath", lambda p: "/dev/nvme0n1" if p == DISK else p)
    return recorder, settles


def test_create_partition_writes_table_and_rereads(patched, monkeypatch):
    recorder, settles = patched
    devices = set()
    monkeypatch.setattr(partitioning.probes, "partition_in_table", lambda disk, number: False)
    monkeypatch.setattr(
        partitioning.probes,
        "block_device_exists",
        lambda path: devices.add(path) or path == f"{DISK}-part9",
    )

    partitioning.create_partition(DISK, 9, "BF01", "zfs-data")

    assert recorder.calls == [
        ["sgdisk", "-n", "9:0:0", "-t", "9:BF01", "-c", "9:zfs-data", DISK],
        ["partprobe", "/dev/nvme0n1"],
    ]
    assert settles
    assert devices == {f"{DISK}-part9"}


def test_create_partition_never_rewrites_existing_entry(patched, monkeypatch):
    recorder, _ = patched
    monkeypatch.setattr(partitioning.probes, "partition_in_table", lambda disk, number: True)
    monkeypatch.setattr(partitioning.probes, "block_device_exists", lambda path: False)

    with pytest.raises(TransientError):
        partitioning.create_partition(DISK, 9, "BF01", "zfs-data")

    assert not any(cmd[0] == "sgdisk" for cmd in recorder.calls)


def test_show_layout(patched):
    recorder, _ = patched
    partitioning.show_layout(DISK)
    assert recorder.calls == [["sgdisk", "-p", DISK]]
