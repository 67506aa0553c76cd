import pytest

from zfs_bootstrap import devices
from zfs_bootstrap.errors import ValidationError


@pytest.fixture
def by_id(tmp_path):
    root = tmp_path / "by-id"
    root.mkdir()
    for name in (
        "nvme-Samsung_SSD_990_PRO_1TB_S1",
        "nvme-Samsung_SSD_990_PRO_1TB_S1-part1",
        "nvme-Samsung_SSD_990_PRO_1TB_S1-part9",
        "ata-WDC_WD40EFRX_W1",
        "dm-name-luks-root",
        "dm-uuid-CRYPT-LUKS2-abc",
        "lvm-pv-uuid-xyz",
    ):
        (root / name).write_text("", encoding="utf-8")
    return root


def test_list_candidates_filters_dm_partitions_and_lvm(by_id):
    assert devices.list_candidates(str(by_id)) == [
        str(by_id / "ata-WDC_WD40EFRX_W1"),
        str(by_id / "nvme-Samsung_SSD_990_PRO_1TB_S1"),
    ]


@pytest.mark.parametrize(
    "target",
    [
        "",
        "/dev/sda",
        "/dev/nvme0n1",
        "{root}/../../sda",
        "{root}/nvme-Samsung_SSD_990_PRO_1TB_S1-part9",
        "{root}/dm-name-luks-root",
        "{root}/sub/disk",
    ],
)
def test_validate_target_rejects_outside_namespace(by_id, monkeypatch, target):
    probed = []
    monkeypatch.setattr(devices.probes, "block_device_exists", lambda path: probed.append(path) or True)

    with pytest.raises(ValidationError) as excinfo:
        devices.validate_target(target.format(root=by_id), by_id_dir=str(by_id))

    assert probed == []
    assert str(by_id / "ata-WDC_WD40EFRX_W1") in excinfo.value.candidates


def test_validate_target_requires_block_device(by_id, monkeypatch):
    monkeypatch.setattr(devices.probes, "block_device_exists", lambda path: False)
    target = str(by_id / "nvme-Samsung_SSD_990_PRO_1TB_S1")
    with pytest.raises(ValidationError) as excinfo:
        devices.validate_target(target, by_id_dir=str(by_id))
    assert "not a block device" in str(excinfo.value)


def test_validate_target_accepts_by_id_disk(by_id, monkeypatch):
    monkeypatch.setattr(devices.probes, "block_device_exists", lambda path: True)
    target = str(by_id / "nvme-Samsung_SSD_990_PRO_1TB_S1")
    assert devices.validate_target(target + "/", by_id_dir=str(by_id)) == target


def test_require_root():
    devices.require_root(geteuid=lambda: 0)
    with pytest.raises(ValidationError):
        devices.require_root(geteuid=lambda: 1000)


def test_require_file(tmp_path):
    present = tmp_path / "zfs-load-key.service"
    present.write_text("[Unit]\n", encoding="utf-8")
    devices.require_file(str(present))
    with pytest.raises(ValidationError) as excinfo:
        devices.require_file(str(tmp_path / "missing.service"), hint="run from the repository")
    assert "run from the repository" in str(excinfo.value)
