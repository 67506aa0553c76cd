import stat

import pytest

from zfs_bootstrap import keys


def test_generate_key_writes_hex_with_restrictive_mode(tmp_path):
    path = tmp_path / "etc" / "zfs" / "zpool.key"
    keys.generate_key(str(path))

    content = path.read_text(encoding="ascii")
    assert content.endswith("\n")
    assert len(content.strip()) == 64
    int(content.strip(), 16)
    assert stat.S_IMODE(path.stat().st_mode) == 0o600
    assert keys.key_file_ready(str(path))


def test_generate_key_never_overwrites(tmp_path):
    path = tmp_path / "zpool.key"
    path.write_text("existing\n", encoding="ascii")
    with pytest.raises(FileExistsError):
        keys.generate_key(str(path))
    assert path.read_text(encoding="ascii") == "existing\n"


def test_key_file_ready_rejects_bad_keys(tmp_path):
    path = tmp_path / "zpool.key"
    assert not keys.key_file_ready(str(path))

    path.write_text("a" * 64 + "\n", encoding="ascii")
    path.chmod(0o644)
    assert not keys.key_file_ready(str(path))

    path.chmod(0o600)
    assert keys.key_file_ready(str(path))

    path.write_text("not-hex\n", encoding="ascii")
    assert not keys.key_file_ready(str(path))
