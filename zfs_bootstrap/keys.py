"""Pool encryption key file (hex format, easy to back up)."""

from __future__ import annotations

import os
import re
import stat

KEY_BYTES = 32
KEY_MODE = 0o600

_HEX_KEY_RE = re.compile(r"^[0-9a-f]{%d}$" % (KEY_BYTES * 2))


def _ensure_file_secure(path: str) -> None:
    os.chmod(path, KEY_MODE)
    st = os.stat(path)
    if stat.S_IMODE(st.st_mode) != KEY_MODE:
        raise PermissionError(f"keyfile {path} must have mode 0{KEY_MODE:o}")


def generate_key(path: str) -> None:
    """Write a fresh random key to ``path``; never overwrites an existing key."""

    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, KEY_MODE)
    with os.fdopen(fd, "w", encoding="ascii") as fh:
        fh.write(os.urandom(KEY_BYTES).hex() + "\n")
        fh.flush()
        os.fsync(fh.fileno())
    _ensure_file_secure(path)


def key_file_ready(path: str) -> bool:
    try:
        st = os.stat(path)
        with open(path, "r", encoding="ascii") as fh:
            content = fh.read().strip()
    except (OSError, UnicodeDecodeError):
        return False
    if stat.S_IMODE(st.st_mode) != KEY_MODE:
        return False
    return bool(_HEX_KEY_RE.match(content))
