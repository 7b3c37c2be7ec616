from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Union


# Exports, logs and saved bank pages all hold account numbers and balances: owner access only.
DIR_MODE = 0o700
FILE_MODE = 0o600


def ensure_private_dir(path: Union[str, Path]) -> Path:
    out = Path(path).expanduser()
    if not out.is_dir():
        out.mkdir(parents=True, mode=DIR_MODE)
    return out


def open_private(path: Union[str, Path], mode: str = "w", *, encoding: Optional[str] = "utf-8"):
    """
    Open `path` for writing ("w", "a", "wb", "ab"), creating it with FILE_MODE.
    """
    flags = os.O_WRONLY | os.O_CREAT | (os.O_APPEND if "a" in mode else os.O_TRUNC)
    fd = os.open(path, flags, FILE_MODE)
    # An existing file keeps its old mode through os.open.
    os.chmod(path, FILE_MODE)
    if "b" in mode:
        return os.fdopen(fd, mode)
    return os.fdopen(fd, mode, encoding=encoding)


def write_private_text(path: Union[str, Path], text: str) -> None:
    with open_private(path, "w") as f:
        f.write(text)


def write_private_bytes(path: Union[str, Path], data: bytes) -> None:
    with open_private(path, "wb") as f:
        f.write(data)
