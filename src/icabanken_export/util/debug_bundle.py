from __future__ import annotations

import time
import zipfile
from pathlib import Path
from typing import Optional

from .files import ensure_private_dir, open_private


def create_debug_bundle(*, debug_dir: str, log_file: Optional[str] = None, out_dir: str = "data") -> Path:
    """
    Zip the saved failure pages (and the log file, if any) for offline diagnosis.

    Never include the credentials file or exported statements.
    """
    out_root = ensure_private_dir(out_dir)
    out_path = out_root / f"debug_bundle_{time.strftime('%Y%m%d_%H%M%S')}.zip"

    dbg = Path(debug_dir).expanduser()
    with open_private(out_path, "wb") as fh, zipfile.ZipFile(fh, "w", compression=zipfile.ZIP_DEFLATED) as z:
        if log_file:
            log = Path(log_file).expanduser()
            if log.is_file():
                z.write(log, arcname=log.name)

        if dbg.is_dir():
            for p in sorted(dbg.rglob("*")):
                if p.is_file():
                    z.write(p, arcname=str(Path("debug") / p.relative_to(dbg)))

    return out_path
