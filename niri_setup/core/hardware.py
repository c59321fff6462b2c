"""Graphics hardware probing."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional


def find_render_device(dri_dir: str | Path = "/dev/dri", prefix: str = "renderD") -> Optional[Path]:
    """Return the lexicographically first DRM render node, or None."""
    try:
        names = os.listdir(dri_dir)
    except OSError:
        return None
    nodes = sorted(name for name in names if name.startswith(prefix))
    if not nodes:
        return None
    return Path(dri_dir) / nodes[0]


def device_accessible(path: str | Path) -> tuple[bool, str]:
    """Try to open ``path`` for reading; return (ok, error text)."""
    try:
        with open(path, "rb"):
            pass
    except OSError as exc:
        return False, str(exc)
    return True, ""
