"""Per-user runtime directory bootstrap.

The compositor session needs ``XDG_RUNTIME_DIR`` to point at a directory only
the invoking user controls. The path is predictable (``/tmp/<uid>-runtime-dir``)
so a pre-existing entry is only trusted after its ownership is checked.
"""
from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import MutableMapping, Optional

logger = logging.getLogger(__name__)

RUNTIME_DIR_MODE = 0o700


class BootstrapError(RuntimeError):
    """Fatal problem with the runtime directory."""


def runtime_dir_path(base: str | Path = "/tmp", uid: Optional[int] = None) -> Path:
    if uid is None:
        uid = os.geteuid()
    return Path(base) / f"{uid}-runtime-dir"


def ensure_runtime_dir(
    base: str | Path = "/tmp",
    uid: Optional[int] = None,
    environ: Optional[MutableMapping[str, str]] = None,
) -> Path:
    """Create or verify the runtime directory and export ``XDG_RUNTIME_DIR``.

    Raises BootstrapError when the directory cannot be created or inspected,
    or when an existing entry is a symlink, not a directory, or owned by
    another UID. Nothing is created or changed in that case.
    """
    if uid is None:
        uid = os.geteuid()
    if environ is None:
        environ = os.environ
    path = runtime_dir_path(base, uid)

    try:
        st = os.lstat(path)
    except FileNotFoundError:
        st = None
    except OSError as exc:
        raise BootstrapError(f"Failed to stat runtime directory {path}: {exc}") from exc

    if st is None:
        try:
            os.mkdir(path, RUNTIME_DIR_MODE)
            os.chmod(path, RUNTIME_DIR_MODE)
        except OSError as exc:
            raise BootstrapError(f"Failed to create runtime directory {path}: {exc}") from exc
        logger.info("Created runtime directory %s", path)
    else:
        if stat.S_ISLNK(st.st_mode):
            raise BootstrapError(f"XDG_RUNTIME_DIR '{path}' is a symlink; refusing to use it")
        if not stat.S_ISDIR(st.st_mode):
            raise BootstrapError(f"XDG_RUNTIME_DIR '{path}' exists but is not a directory")
        if st.st_uid != uid:
            raise BootstrapError(
                f"XDG_RUNTIME_DIR '{path}' is owned by UID {st.st_uid}, not our UID {uid}"
            )
        logger.debug("Reusing runtime directory %s", path)

    environ["XDG_RUNTIME_DIR"] = str(path)
    return path
