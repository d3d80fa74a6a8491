from __future__ import annotations

from enum import Enum
from pathlib import Path

from stx_core.protocol import STEP_DAT_FILE, STEP_DIR


class SourceKind(Enum):
    CONTAINER_FILE = "container"
    DIRECTORY = "directory"
    NOT_FOUND = "not_found"


def locate_source(workdir: Path) -> SourceKind:
    """Find where the step files of an install live.

    Packed and unpacked installs are mutually exclusive in practice, so a
    STEP.DAT file wins and the STEP directory is only checked without one.
    """
    workdir = Path(workdir)

    if (workdir / STEP_DAT_FILE).is_file():
        return SourceKind.CONTAINER_FILE

    if (workdir / STEP_DIR).is_dir():
        return SourceKind.DIRECTORY

    return SourceKind.NOT_FOUND
