from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

import click

from stx_core.protocol import STEP_EXTENSION
from stx_core.respack import RespackError, RespackFile
from stx_core.stepfile import StepFile, StepFileError

from .apply import apply_offset
from .errors import ContainerIoFailure, DecodeFailure, EncodeFailure, FileIoFailure, OffsetError

logger = logging.getLogger(__name__)


def is_step_name(name: str) -> bool:
    """Case-insensitive match of the text after the last dot."""
    return name.rsplit(".", 1)[-1].upper() == STEP_EXTENSION


@dataclass
class ItemOutcome:
    name: str
    error: OffsetError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BatchReport:
    source: Path
    outcomes: list[ItemOutcome] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(not o.ok for o in self.outcomes)

    @property
    def succeeded(self) -> list[str]:
        return [o.name for o in self.outcomes if o.ok]

    @property
    def failed(self) -> dict[str, OffsetError]:
        return {o.name: o.error for o in self.outcomes if not o.ok}


def _write_durable(path: Path, data: bytes) -> None:
    with open(path, "wb") as f:
        f.write(data)
        f.flush()  # Durability: commit before the next member
        if hasattr(os, "fdatasync"):
            os.fdatasync(f.fileno())
        else:
            os.fsync(f.fileno())


def _patch_item(report: BatchReport, label: str, patch: Callable[..., None], *args) -> None:
    """Run one item inside its own error boundary and record the outcome."""
    try:
        click.echo(f"Applying offset to {label}... ", nl=False)
        patch(*args)
    except OffsetError as e:
        report.outcomes.append(ItemOutcome(label, e))
        click.echo("ERROR")
        click.echo(f"Error in {label}: {e}", err=True)
    else:
        report.outcomes.append(ItemOutcome(label))
        click.echo("OK")


class ContainerBatchRunner:
    """Packed installs: every step member of STEP.DAT.

    - Members are visited sorted by name.
    - The whole container is rewritten after each member that patches
      cleanly, so an interrupted run keeps every member finished before it.
    - A bad member is reported and skipped.
    """

    def __init__(self, container_path: Path):
        self.container_path = Path(container_path)
        self._reset_stats()

    def _reset_stats(self) -> None:
        self.stats = {
            "members": 0,
            "patched": 0,
            "failed": 0,
            "writes": 0,
        }

    def get_stats(self) -> dict:
        return dict(self.stats)

    def run(self, offset: int) -> BatchReport:
        self._reset_stats()
        try:
            pack = RespackFile.load(self.container_path)
        except (OSError, RespackError) as e:
            raise ContainerIoFailure(f"{self.container_path}: {e}") from e

        report = BatchReport(self.container_path)
        for name in pack.names_sorted():
            if not is_step_name(name):
                logger.debug(f"Skipping non-step member {name}")
                continue

            self.stats["members"] += 1
            _patch_item(report, name, self._patch_member, pack, name, offset)

        self.stats["patched"] = len(report.succeeded)
        self.stats["failed"] = len(report.failed)
        logger.debug(f"Container run finished: {self.stats}")
        return report

    def _patch_member(self, pack: RespackFile, name: str, offset: int) -> None:
        try:
            raw = pack.read_member(name)
        except RespackError as e:
            raise ContainerIoFailure(str(e)) from e

        try:
            step_file = StepFile.from_bytes(raw, name=name)
        except StepFileError as e:
            raise DecodeFailure(str(e)) from e

        apply_offset(step_file, offset)

        try:
            patched = step_file.to_bytes(step_file.version)
        except StepFileError as e:
            raise EncodeFailure(str(e)) from e

        try:
            pack.write_member(name, patched)
        except RespackError as e:
            raise ContainerIoFailure(str(e)) from e

        try:
            buffer = pack.to_bytes()
            _write_durable(self.container_path, buffer)
        except (RespackError, OSError) as e:
            # A failed member keeps its original bytes for later writes.
            pack.write_member(name, raw)
            raise ContainerIoFailure(f"{self.container_path}: {e}") from e

        self.stats["writes"] += 1
        logger.debug(f"Persisted {self.container_path} ({len(buffer)} bytes) after {name}")


class DirectoryBatchRunner:
    """Unpacked installs: every step file directly inside STEP/.

    Entries come in filesystem order. Each file is its own unit of
    persistence and is overwritten in place once patched.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def run(self, offset: int) -> BatchReport:
        try:
            entries = list(self.directory.iterdir())
        except OSError as e:
            raise FileIoFailure(f"{self.directory}: {e}") from e

        report = BatchReport(self.directory)
        for path in entries:
            if path.is_symlink() or not path.is_file():
                continue
            if not is_step_name(path.name):
                logger.debug(f"Skipping {path}")
                continue

            _patch_item(report, click.format_filename(path), self._patch_file, path, offset)

        return report

    def _patch_file(self, path: Path, offset: int) -> None:
        try:
            step_file = StepFile.from_path(path)
        except OSError as e:
            raise FileIoFailure(str(e)) from e
        except StepFileError as e:
            raise DecodeFailure(str(e)) from e

        apply_offset(step_file, offset)

        try:
            patched = step_file.to_bytes(step_file.version)
        except StepFileError as e:
            raise EncodeFailure(str(e)) from e

        try:
            path.write_bytes(patched)
        except OSError as e:
            raise FileIoFailure(str(e)) from e
