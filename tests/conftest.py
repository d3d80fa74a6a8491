"""Shared builders for step files and containers."""
from pathlib import Path

import pytest

from stx_core.respack import RespackFile
from stx_core.stepfile import Block, LegacyMode, Split, StepData, StepFile, StepVersion

FIRST_DELAYS = [100, 0, -50]
LATER_DELAY = 1234


def _make_step_file(
    version=StepVersion.STF2,
    first_delays=FIRST_DELAYS,
    no_splits=(),
    empty_first=(),
    name="TEST.STX",
) -> StepFile:
    step = StepFile(version, name=name)
    for mode in LegacyMode:
        if mode in no_splits:
            splits = []
        else:
            first = [] if mode in empty_first else [Block(delay_ms=d, bpm=150.0) for d in first_delays]
            splits = [Split(first), Split([Block(delay_ms=LATER_DELAY, bpm=150.0)])]
        step.set_step_data(version, StepData(mode, splits))
    return step


def _delays(step: StepFile, mode: LegacyMode) -> list[list[int]]:
    return [[b.delay_ms for b in split.blocks] for split in step.read_step_data(mode).splits]


def _write_container(path: Path, members: dict[str, bytes]) -> Path:
    pack = RespackFile()
    for name, data in members.items():
        pack.add_member(name, data)
    path.write_bytes(pack.to_bytes())
    return path


@pytest.fixture
def make_step():
    return _make_step_file


@pytest.fixture
def delays():
    return _delays


@pytest.fixture
def write_container():
    return _write_container
