import struct

import pytest

from stx_core.protocol import MAGIC_STEP_FILE, STEP_HEADER_FMT, SECTION_HEADER_FMT
from stx_core.stepfile import (
    Block,
    LegacyMode,
    Split,
    StepData,
    StepFile,
    StepFileError,
    StepVersion,
)


def test_legacy_modes_iterate_in_stable_order():
    assert [m.name for m in LegacyMode] == ["NORMAL", "HARD", "CRAZY", "FREESTYLE", "NIGHTMARE"]
    assert len({m.tag for m in LegacyMode}) == len(LegacyMode)


def test_decode_keeps_block_fields():
    step = StepFile(StepVersion.STF2)
    block = Block(delay_ms=-40, bpm=150.0, beats_per_measure=3, beat_split=8, speed=0.5, rows=b"\x01\x00\x02")
    step.set_step_data(StepVersion.STF2, StepData(LegacyMode.HARD, [Split([block]), Split()]))

    loaded = StepFile.from_bytes(step.to_bytes(), name="X.STX")
    data = loaded.read_step_data(LegacyMode.HARD)

    assert loaded.name == "X.STX"
    assert loaded.version == StepVersion.STF2
    assert loaded.modes == (LegacyMode.HARD,)
    assert data.splits[0].blocks == [block]
    assert data.splits[1].blocks == []


def test_missing_mode_reads_as_no_splits():
    step = StepFile(StepVersion.STF1)
    assert step.read_step_data(LegacyMode.NIGHTMARE).splits == []


def test_convert_stf2_to_stf1_drops_speed(make_step):
    step = make_step(StepVersion.STF2)
    data = step.read_step_data(LegacyMode.NORMAL)
    data.splits[0].blocks[0].speed = 2.0
    step.set_step_data(step.version, data)

    old = StepFile.from_bytes(step.to_bytes(StepVersion.STF1))

    assert old.version == StepVersion.STF1
    block = old.read_step_data(LegacyMode.NORMAL).splits[0].blocks[0]
    assert block.delay_ms == 100
    assert block.speed == 1.0


def test_set_step_data_rejects_foreign_version(make_step):
    step = make_step(StepVersion.STF1)
    data = step.read_step_data(LegacyMode.NORMAL)
    with pytest.raises(StepFileError, match="STF2"):
        step.set_step_data(StepVersion.STF2, data)


def test_out_of_range_delay_cannot_be_encoded():
    step = StepFile(StepVersion.STF2)
    data = StepData(LegacyMode.NORMAL, [Split([Block(delay_ms=2**31)])])
    with pytest.raises(StepFileError, match="Cannot encode"):
        step.set_step_data(StepVersion.STF2, data)


def test_unsupported_version():
    raw = struct.pack(STEP_HEADER_FMT, MAGIC_STEP_FILE, 9, 0)
    with pytest.raises(StepFileError, match="version 9"):
        StepFile.from_bytes(raw)


@pytest.mark.parametrize(
    "raw, message",
    [
        (b"", "Truncated step header"),
        (b"NOPE\x02\x00\x00\x00", "magic"),
        (struct.pack(STEP_HEADER_FMT, MAGIC_STEP_FILE, 2, 1), "Truncated section header"),
        (
            struct.pack(STEP_HEADER_FMT, MAGIC_STEP_FILE, 2, 1) + struct.pack(SECTION_HEADER_FMT, b"ZZZZ", 0),
            "Unknown section tag",
        ),
        (
            struct.pack(STEP_HEADER_FMT, MAGIC_STEP_FILE, 2, 1) + struct.pack(SECTION_HEADER_FMT, b"NORM", 10),
            "Torn NORMAL section",
        ),
        (
            struct.pack(STEP_HEADER_FMT, MAGIC_STEP_FILE, 2, 2)
            + struct.pack(SECTION_HEADER_FMT, b"NORM", 0)
            + struct.pack(SECTION_HEADER_FMT, b"NORM", 0),
            "Duplicate NORMAL",
        ),
        (struct.pack(STEP_HEADER_FMT, MAGIC_STEP_FILE, 2, 0) + b"\x00", "trailing bytes"),
    ],
)
def test_malformed_files_are_rejected(raw, message):
    with pytest.raises(StepFileError, match=message):
        StepFile.from_bytes(raw)


def test_damaged_section_fails_only_when_read():
    payload = b"\x01\x00"  # One split, block count missing
    raw = (
        struct.pack(STEP_HEADER_FMT, MAGIC_STEP_FILE, 2, 1)
        + struct.pack(SECTION_HEADER_FMT, b"CRZY", len(payload))
        + payload
    )
    step = StepFile.from_bytes(raw)

    assert step.read_step_data(LegacyMode.NORMAL).splits == []
    with pytest.raises(StepFileError, match="Truncated block count"):
        step.read_step_data(LegacyMode.CRAZY)


def test_from_path(tmp_path, make_step):
    p = tmp_path / "song.stx"
    p.write_bytes(make_step().to_bytes())

    step = StepFile.from_path(p)

    assert step.name == "song.stx"
    assert step.modes == tuple(LegacyMode)
