"""STX step file codec.

A step file carries one chart section per legacy mode. Sections are kept as
raw payload bytes and decoded on demand, so a damaged section only fails the
read that touches it.
"""
from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from pathlib import Path

from stx_core.ints import saturating_add
from stx_core.protocol import (
    MAGIC_STEP_FILE,
    STEP_HEADER_FMT,
    STEP_HEADER_LEN,
    SECTION_HEADER_FMT,
    SECTION_HEADER_LEN,
    COUNT_FMT,
    COUNT_LEN,
    ROWS_LEN_FMT,
    ROWS_LEN_LEN,
    BLOCK_FMT_STF1,
    BLOCK_LEN_STF1,
    BLOCK_FMT_STF2,
    BLOCK_LEN_STF2,
)


class StepFileError(ValueError):
    """Step file bytes could not be decoded or encoded."""


class StepVersion(IntEnum):
    STF1 = 1  # No per-block scroll speed
    STF2 = 2


class LegacyMode(Enum):
    """Legacy chart slots, in canonical order.

    Every older game build reads the timing of its own slot, so all slots
    carry the same logical chart and must be patched together.
    """

    NORMAL = b"NORM"
    HARD = b"HARD"
    CRAZY = b"CRZY"
    FREESTYLE = b"FRST"
    NIGHTMARE = b"NGHT"

    @property
    def tag(self) -> bytes:
        return self.value


_MODES_BY_TAG = {mode.tag: mode for mode in LegacyMode}


@dataclass
class Block:
    delay_ms: int
    bpm: float = 120.0
    beats_per_measure: int = 4
    beat_split: int = 4
    speed: float = 1.0
    rows: bytes = b""

    def shift(self, delta_ms: int) -> None:
        self.delay_ms = saturating_add(self.delay_ms, delta_ms)


@dataclass
class Split:
    blocks: list[Block] = field(default_factory=list)


@dataclass
class StepData:
    mode: LegacyMode
    splits: list[Split] = field(default_factory=list)


def _as_version(version: int) -> StepVersion:
    try:
        return StepVersion(version)
    except ValueError:
        raise StepFileError(f"Unsupported step file version {version}") from None


def _take(fmt: str, size: int, buf: bytes, pos: int, what: str) -> tuple[tuple, int]:
    if pos + size > len(buf):
        raise StepFileError(f"Truncated {what} at offset {pos}")
    return struct.unpack_from(fmt, buf, pos), pos + size


def encode_step_data(step_data: StepData, version: StepVersion) -> bytes:
    """Encode one chart section payload."""
    version = _as_version(version)
    out = bytearray()
    try:
        out += struct.pack(COUNT_FMT, len(step_data.splits))
        for split in step_data.splits:
            out += struct.pack(COUNT_FMT, len(split.blocks))
            for b in split.blocks:
                if version == StepVersion.STF1:
                    out += struct.pack(
                        BLOCK_FMT_STF1, b.delay_ms, b.bpm, b.beats_per_measure, b.beat_split
                    )
                else:
                    out += struct.pack(
                        BLOCK_FMT_STF2, b.delay_ms, b.bpm, b.speed, b.beats_per_measure, b.beat_split
                    )
                out += struct.pack(ROWS_LEN_FMT, len(b.rows))
                out += bytes(b.rows)
    except (struct.error, OverflowError) as e:
        raise StepFileError(f"Cannot encode {step_data.mode.name} section: {e}") from e
    return bytes(out)


def decode_step_data(mode: LegacyMode, payload: bytes, version: StepVersion) -> StepData:
    """Decode one chart section payload."""
    version = _as_version(version)
    if version == StepVersion.STF1:
        block_fmt, block_len = BLOCK_FMT_STF1, BLOCK_LEN_STF1
    else:
        block_fmt, block_len = BLOCK_FMT_STF2, BLOCK_LEN_STF2

    data = StepData(mode)
    (split_count,), pos = _take(COUNT_FMT, COUNT_LEN, payload, 0, "split count")
    for _ in range(split_count):
        (block_count,), pos = _take(COUNT_FMT, COUNT_LEN, payload, pos, "block count")
        split = Split()
        for _ in range(block_count):
            fields, pos = _take(block_fmt, block_len, payload, pos, "block")
            if version == StepVersion.STF1:
                delay, bpm, per_measure, beat_split = fields
                speed = 1.0
            else:
                delay, bpm, speed, per_measure, beat_split = fields
            (rows_len,), pos = _take(ROWS_LEN_FMT, ROWS_LEN_LEN, payload, pos, "row length")
            rows = payload[pos:pos + rows_len]
            if len(rows) != rows_len:
                raise StepFileError(f"Torn row data at offset {pos}")
            pos += rows_len
            split.blocks.append(Block(delay, bpm, per_measure, beat_split, speed, bytes(rows)))
        data.splits.append(split)

    if pos != len(payload):
        raise StepFileError(f"{len(payload) - pos} trailing bytes in {mode.name} section")
    return data


class StepFile:
    """A decoded .STX file.

    - Sections are stored in the file's native version and decoded lazily.
    - A legacy mode without a section reads as a chart with no splits.
    """

    def __init__(self, version: int = StepVersion.STF2, name: str | None = None):
        self.version = _as_version(version)
        self.name = name
        self._sections: dict[LegacyMode, bytes] = {}

    def __repr__(self) -> str:
        modes = ",".join(m.name for m in self.modes)
        return f"StepFile(name={self.name!r}, version={self.version.name}, modes=[{modes}])"

    @property
    def modes(self) -> tuple[LegacyMode, ...]:
        return tuple(m for m in LegacyMode if m in self._sections)

    @classmethod
    def from_bytes(cls, data: bytes, name: str | None = None) -> "StepFile":
        buf = bytes(data)
        (magic, ver, count), pos = _take(STEP_HEADER_FMT, STEP_HEADER_LEN, buf, 0, "step header")
        if magic != MAGIC_STEP_FILE:
            raise StepFileError(f"Invalid step file magic {magic!r}")

        step = cls(ver, name)
        for _ in range(count):
            (tag, length), pos = _take(SECTION_HEADER_FMT, SECTION_HEADER_LEN, buf, pos, "section header")
            mode = _MODES_BY_TAG.get(tag)
            if mode is None:
                raise StepFileError(f"Unknown section tag {tag!r} at offset {pos - SECTION_HEADER_LEN}")
            if mode in step._sections:
                raise StepFileError(f"Duplicate {mode.name} section")
            payload = buf[pos:pos + length]
            if len(payload) != length:
                raise StepFileError(f"Torn {mode.name} section at offset {pos}")
            step._sections[mode] = payload
            pos += length

        if pos != len(buf):
            raise StepFileError(f"{len(buf) - pos} trailing bytes after last section")
        return step

    @classmethod
    def from_path(cls, path: Path) -> "StepFile":
        path = Path(path)
        with open(path, "rb") as f:
            data = f.read()
        return cls.from_bytes(data, name=path.name)

    def read_step_data(self, mode: LegacyMode) -> StepData:
        payload = self._sections.get(mode)
        if payload is None:
            return StepData(mode)
        return decode_step_data(mode, payload, self.version)

    def set_step_data(self, version: int, step_data: StepData) -> None:
        """Store a chart into its mode slot, encoded under ``version``.

        Sections always share the file's native version.
        """
        version = _as_version(version)
        if version != self.version:
            raise StepFileError(
                f"Cannot store {version.name} data in a {self.version.name} file"
            )
        self._sections[step_data.mode] = encode_step_data(step_data, version)

    def to_bytes(self, version: int | None = None) -> bytes:
        """Serialize the file, converting sections when ``version`` differs."""
        target = self.version if version is None else _as_version(version)
        modes = self.modes

        out = bytearray(struct.pack(STEP_HEADER_FMT, MAGIC_STEP_FILE, int(target), len(modes)))
        for mode in modes:
            payload = self._sections[mode]
            if target != self.version:
                payload = encode_step_data(decode_step_data(mode, payload, self.version), target)
            out += struct.pack(SECTION_HEADER_FMT, mode.tag, len(payload))
            out += payload
        return bytes(out)
