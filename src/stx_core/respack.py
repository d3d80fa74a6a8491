"""RPAK resource container (STEP.DAT).

Members are kept as whole byte blobs in table order. Writing a member only
touches memory; callers persist with ``to_bytes``.
"""
from __future__ import annotations

import struct
from pathlib import Path
from warnings import warn

from stx_core.protocol import (
    MAGIC_RESPACK,
    RESPACK_VERSION,
    RESPACK_HEADER_FMT,
    RESPACK_HEADER_LEN,
    ENTRY_NAME_LEN_FMT,
    ENTRY_NAME_LEN_LEN,
    ENTRY_SPAN_FMT,
    ENTRY_SPAN_LEN,
)


class RespackError(ValueError):
    """Container bytes are malformed or a member operation is invalid."""


class RespackFile:
    def __init__(self, path: Path | None = None):
        self.path = Path(path) if path is not None else None
        self._members: dict[str, bytes] = {}

    def __len__(self) -> int:
        return len(self._members)

    def __contains__(self, name: str) -> bool:
        return name in self._members

    @classmethod
    def load(cls, path: Path) -> "RespackFile":
        path = Path(path)
        with open(path, "rb") as f:
            data = f.read()
        pack = cls.from_bytes(data)
        pack.path = path
        return pack

    @classmethod
    def from_bytes(cls, data: bytes) -> "RespackFile":
        buf = bytes(data)
        if len(buf) < RESPACK_HEADER_LEN:
            raise RespackError("Truncated container header")

        magic, ver, count = struct.unpack_from(RESPACK_HEADER_FMT, buf, 0)
        if magic != MAGIC_RESPACK:
            raise RespackError(f"Invalid container magic {magic!r}")
        if ver != RESPACK_VERSION:
            raise RespackError(f"Unsupported container version {int(ver)}")

        pack = cls()
        spans: list[tuple[str, int, int]] = []
        pos = RESPACK_HEADER_LEN
        for i in range(count):
            if pos + ENTRY_NAME_LEN_LEN > len(buf):
                raise RespackError(f"Truncated entry table at entry {i}")
            (name_len,) = struct.unpack_from(ENTRY_NAME_LEN_FMT, buf, pos)
            pos += ENTRY_NAME_LEN_LEN

            raw_name = buf[pos:pos + name_len]
            if len(raw_name) != name_len or pos + name_len + ENTRY_SPAN_LEN > len(buf):
                raise RespackError(f"Truncated entry table at entry {i}")
            try:
                name = raw_name.decode("utf-8")
            except UnicodeDecodeError as e:
                raise RespackError(f"Entry {i} has an undecodable name") from e
            pos += name_len

            offset, size = struct.unpack_from(ENTRY_SPAN_FMT, buf, pos)
            pos += ENTRY_SPAN_LEN
            spans.append((name, offset, size))

        table_end = pos
        for name, offset, size in spans:
            if offset < table_end or offset + size > len(buf):
                raise RespackError(f"Member {name} lies outside the container ({offset}+{size})")
            if name in pack._members:
                raise RespackError(f"Duplicate member {name}")
            pack._members[name] = buf[offset:offset + size]

        if spans and min(offset for _, offset, _ in spans) != table_end:
            warn(f"Container data does not start right after the entry table (table ends at {table_end})")

        return pack

    def names_sorted(self) -> list[str]:
        return sorted(self._members)

    def read_member(self, name: str) -> bytes:
        try:
            return self._members[name]
        except KeyError:
            raise RespackError(f"No member named {name}") from None

    def write_member(self, name: str, data: bytes) -> None:
        if name not in self._members:
            raise RespackError(f"No member named {name}")
        self._members[name] = bytes(data)

    def add_member(self, name: str, data: bytes) -> None:
        if name in self._members:
            raise RespackError(f"Duplicate member {name}")
        self._members[name] = bytes(data)

    def to_bytes(self) -> bytes:
        table = bytearray()
        encoded: list[tuple[bytes, bytes]] = []
        for name, data in self._members.items():
            raw_name = name.encode("utf-8")
            if len(raw_name) > 0xFFFF:
                raise RespackError(f"Member name too long: {name[:32]}...")
            encoded.append((raw_name, data))

        table_len = sum(ENTRY_NAME_LEN_LEN + len(n) + ENTRY_SPAN_LEN for n, _ in encoded)
        offset = RESPACK_HEADER_LEN + table_len
        for raw_name, data in encoded:
            if offset + len(data) > 0xFFFFFFFF:
                raise RespackError("Container exceeds 4 GiB")
            table += struct.pack(ENTRY_NAME_LEN_FMT, len(raw_name))
            table += raw_name
            table += struct.pack(ENTRY_SPAN_FMT, offset, len(data))
            offset += len(data)

        header = struct.pack(RESPACK_HEADER_FMT, MAGIC_RESPACK, RESPACK_VERSION, len(encoded))
        return header + bytes(table) + b"".join(data for _, data in encoded)
