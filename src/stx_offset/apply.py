from __future__ import annotations

from stx_core.ints import saturating_mul
from stx_core.protocol import OFFSET_MULTIPLIER
from stx_core.stepfile import LegacyMode, StepFile, StepFileError

from .errors import DecodeFailure, EncodeFailure, NoBlocksInFirstSplit, NoSplitsFound


def apply_offset(step_file: StepFile, offset: int) -> None:
    """Shift the first split of every legacy mode by ``offset`` * 10 ms.

    Modes are patched one at a time and committed through the file's native
    version. A failing mode aborts the call; modes committed before it stay
    committed and the failing mode is left untouched.
    """
    delta_ms = saturating_mul(offset, OFFSET_MULTIPLIER)

    for mode in LegacyMode:
        try:
            step_data = step_file.read_step_data(mode)
        except StepFileError as e:
            raise DecodeFailure(str(e)) from e

        if not step_data.splits:
            raise NoSplitsFound(mode.name)

        first_split = step_data.splits[0]
        if not first_split.blocks:
            raise NoBlocksInFirstSplit(mode.name)

        for block in first_split.blocks:
            block.shift(delta_ms)

        try:
            step_file.set_step_data(step_file.version, step_data)
        except StepFileError as e:
            raise EncodeFailure(str(e)) from e
