"""STX Core - Step file and container codecs."""
from .ints import saturating_add, saturating_mul
from .respack import RespackError, RespackFile
from .stepfile import Block, LegacyMode, Split, StepData, StepFile, StepFileError, StepVersion

__all__ = [
    "saturating_add",
    "saturating_mul",
    "RespackError",
    "RespackFile",
    "Block",
    "LegacyMode",
    "Split",
    "StepData",
    "StepFile",
    "StepFileError",
    "StepVersion",
]
