"""STX protocol constants.

Single source of truth for on-disk magic values, record layouts and the
well-known names of a game install. Keep this file stable. The codec, the
patcher and the fixture tools must remain synchronized.
"""

# Install layout (case-sensitive where the host filesystem is)
STEP_DAT_FILE = "STEP.DAT"  # Packed installs
STEP_DIR = "STEP"  # Unpacked installs
STEP_EXTENSION = "STX"

# Step file header: [Magic(4) | Ver(2) | SectionCount(2)] = 8 bytes
MAGIC_STEP_FILE = b"STX\x1a"
STEP_HEADER_FMT = "<4sHH"
STEP_HEADER_LEN = 8

# Section header: [ModeTag(4) | PayloadLength(4)] = 8 bytes
SECTION_HEADER_FMT = "<4sI"
SECTION_HEADER_LEN = 8

# Payload counters
COUNT_FMT = "<H"
COUNT_LEN = 2
ROWS_LEN_FMT = "<I"
ROWS_LEN_LEN = 4

# Block records per step version
# STF1: [Delay(4) | BPM(4) | BeatsPerMeasure(1) | BeatSplit(1)]
# STF2: [Delay(4) | BPM(4) | Speed(4) | BeatsPerMeasure(1) | BeatSplit(1)]
BLOCK_FMT_STF1 = "<ifBB"
BLOCK_LEN_STF1 = 10
BLOCK_FMT_STF2 = "<iffBB"
BLOCK_LEN_STF2 = 14

# Container header: [Magic(4) | Ver(2) | EntryCount(4)] = 10 bytes
MAGIC_RESPACK = b"RPAK"
RESPACK_VERSION = 1
RESPACK_HEADER_FMT = "<4sHI"
RESPACK_HEADER_LEN = 10

# Entry table: [NameLen(2)] + name + [Offset(4) | Size(4)]
ENTRY_NAME_LEN_FMT = "<H"
ENTRY_NAME_LEN_LEN = 2
ENTRY_SPAN_FMT = "<II"
ENTRY_SPAN_LEN = 8

# Delays are signed 32-bit milliseconds
I32_MIN = -(2**31)
I32_MAX = 2**31 - 1

# One offset unit on the command line is 10 ms
OFFSET_MULTIPLIER = 10
