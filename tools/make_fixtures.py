import random
from pathlib import Path

from stx_core.protocol import STEP_DAT_FILE, STEP_DIR
from stx_core.respack import RespackFile
from stx_core.stepfile import Block, LegacyMode, Split, StepData, StepFile, StepVersion

ROWS_PER_BLOCK = 16
PANELS = 10  # Doubles layout, one byte per panel


def build_step_file(rng: random.Random, version: StepVersion = StepVersion.STF2) -> StepFile:
    """One chart, stored identically under every legacy mode."""
    bpm = float(rng.choice([120, 140, 150, 175, 196]))

    intro = Split([
        Block(
            delay_ms=rng.randrange(0, 2000, 10) if i == 0 else 0,
            bpm=bpm,
            speed=1.0,
            rows=rng.randbytes(ROWS_PER_BLOCK * PANELS),
        )
        for i in range(3)
    ])
    # Later splits are never patched; give them a recognizable delay.
    outro = Split([Block(delay_ms=1234, bpm=bpm, rows=bytes(ROWS_PER_BLOCK * PANELS))])

    step = StepFile(version)
    for mode in LegacyMode:
        step.set_step_data(version, StepData(mode, [intro, outro]))
    return step


def generate_install(
    out_dir: str,
    container: bool = False,
    count: int = 3,
    corrupt: int | None = None,
    seed: int = 0,
) -> Path:
    rng = random.Random(seed)
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)

    files: dict[str, bytes] = {}
    for n in range(1, count + 1):
        version = StepVersion.STF1 if n % 2 == 0 else StepVersion.STF2
        data = bytearray(build_step_file(rng, version).to_bytes())
        if corrupt == n:
            data[0] ^= 0xFF  # Break the file magic
        files[f"{0x100 + n:04X}.STX"] = bytes(data)
    files["README.TXT"] = b"Not a step file.\n"

    if container:
        pack = RespackFile()
        for name, data in files.items():
            pack.add_member(name, data)
        target = out / STEP_DAT_FILE
        target.write_bytes(pack.to_bytes())
    else:
        target = out / STEP_DIR
        target.mkdir(exist_ok=True)
        for name, data in files.items():
            (target / name).write_bytes(data)

    print(f"GENERATED: {target}")
    return target


if __name__ == "__main__":
    import sys

    # Usage:
    #   python tools/make_fixtures.py OUT_DIR [--container] [--count N] [--corrupt K] [--seed S]

    args = [a for a in sys.argv[1:] if a]

    def pop_flag(arg_list: list[str], flag: str) -> tuple[bool, list[str]]:
        """Remove a boolean flag from an argv-style list."""
        if flag in arg_list:
            return True, [a for a in arg_list if a != flag]
        return False, arg_list

    def pop_value(arg_list: list[str], flag: str) -> tuple[int | None, list[str]]:
        """Remove an integer option and its value from an argv-style list."""
        if flag not in arg_list:
            return None, arg_list
        i = arg_list.index(flag)
        if i + 1 >= len(arg_list):
            raise SystemExit(f"{flag} requires a value")
        return int(arg_list[i + 1]), arg_list[:i] + arg_list[i + 2:]

    container, args = pop_flag(args, "--container")
    count, args = pop_value(args, "--count")
    corrupt, args = pop_value(args, "--corrupt")
    seed, args = pop_value(args, "--seed")

    out = args[0] if len(args) > 0 else "fixtures"
    generate_install(
        out,
        container=container,
        count=3 if count is None else count,
        corrupt=corrupt,
        seed=0 if seed is None else seed,
    )
