import os
import subprocess
import sys
from pathlib import Path

from stx_core.respack import RespackFile
from stx_core.stepfile import LegacyMode, StepFile

REPO = Path(__file__).resolve().parents[1]


def run(args, cwd):
    env = dict(os.environ, PYTHONPATH=str(REPO / "src"))
    return subprocess.run(
        [sys.executable, *args],
        cwd=cwd,
        env=env,
        stdin=subprocess.DEVNULL,
        check=False,
        capture_output=True,
        text=True,
    )


def first_split(raw: bytes) -> list[int]:
    step = StepFile.from_bytes(raw)
    return [b.delay_ms for b in step.read_step_data(LegacyMode.NIGHTMARE).splits[0].blocks]


def test_packed_install_with_corrupt_member(tmp_path):
    r = run([str(REPO / "tools" / "make_fixtures.py"), str(tmp_path), "--container", "--corrupt", "2"], cwd=REPO)
    assert r.returncode == 0, r.stderr + r.stdout

    before = RespackFile.load(tmp_path / "STEP.DAT")
    r = run(["-m", "stx_offset.cli", "+4"], cwd=tmp_path)
    assert r.returncode == 1, r.stderr + r.stdout

    assert r.stdout.splitlines() == [
        "Applying offset to 0101.STX... OK",
        "Applying offset to 0102.STX... ERROR",
        "Applying offset to 0103.STX... OK",
    ]
    assert "Error in 0102.STX:" in r.stderr

    after = RespackFile.load(tmp_path / "STEP.DAT")
    for name in ("0101.STX", "0103.STX"):
        assert first_split(after.read_member(name)) == [d + 40 for d in first_split(before.read_member(name))]
    assert after.read_member("0102.STX") == before.read_member("0102.STX")
    assert after.read_member("README.TXT") == before.read_member("README.TXT")


def test_loose_install_with_damaged_file(tmp_path):
    r = run([str(REPO / "tools" / "make_fixtures.py"), str(tmp_path), "--count", "2"], cwd=REPO)
    assert r.returncode == 0, r.stderr + r.stdout

    step_dir = tmp_path / "STEP"
    damaged = step_dir / "0102.STX"
    r = run([str(REPO / "scripts" / "corrupt_one_byte.py"), str(damaged)], cwd=REPO)
    assert r.returncode == 0, r.stderr + r.stdout

    good_before = (step_dir / "0101.STX").read_bytes()
    damaged_before = damaged.read_bytes()

    r = run(["-m", "stx_offset.cli", "-2"], cwd=tmp_path)
    assert r.returncode == 1, r.stderr + r.stdout
    assert "0101.STX... OK" in r.stdout
    assert "0102.STX... ERROR" in r.stdout

    assert first_split((step_dir / "0101.STX").read_bytes()) == [d - 20 for d in first_split(good_before)]
    assert damaged.read_bytes() == damaged_before


def test_no_install_found(tmp_path):
    r = run(["-m", "stx_offset.cli", "10"], cwd=tmp_path)
    assert r.returncode == 1
    assert "Error: No STEP.DAT or STEP directory found." in r.stderr
