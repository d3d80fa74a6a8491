"""STX Offset - Apply a timing offset to every step file of an install."""
from __future__ import annotations

import logging
import re
from pathlib import Path

import click

from stx_core.ints import is_i32
from stx_core.protocol import STEP_DAT_FILE, STEP_DIR
from stx_offset import __version__
from stx_offset.errors import OffsetError, SourceNotFound
from stx_offset.locate import SourceKind, locate_source
from stx_offset.runners import ContainerBatchRunner, DirectoryBatchRunner

PROG_NAME = "stx-offset"
DESCRIPTION = (
    "Applies a timing offset, in steps of 10 ms, to every STX file "
    "in STEP.DAT or in the STEP directory."
)

_OFFSET_RE = re.compile(r"[+-]?[0-9]+")


def parse_offset(raw: str) -> int:
    """Parse a signed decimal i32. Anything else means no offset."""
    if not _OFFSET_RE.fullmatch(raw):
        return 0
    value = int(raw)
    return value if is_i32(value) else 0


def example_command(prog_name: str) -> str:
    if " " in prog_name or Path(prog_name).suffix.lower() == ".exe":
        return prog_name
    return f"./{prog_name}"


def pause() -> None:
    # No-op when stdin or stdout is not a terminal.
    click.pause(info="\nPress ENTER to continue... ")


def show_help(prog_name: str) -> None:
    click.echo(f"»» {PROG_NAME} v{__version__}\n")
    click.echo(f"» Description: {DESCRIPTION}\n")
    click.echo(f"» Example: {example_command(prog_name)} +20\n")
    pause()


def run_offset(offset: int, workdir: Path = Path(".")) -> bool:
    """Patch the install found in ``workdir``.

    Returns True when at least one step file failed. Raises SourceNotFound
    without touching any file when neither STEP.DAT nor STEP/ exists.
    """
    kind = locate_source(workdir)

    if kind is SourceKind.CONTAINER_FILE:
        report = ContainerBatchRunner(workdir / STEP_DAT_FILE).run(offset)
    elif kind is SourceKind.DIRECTORY:
        report = DirectoryBatchRunner(workdir / STEP_DIR).run(offset)
    else:
        raise SourceNotFound()

    return report.has_errors


@click.command(context_settings={"ignore_unknown_options": True})
@click.argument("args", nargs=-1, type=click.UNPROCESSED, metavar="OFFSET")
@click.pass_context
def main(ctx: click.Context, args: tuple[str, ...]) -> None:
    """Apply OFFSET (x10 ms, e.g. +20 or -5) to the install in the current directory."""
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    if len(args) != 1:
        show_help(ctx.info_name or PROG_NAME)
        return

    offset = parse_offset(args[0])
    try:
        has_errors = run_offset(offset)
    except OffsetError as e:
        click.echo(f"Error: {e}", err=True)
        has_errors = True

    if has_errors:
        pause()
        raise SystemExit(1)


if __name__ == "__main__":
    main()
