"""Shared I/O helpers for lockfollow."""

from __future__ import annotations

from pathlib import Path

import click

from lockfollow.errors import MalformedInput, OutputError

STDIO = "-"
DEFAULT_LOCK = "./flake.lock"


def read_input(source: str) -> str:
    """Read a lock document from a path, or from stdin for `-`."""
    if source == STDIO:
        return click.get_text_stream("stdin").read()
    path = Path(source)
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise MalformedInput(
            "Lock file does not exist.",
            context={"path": str(path)},
        ) from exc
    except UnicodeDecodeError as exc:
        raise MalformedInput(
            "Lock file is not valid UTF-8.",
            context={"path": str(path)},
        ) from exc


def write_output(text: str, destination: str, *, overwrite: bool = False) -> None:
    """Write to a path, or to stdout for `-`.

    Refuses to replace an existing file unless `overwrite` is set.
    """
    if destination == STDIO:
        click.echo(text, nl=False)
        return
    path = Path(destination)
    if path.exists() and not overwrite:
        raise OutputError(
            "Output file already exists.",
            hint="Pass --force to overwrite it.",
            context={"path": str(path)},
        )
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
