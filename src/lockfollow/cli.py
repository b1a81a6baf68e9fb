"""CLI entry point for lockfollow."""

from __future__ import annotations

import functools
import json
import logging
from pathlib import Path
from typing import Callable

import click

from lockfollow import __version__
from lockfollow.engine import ConsolidateOptions, consolidate, count_references
from lockfollow.errors import LockfollowError
from lockfollow.lock.codec import decode, encode
from lockfollow.render.counts import render_counts
from lockfollow.render.flake_nix import render_follows_block, update_flake_nix
from lockfollow.utils import DEFAULT_LOCK, STDIO, read_input, write_output

_lock_argument = click.argument(
    "lock_file",
    required=False,
    default=DEFAULT_LOCK,
    type=click.Path(dir_okay=False, allow_dash=True),
)


def _output_options(f: Callable) -> Callable:
    f = click.option(
        "-o", "--output",
        default=STDIO,
        type=click.Path(dir_okay=False, allow_dash=True),
        help="Path of the file to write, `-` for stdout (default).",
    )(f)
    f = click.option(
        "-f", "--force", "--overwrite", "overwrite",
        is_flag=True, default=False,
        help="Overwrite the output file if it exists.",
    )(f)
    f = click.option(
        "-I", "--in-place",
        is_flag=True, default=False,
        help="Write the result back to LOCK_FILE.",
    )(f)
    f = click.option(
        "-p", "--pretty",
        is_flag=True, default=False,
        help="Indent the output JSON instead of minifying it.",
    )(f)
    return f


def _reports_errors(f: Callable) -> Callable:
    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except LockfollowError as exc:
            raise click.ClickException(str(exc)) from exc
    return wrapper


def _resolve_output(lock_file: str, output: str, in_place: bool, overwrite: bool) -> tuple[str, bool]:
    if not in_place:
        return output, overwrite
    if lock_file == STDIO:
        raise click.UsageError("--in-place needs a LOCK_FILE path, not stdin.")
    return lock_file, True


@click.group()
@click.option("-v", "--verbose", is_flag=True, default=False, help="Verbose logging.")
@click.version_option(version=__version__)
def main(verbose: bool) -> None:
    """Imitate Nix flake input following as a post-process on flake.lock.

    Duplicate pins of the same content are replaced with follows paths to one
    canonical pin, so `inputs.*.inputs.*.follows` no longer has to be kept by
    hand.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s %(levelname)s: %(message)s",
    )


@main.command()
@_lock_argument
@_output_options
@click.option(
    "--indexed", "--no-follows", "indexed",
    is_flag=True, default=False,
    help="Reference the canonical node directly instead of writing follows paths.",
)
@_reports_errors
def prune(
    lock_file: str,
    output: str,
    overwrite: bool,
    in_place: bool,
    pretty: bool,
    indexed: bool,
) -> None:
    """Consolidate duplicate pins in LOCK_FILE (`-` for stdin)."""
    output, overwrite = _resolve_output(lock_file, output, in_place, overwrite)

    graph = decode(read_input(lock_file))
    click.echo(click.style("Flake input nodes' reference counts:", fg="bright_magenta", bold=True), err=True)
    click.echo(render_counts(count_references(graph)), err=True)

    result = consolidate(graph, ConsolidateOptions(indexed=indexed, pretty=pretty))
    report = result.report

    click.echo(err=True)
    for skip in report.skipped:
        click.echo(
            f"- kept {skip.node}.{skip.input} pinned to {skip.duplicate!r} ({skip.reason}: {skip.detail})",
            err=True,
        )
    click.echo(
        click.style("Flake input nodes' reference counts after pruning:", fg="bright_magenta", bold=True),
        err=True,
    )
    click.echo(render_counts(count_references(result.graph)), err=True)
    click.echo(
        f"{report.nodes_before} -> {report.nodes_after} nodes, "
        f"{len(report.rewrites)} inputs redirected, {len(report.skipped)} kept",
        err=True,
    )

    write_output(encode(result.graph, pretty=pretty), output, overwrite=overwrite)


@main.command()
@_lock_argument
@_output_options
@click.option("-j", "--json", "as_json", is_flag=True, default=False, help="Show the data as JSON.")
@_reports_errors
def count(
    lock_file: str,
    output: str,
    overwrite: bool,
    in_place: bool,
    pretty: bool,
    as_json: bool,
) -> None:
    """Show how often each node is reached when resolving LOCK_FILE from root."""
    output, overwrite = _resolve_output(lock_file, output, in_place, overwrite)
    counts = count_references(decode(read_input(lock_file)))

    if as_json:
        if pretty:
            text = json.dumps(counts.counts, indent=2)
        else:
            text = json.dumps(counts.counts, separators=(",", ":"))
        write_output(text + "\n", output, overwrite=overwrite)
    else:
        color = output == STDIO
        write_output(render_counts(counts, color=color) + "\n", output, overwrite=overwrite)


@main.command()
@_lock_argument
@click.option(
    "-I", "--in-place",
    is_flag=True, default=False,
    help="Update the follows block of the flake.nix next to LOCK_FILE.",
)
@_reports_errors
def config(lock_file: str, in_place: bool) -> None:
    """Print the flake.nix follows declarations that match the consolidated lock."""
    result = consolidate(decode(read_input(lock_file)))
    block = render_follows_block(result.graph)

    if not in_place:
        click.echo(block)
        return

    if lock_file == STDIO:
        flake_nix = Path("flake.nix")
    else:
        flake_nix = Path(lock_file).parent / "flake.nix"
    update_flake_nix(flake_nix, block)
    click.echo(f"Updated {flake_nix}", err=True)


if __name__ == "__main__":
    main()
