"""Render node reference counts as an aligned text table."""

from __future__ import annotations

import click

from lockfollow.consolidate.models import ReferenceCounts


def render_counts(counts: ReferenceCounts, *, color: bool = True) -> str:
    """One `key = count` line per node.

    The root is dimmed, nodes reached at most once are highlighted (nothing
    shares them), and shared nodes show their count in green.
    """
    if not counts.counts:
        return ""
    width = max(len(key) for key in counts.counts)
    lines: list[str] = []
    for key, count in counts.counts.items():
        label = key.ljust(width)
        if not color:
            lines.append(f"{label} = {count}")
        elif key == counts.root:
            lines.append(f"{click.style(label, dim=True)} {click.style('=', fg='red')} {click.style(str(count), dim=True)}")
        elif count <= 1:
            lines.append(f"{click.style(label, fg='bright_yellow', bold=True)} {click.style('=', fg='red')} {click.style(str(count), dim=True)}")
        else:
            lines.append(f"{label} {click.style('=', fg='red')} {click.style(str(count), fg='bright_green', bold=True)}")
    return "\n".join(lines)
