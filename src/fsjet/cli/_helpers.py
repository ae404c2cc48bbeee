"""Shared helpers, option decorators, and the main CLI group."""

from __future__ import annotations

import json
import logging

import click

from ..copy import ConflictAction, ConflictScope, ConflictSettings
from ..fs import FS
from ..node import Node


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _status(ctx, msg):
    """Emit a status message to stderr when verbose mode (-v) is on."""
    if ctx.obj.get("verbose"):
        click.echo(msg, err=True)


def _get_fs(ctx) -> FS:
    """Return the :class:`FS` for the --cwd option (or the process cwd)."""
    return FS(ctx.obj.get("cwd"))


def _store_cwd(ctx, param, value):
    """Click callback: store --cwd value in the context."""
    ctx.ensure_object(dict)
    if value is not None:
        ctx.obj["cwd"] = value
    return value


def _cwd_option(f):
    """Shared --cwd/-C option decorator for all commands."""
    return click.option(
        "--cwd", "-C", type=click.Path(file_okay=False), envvar="FSJET_CWD",
        help="Directory relative paths are resolved against (or set FSJET_CWD).",
        expose_value=False, callback=_store_cwd, is_eager=True,
    )(f)


def _format_option(f):
    """Shared --format option (text or json)."""
    return click.option(
        "--format", "fmt", type=click.Choice(["text", "json"]), default="text",
        help="Output format.",
    )(f)


def _match_option(f):
    """Shared repeatable --match option."""
    return click.option(
        "--match", "-m", "matching", multiple=True,
        help="Glob pattern selecting entries (repeatable; '!' negates).",
    )(f)


_CONFLICT_CHOICES = [a.value for a in ConflictAction if a is not ConflictAction.RETRY]


def _conflict_option(f):
    """Shared --on-conflict option mapping to ``ALWAYS`` conflict settings."""
    return click.option(
        "--on-conflict", "on_conflict", type=click.Choice(_CONFLICT_CHOICES), default=None,
        help="How to resolve entries that cannot be copied or removed as-is.",
    )(f)


def _conflict_settings(on_conflict: str | None) -> ConflictSettings | None:
    if on_conflict is None:
        return None
    return ConflictSettings(ConflictAction(on_conflict), ConflictScope.ALWAYS)


def _node_line(node: Node) -> str:
    """One-line text rendering of a node."""
    parts = [str(node.type), node.name]
    if node.size is not None:
        parts.append(str(node.size))
    if node.mode is not None:
        parts.append(node.mode)
    if node.points_at is not None:
        parts.append(f"-> {node.points_at}")
    if node.checksum is not None:
        parts.append(node.checksum)
    return "\t".join(parts)


def _echo_json(data) -> None:
    click.echo(json.dumps(data, indent=2))


def _echo_reports(reports) -> None:
    for r in reports:
        click.echo(f"{r.error}\t{r.resolution.action}\t{r.path}")


# ---------------------------------------------------------------------------
# Main group
# ---------------------------------------------------------------------------

@click.group()
@_cwd_option
@click.option("-v", "--verbose", is_flag=True, help="Verbose output on stderr.")
@click.option("--debug", is_flag=True, help="Log engine activity to stderr.")
@click.pass_context
def main(ctx, verbose, debug):
    """fsjet: copy, move, remove and inspect files.

    \b
    Quick start:
      fsjet cp src dst
      fsjet cp --async --on-conflict if_newer src dst
      fsjet rm --match '*.tmp' build
      fsjet find -m '*.py' src
      fsjet inspect --tree --checksum sha256 src

    Set FSJET_CWD to resolve relative paths against another directory.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    if debug:
        logging.basicConfig(level=logging.DEBUG)
