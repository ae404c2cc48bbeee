"""Basic commands: ls, find, inspect, mkdir, rm, mv, rename."""

from __future__ import annotations

import asyncio

import click

from ..exceptions import FsError
from ..node import SUPPORTED_CHECKSUMS
from ._helpers import (
    main,
    _conflict_option,
    _conflict_settings,
    _cwd_option,
    _echo_json,
    _echo_reports,
    _format_option,
    _get_fs,
    _match_option,
    _node_line,
    _status,
)


# ---------------------------------------------------------------------------
# ls
# ---------------------------------------------------------------------------

@main.command()
@_cwd_option
@click.argument("path", default=".")
@_format_option
@click.pass_context
def ls(ctx, path, fmt):
    """List the entries of PATH (default: the working directory)."""
    names = _get_fs(ctx).list(path)
    if names is None:
        raise click.ClickException(f"No such directory: {path}")
    if fmt == "json":
        _echo_json(names)
        return
    for name in names:
        click.echo(name)


# ---------------------------------------------------------------------------
# find
# ---------------------------------------------------------------------------

@main.command()
@_cwd_option
@click.argument("path", default=".")
@_match_option
@click.option("--dirs/--no-dirs", "directories", default=False,
              help="Include directories.")
@click.option("--files/--no-files", default=True, help="Include files.")
@click.option("--no-recursive", "flat", is_flag=True,
              help="Only look at the direct entries of PATH.")
@click.pass_context
def find(ctx, path, matching, directories, files, flat):
    """Print entries below PATH matching --match patterns (default '*')."""
    try:
        found = _get_fs(ctx).find(path, matching=matching or ("*",), files=files,
                                  directories=directories, recursive=not flat)
    except FsError as exc:
        raise click.ClickException(str(exc))
    for item in found:
        click.echo(item)


# ---------------------------------------------------------------------------
# inspect
# ---------------------------------------------------------------------------

@main.command()
@_cwd_option
@click.argument("path")
@click.option("--checksum", type=click.Choice(SUPPORTED_CHECKSUMS), default=None,
              help="Include a digest of file contents.")
@click.option("--mode", is_flag=True, help="Include permission bits.")
@click.option("--times", is_flag=True, help="Include access/modify/change times.")
@click.option("--tree", is_flag=True, help="Describe the whole subtree.")
@_format_option
@click.pass_context
def inspect(ctx, path, checksum, mode, times, tree, fmt):
    """Describe PATH."""
    fs = _get_fs(ctx)
    if tree:
        node = fs.inspect_tree(path, checksum=checksum, relative_path=True)
    else:
        node = fs.inspect(path, checksum=checksum, mode=mode, times=times, symlinks=True)
    if node is None:
        raise click.ClickException(f"No such file or directory: {path}")
    if fmt == "json":
        _echo_json(node.to_dict())
        return
    if not tree:
        click.echo(_node_line(node))
        return
    stack = [node]
    while stack:
        current = stack.pop()
        click.echo(f"{current.relative_path}\t{_node_line(current)}")
        stack.extend(reversed(current.children))


# ---------------------------------------------------------------------------
# mkdir
# ---------------------------------------------------------------------------

@main.command()
@_cwd_option
@click.argument("path")
@click.option("--empty", is_flag=True, help="Delete everything inside the directory.")
@click.option("--mode", default=None, help="Permission bits, e.g. 755.")
@click.pass_context
def mkdir(ctx, path, empty, mode):
    """Make sure PATH is a directory (parents are created)."""
    try:
        _get_fs(ctx).dir(path, empty=empty, mode=mode)
    except FsError as exc:
        raise click.ClickException(str(exc))
    _status(ctx, f"Directory {path}")


# ---------------------------------------------------------------------------
# rm
# ---------------------------------------------------------------------------

@main.command()
@_cwd_option
@click.argument("paths", nargs=-1, required=True)
@_match_option
@click.option("--trash", is_flag=True, help="Move to the trash instead of deleting.")
@_conflict_option
@click.pass_context
def rm(ctx, paths, matching, trash, on_conflict):
    """Remove PATHS recursively; missing paths are ignored.

    With --match only matching entries below each PATH are removed.

    \b
    Examples:
        fsjet rm build
        fsjet rm --trash old.txt
        fsjet rm -m '*.pyc' -m '__pycache__/' src
        fsjet rm --on-conflict skip locked_dir
    """
    fs = _get_fs(ctx)
    settings = _conflict_settings(on_conflict)
    try:
        for path in paths:
            if matching or settings is not None:
                reports = asyncio.run(fs.remove_async(
                    path, matching=matching, conflict_settings=settings,
                    trash=trash, report=True))
                _echo_reports(reports)
            else:
                fs.remove(path, trash=trash)
            _status(ctx, f"Removed {path}")
    except FsError as exc:
        raise click.ClickException(str(exc))
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--on-conflict")


# ---------------------------------------------------------------------------
# mv / rename
# ---------------------------------------------------------------------------

@main.command()
@_cwd_option
@click.argument("source")
@click.argument("dest")
@click.pass_context
def mv(ctx, source, dest):
    """Move SOURCE to DEST (copies across filesystems)."""
    try:
        _get_fs(ctx).move(source, dest)
    except FsError as exc:
        raise click.ClickException(str(exc))
    _status(ctx, f"Moved {source} -> {dest}")


@main.command()
@_cwd_option
@click.argument("path")
@click.argument("new_name")
@click.pass_context
def rename(ctx, path, new_name):
    """Give PATH a new name within its directory."""
    try:
        _get_fs(ctx).rename(path, new_name)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="NEW_NAME")
    except FsError as exc:
        raise click.ClickException(str(exc))
    _status(ctx, f"Renamed {path} -> {new_name}")
