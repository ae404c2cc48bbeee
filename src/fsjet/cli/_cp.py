"""The cp command."""

from __future__ import annotations

import asyncio

import click

from ..exceptions import FsError
from ._helpers import (
    main,
    _conflict_option,
    _conflict_settings,
    _cwd_option,
    _echo_reports,
    _get_fs,
    _match_option,
    _status,
)


@main.command()
@_cwd_option
@click.argument("source")
@click.argument("dest")
@_match_option
@click.option("-f", "--overwrite", is_flag=True, help="Replace existing destination items.")
@click.option("--empty", is_flag=True, help="Empty the destination directory first.")
@click.option("-p", "--preserve-times", is_flag=True, help="Keep access and modify times.")
@click.option("-L", "--follow-symlinks", is_flag=True,
              help="Copy what symlinks point to instead of the links.")
@click.option("--async", "use_async", is_flag=True,
              help="Use the asynchronous engine (implied by --on-conflict).")
@_conflict_option
@click.option("-j", "--jobs", type=click.IntRange(min=1), default=None,
              help="Maximum files copied at once (asynchronous engine).")
@click.pass_context
def cp(ctx, source, dest, matching, overwrite, empty, preserve_times,
       follow_symlinks, use_async, on_conflict, jobs):
    """Copy SOURCE to DEST.

    \b
    Examples:
        fsjet cp src dst
        fsjet cp -f -m '*.txt' src dst
        fsjet cp --on-conflict if_newer src dst
        fsjet cp --async -j 4 big_dir backup
    """
    fs = _get_fs(ctx)

    def progress(path, current, total, node):
        _status(ctx, f"{node.type}\t{path}")
        return True

    settings = _conflict_settings(on_conflict)
    try:
        if use_async or settings is not None or jobs is not None:
            reports = asyncio.run(fs.copy_async(
                source, dest, overwrite=overwrite, matching=matching or None,
                progress=progress, preserve_times=preserve_times, empty=empty,
                follow_symlinks=follow_symlinks, conflict_settings=settings,
                concurrency=jobs, report=True))
            _echo_reports(reports)
        else:
            fs.copy(source, dest, overwrite=overwrite, matching=matching or None,
                    progress=progress, preserve_times=preserve_times, empty=empty,
                    follow_symlinks=follow_symlinks)
    except FsError as exc:
        raise click.ClickException(str(exc))
    _status(ctx, f"Copied {source} -> {dest}")
