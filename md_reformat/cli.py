"""
Reformats a Markdown file: wraps paragraphs, renumbers lists and aligns tables.
Prints the result to stdout, or rewrites the file with --in-place.
"""

from __future__ import annotations

from pathlib import Path

import click

from .buffer import StringBuffer
from .command import md_format
from .config import ConfigError, build_config
from .exceptions import ReformatError
from .filesystem import (
    collect_file_stat,
    enforce_file_size,
    ensure_file_unchanged,
    get_max_file_size,
    normalize_filepath,
    safe_read,
    write_atomic,
)
from .format import reformat
from .log import setup_logger

__all__ = ["cli"]


@click.command()
@click.version_option(package_name="md-reformat")
@click.option("--width", type=int, help="Target line width")
@click.option(
    "--equal-columns/--no-equal-columns",
    default=None,
    help="Give interior table columns one common width",
)
@click.option(
    "--wrap-algorithm",
    type=click.Choice(["optimal-fit", "first-fit"]),
    help="Line breaking algorithm",
)
@click.option(
    "--newline",
    type=click.Choice(["lf", "crlf"]),
    help="Line terminator of emitted lines",
)
@click.option(
    "--cursor",
    type=click.IntRange(min=0),
    help="Only reformat the construct at this character offset",
)
@click.option("--in-place", is_flag=True, help="Rewrite the file instead of printing")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging verbosity",
)
@click.argument("filepath", type=click.Path(exists=True, dir_okay=False))
def cli(
    filepath: str,
    width: int | None = None,
    equal_columns: bool | None = None,
    wrap_algorithm: str | None = None,
    newline: str | None = None,
    cursor: int | None = None,
    in_place: bool = False,
    log_level: str = "WARNING",
):
    """
    Entry point for reformatting a Markdown file.

    Args:
        filepath: Path to the Markdown file to process.
        width: Override for the target line width.
        equal_columns: Override for equal-width table columns.
        wrap_algorithm: Override for the line breaking algorithm.
        newline: Override for the emitted line terminator.
        cursor: Character offset of the construct to reformat; the whole file
            when omitted.
        in_place: Rewrite the file atomically instead of printing.
        log_level: Logging verbosity.

    Returns:
        None.

    Raises:
        click.BadParameter: If the path is invalid or the configuration is
            unsupported.
        click.ClickException: If the file cannot be read or written, exceeds
            the size limit, changes while processing, or reformatting fails.

    Examples:
        md-reformat README.md --width 72 --in-place
    """
    logger = setup_logger(log_level)
    base_dir = Path.cwd().resolve()
    try:
        path = normalize_filepath(filepath, base_dir)
    except ValueError as error:
        raise click.BadParameter(str(error)) from error
    try:
        config = build_config(
            path.parent,
            text_width=width,
            table_columns_equal_width=equal_columns,
            wrap_algorithm=wrap_algorithm,
            newline=newline,
        )
    except ConfigError as error:
        raise click.BadParameter(str(error)) from error

    try:
        max_file_size = get_max_file_size(default=config.max_file_size)
    except ValueError as error:
        raise click.ClickException(str(error)) from error

    try:
        initial_stat = collect_file_stat(path)
        enforce_file_size(initial_stat, max_file_size, path)
        text = safe_read(path)
        post_read_stat = collect_file_stat(path)
        ensure_file_unchanged(initial_stat, post_read_stat, path)
    except IOError as error:
        raise click.ClickException(str(error)) from error

    try:
        if cursor is None:
            formatted, _ = reformat(
                text,
                text_width=config.text_width,
                table_columns_equal_width=config.table_columns_equal_width,
                newline=config.newline,
                wrap_algorithm=config.wrap_algorithm,
            )
            new_cursor = None
        else:
            buffer = StringBuffer(text, newline=config.newline)
            buffer.set_cursor(buffer.position_at(cursor))
            md_format(
                buffer,
                text_width=config.text_width,
                table_columns_equal_width=config.table_columns_equal_width,
                wrap_algorithm=config.wrap_algorithm,
            )
            formatted = buffer.value
            new_cursor = buffer.offset_at(buffer.cursor())
    except ReformatError as error:
        raise click.ClickException(f"Failed to reformat {path}: {error}") from error

    logger.debug("Reformatted %s (%d -> %d characters)", path, len(text), len(formatted))

    if in_place:
        if formatted != text:
            try:
                write_atomic(
                    path,
                    formatted,
                    post_read_stat,
                    initial_stat,
                    warn=lambda message: click.echo(message, err=True),
                )
            except IOError as error:
                raise click.ClickException(str(error)) from error
    else:
        click.echo(formatted, nl=False)

    if new_cursor is not None:
        click.echo(f"cursor: {new_cursor}", err=True)


if __name__ == "__main__":
    cli()
