"""Command-line interface for rebook.

Provides a Click-based CLI for inspecting a book: its parts, chapters,
estimated volume, outline, and the references defined in chapters.
"""

import logging
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from .domain import Book, ChapterSet, IChapterContainer
from .exceptions import ReviewError
from .services import TocService

# Get version from package metadata
try:
    __version__ = get_version("rebook")
except PackageNotFoundError:
    __version__ = "0.0.0"

# Context keys
BOOK_PATH_KEY = "book_path"
ENCODING_KEY = "encoding"

REFERENCE_KINDS = ("list", "table", "footnote", "image", "bibpaper", "headline")

console = Console()


def load_book(ctx: click.Context) -> Book:
    """Load the book selected by the global --book option.

    Args:
        ctx: The click context.

    Returns:
        The loaded Book.
    """
    book_path = ctx.obj.get(BOOK_PATH_KEY)
    encoding = ctx.obj.get(ENCODING_KEY)
    try:
        book = Book.load_default() if book_path is None else Book.load(book_path)
        if encoding:
            parameters = book.parameters.with_overrides(inencoding=encoding)
            book = Book.load(book.basedir, parameters)
        return book
    except ReviewError as e:
        raise click.ClickException(str(e))


def _number(value: object) -> str:
    return "" if value is None else str(value)


@click.group()
@click.option(
    "--book",
    "-b",
    type=click.Path(exists=True, file_okay=False),
    help="Path to book directory (default: search upwards from current directory).",
)
@click.option(
    "--encoding",
    "-e",
    help="Input encoding tag (EUC, SJIS, JIS) overriding the book configuration.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.version_option(version=__version__, prog_name="rebook")
@click.pass_context
def cli(ctx: click.Context, book: str | None, encoding: str | None, verbose: bool) -> None:
    """rebook - Inspect multi-chapter books.

    Reads the CHAPS manifest of a book directory and reports its
    structure and cross-references.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj[BOOK_PATH_KEY] = Path(book).resolve() if book else None
    ctx.obj[ENCODING_KEY] = encoding


@cli.command()
@click.pass_context
def parts(ctx: click.Context) -> None:
    """List the parts of the book."""
    book = load_book(ctx)

    table = Table(title="Parts")
    table.add_column("No.", justify="right")
    table.add_column("Name")
    table.add_column("Chapters")
    table.add_column("Pages", justify="right")

    try:
        for part in book.parts():
            table.add_row(
                _number(part.number),
                part.name or "",
                " ".join(chapter.id for chapter in part),
                str(part.volume().page),
            )
    except ReviewError as e:
        raise click.ClickException(str(e))
    console.print(table)


@cli.command()
@click.pass_context
def chapters(ctx: click.Context) -> None:
    """List the chapters of the book with their titles."""
    book = load_book(ctx)

    table = Table(title="Chapters")
    table.add_column("No.", justify="right")
    table.add_column("ID")
    table.add_column("Title")
    table.add_column("Volume", justify="right")

    try:
        for chapter in book.each_chapter():
            table.add_row(
                _number(chapter.number),
                chapter.id,
                chapter.title(),
                str(chapter.volume()),
            )
    except ReviewError as e:
        raise click.ClickException(str(e))
    console.print(table)


@cli.command()
@click.pass_context
def volume(ctx: click.Context) -> None:
    """Show the estimated volume of the book."""
    book = load_book(ctx)
    try:
        for part in book.parts():
            label = part.name or (f"Part {part.number}" if part.number else "(unnumbered)")
            click.echo(f"{label}: {part.volume()}")
        click.echo(f"Total: {book.volume()}")
    except ReviewError as e:
        raise click.ClickException(str(e))


@cli.command()
@click.option("--depth", "-d", type=int, default=3, help="Deepest heading level.")
@click.pass_context
def toc(ctx: click.Context, depth: int) -> None:
    """Print the headline outline of the book."""
    book = load_book(ctx)
    try:
        click.echo(TocService(max_level=depth).build_book_toc(book).to_text())
    except ReviewError as e:
        raise click.ClickException(str(e))


@cli.command()
@click.argument("kind", type=click.Choice(REFERENCE_KINDS))
@click.argument("chapter_id")
@click.argument("item_id")
@click.pass_context
def resolve(ctx: click.Context, kind: str, chapter_id: str, item_id: str) -> None:
    """Resolve a reference defined in a chapter.

    KIND is the reference type, CHAPTER_ID the chapter and ITEM_ID the
    reference id (a headline path for headlines).
    """
    book = load_book(ctx)
    try:
        chapter = book.chapter(chapter_id)
        item = getattr(chapter, kind)(item_id)
    except ReviewError as e:
        raise click.ClickException(str(e))

    click.echo(f"{kind} {item.id}")
    for name, value in vars(item).items():
        if name == "id":
            continue
        if isinstance(value, tuple) and kind != "headline":
            value = "\n  ".join(str(v) for v in value)
            click.echo(f"{name}:\n  {value}" if value else f"{name}:")
        else:
            click.echo(f"{name}: {value}")


@cli.command()
@click.argument("files", nargs=-1, type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def titles(ctx: click.Context, files: tuple[str, ...]) -> None:
    """Print chapter titles of FILES.

    Without FILES, prints the titles of the book given with --book, or
    of standard input if no book was given.
    """
    try:
        container: IChapterContainer
        if not files and ctx.obj.get(BOOK_PATH_KEY) is not None:
            container = load_book(ctx)
        else:
            container = ChapterSet.for_argv(list(files))
        _echo_titles(container)
    except ReviewError as e:
        raise click.ClickException(str(e))


def _echo_titles(container: IChapterContainer) -> None:
    for chapter in container.each_chapter():
        click.echo(f"{chapter.id}\t{chapter.title()}")


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
