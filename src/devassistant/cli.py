"""
Command-line interface for DevAssistant.

Commands:
    index   - Rebuild the documentation index
    search  - Search the documentation index
    help    - Ask a question about the project
    review  - Review a unified diff
    version - Show version information
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from devassistant.config import Settings, get_settings

app = typer.Typer(
    name="devassistant",
    help="Documentation-aware developer assistant",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)


def setup_logging(level: str) -> None:
    """Route all log records through Rich on stderr."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _settings(ctx: typer.Context) -> Settings:
    return ctx.obj["settings"]


def _open_store(settings: Settings):
    from devassistant.retrieval import DocumentStore, EmbeddingProvider

    return DocumentStore(settings.index_path, EmbeddingProvider(settings=settings))


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
    offline: bool = typer.Option(
        False, "--offline", help="Use local hashing embeddings only"
    ),
) -> None:
    """Documentation-aware developer assistant."""
    try:
        settings = get_settings()
    except ValidationError as e:
        err_console.print(f"[red]Invalid configuration:[/red]\n{e}")
        raise typer.Exit(1)

    if offline:
        settings = settings.model_copy(update={"use_remote_embeddings": False})

    setup_logging("DEBUG" if verbose else settings.log_level)
    ctx.obj = {"settings": settings}


@app.command()
def index(
    ctx: typer.Context,
    path: Optional[Path] = typer.Argument(None, help="Directory to index (default: DOCS_PATH)"),
) -> None:
    """Rebuild the documentation index."""
    from devassistant.retrieval import DocumentIndexer

    settings = _settings(ctx)
    directory = path or settings.docs_path
    store = _open_store(settings)

    console.print(f"[blue]Indexing {directory}[/blue]")
    console.print(f"[dim]Chunk size: {settings.chunk_size} words, overlap: {settings.chunk_overlap}[/dim]\n")

    with console.status("[bold green]Indexing..."):
        report = DocumentIndexer(store, settings).index_directory(directory)

    if not report.ok:
        console.print(f"[red]{escape(report.error)}[/red]")
        raise typer.Exit(1)

    for skipped, reason in report.skipped.items():
        console.print(f"[yellow]Skipped {skipped}: {reason}[/yellow]")

    console.print("[bold green]✓ Indexing complete![/bold green]")
    console.print(f"  Files indexed: {len(report.files_indexed)}")
    console.print(f"  Total chunks: {report.chunks_indexed}")
    console.print(f"  Output: {settings.index_path}")


@app.command()
def search(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Text to search for"),
    top_k: Optional[int] = typer.Option(None, "--top-k", "-k", help="Number of results"),
) -> None:
    """Search the documentation index."""
    settings = _settings(ctx)
    store = _open_store(settings)

    if not store.load():
        console.print("[yellow]No index found. Run `devassistant index` first.[/yellow]")
        raise typer.Exit(1)

    results = store.search(query, top_k=top_k or settings.search_top_k)
    if not results:
        console.print(f"[yellow]Nothing found for: {query}[/yellow]")
        return

    table = Table(title=f"Results for: {query}")
    table.add_column("#", style="dim")
    table.add_column("Source", style="cyan")
    table.add_column("Score", style="green")
    table.add_column("Preview")

    for position, result in enumerate(results, 1):
        preview = result.document.content[:150].replace("\n", " ")
        table.add_row(str(position), result.document.source, f"{result.score:.3f}", preview)

    console.print(table)


@app.command("help")
def help_(
    ctx: typer.Context,
    question: Optional[list[str]] = typer.Argument(None, help="Question about the project"),
) -> None:
    """Ask a question about the project."""
    from devassistant.commands import HelpCommand
    from devassistant.llm import OllamaClient

    settings = _settings(ctx)
    store = _open_store(settings)
    if not store.load():
        console.print("[yellow]No index found. Run `devassistant index` first.[/yellow]")

    command = HelpCommand(store, OllamaClient.from_settings(settings), top_k=settings.help_top_k)
    query = " ".join(question or [])

    with console.status("[bold green]Thinking..."):
        answer = command.execute(query)

    console.print(answer, markup=False, highlight=False)


@app.command()
def review(
    ctx: typer.Context,
    diff_file: str = typer.Argument("-", help="Unified diff file, or - for stdin"),
    ref: str = typer.Option("local", help="Pull request reference, e.g. owner/repo#12"),
    no_llm: bool = typer.Option(False, "--no-llm", help="Skip the LLM review"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the report to a file"),
    fail_on_high: bool = typer.Option(
        False, "--fail-on-high", help="Exit with status 2 when high severity issues are found"
    ),
) -> None:
    """Review a unified diff."""
    from devassistant.llm import OllamaClient
    from devassistant.review import PrAnalyzer

    settings = _settings(ctx)

    try:
        if diff_file == "-":
            diff = sys.stdin.read()
        else:
            diff_path = Path(diff_file)
            if not diff_path.is_file():
                console.print(f"[red]Diff file not found: {diff_path}[/red]")
                raise typer.Exit(1)
            diff = diff_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        console.print(f"[red]Diff is not valid UTF-8: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    analyzer = PrAnalyzer(
        _open_store(settings),
        llm=None if no_llm else OllamaClient.from_settings(settings),
        chunk_size=settings.chunk_size,
        chunk_overlap=settings.chunk_overlap,
    )

    with console.status("[bold green]Analyzing..."):
        result = analyzer.analyze(diff, ref=ref)

    report = result.to_markdown()
    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(report, encoding="utf-8")
        console.print(f"[green]Report written to {output}[/green]")
    else:
        console.print(report, markup=False, highlight=False)

    if result.llm_error:
        console.print(f"[yellow]LLM review unavailable: {escape(result.llm_error)}[/yellow]")

    if fail_on_high and result.high_issues:
        raise typer.Exit(2)


@app.command()
def version() -> None:
    """Show version information."""
    from devassistant import __version__

    console.print(f"DevAssistant v{__version__}")


if __name__ == "__main__":
    app()
