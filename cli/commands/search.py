# Search the vectors file
from typing import List, Optional
import typer
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from luckyshot.config import get_settings
from luckyshot.errors import ConfigurationError
from luckyshot.retrieval import HybridRetriever

console = Console()

def search(
    ctx: typer.Context,
    query: List[str] = typer.Argument(..., help="Search prompt"),
    filter_similarity: Optional[float] = typer.Option(None, "--filter", "-f", help="Minimum normalized score (0-1)"),
    count: Optional[int] = typer.Option(None, "--count", "-n", help="Maximum results (0 = unlimited)"),
    bm25_scale: Optional[float] = typer.Option(None, "--bm25-scale", help="Weight of the lexical score"),
    rag_scale: Optional[float] = typer.Option(None, "--rag-scale", help="Weight of the embedding score"),
    chunks: bool = typer.Option(False, "--chunks", help="Show every matching chunk with scores"),
    file_contents: bool = typer.Option(False, "--file-contents", help="Print the matching content"),
):
    """Print the files most related to the prompt"""
    settings = ctx.obj or get_settings()
    retriever = HybridRetriever(settings=settings)

    try:
        matches = retriever.search(
            " ".join(query),
            filter_similarity=filter_similarity,
            count=count,
            bm25_scale=bm25_scale,
            rag_scale=rag_scale,
            verbose=chunks,
            include_file_contents=file_contents,
        )
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)

    if chunks:
        console.print("Score,File,Type,Offset,Size")
        for m in matches:
            kind = "full" if m.is_full_file else "chunk"
            console.print(f"{m.score:.3f},{m.filename},{kind},{m.chunk_offset},{m.chunk_length}", markup=False)

    for m in matches:
        if file_contents and m.content is not None:
            console.print(Panel(Text(m.content), title=Text(f"Content from {m.filename}"), expand=False))
        if not chunks:
            console.print(m.filename, markup=False)
