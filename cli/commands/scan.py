# Build the hybrid index for the current project
from typing import Optional
import typer
from rich.console import Console

from luckyshot.config import get_settings
from luckyshot.errors import ConfigurationError, EmbeddingError
from luckyshot.retrieval import HybridRetriever

console = Console()

def scan(
    ctx: typer.Context,
    pattern: Optional[str] = typer.Option(None, "--pattern", "-p", help="Glob of files to index, relative to the project root"),
    chunk_size: Optional[int] = typer.Option(None, "--chunk-size", help="Chunk size in bytes (0 = whole file)"),
    overlap_size: Optional[int] = typer.Option(None, "--overlap", help="Bytes shared by consecutive chunks"),
    embed_metadata: Optional[bool] = typer.Option(None, "--embed-metadata/--no-embed-metadata",
                                        help="Prefix file name, mtime and size to embedded text"),
):
    """Rebuild the vectors file from scratch"""
    settings = ctx.obj or get_settings()
    retriever = HybridRetriever(settings=settings)

    try:
        store = retriever.index_codebase(
            pattern=pattern,
            chunk_size=chunk_size,
            overlap_size=overlap_size,
            embed_metadata=embed_metadata,
        )
    except (ConfigurationError, EmbeddingError, OSError, UnicodeDecodeError) as e:
        console.print(f"[red]Scan failed: {e}[/red]")
        raise typer.Exit(code=1)

    console.print(
        f"[green]Indexed {len(store.sparse_records)} files "
        f"({len(store.dense_records)} chunks) into {retriever.store_path.name}[/green]"
    )
