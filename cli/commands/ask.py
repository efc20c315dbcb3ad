# Ask a question about the indexed codebase
from typing import List, Optional
import typer
from rich.console import Console
from rich.markdown import Markdown

from luckyshot.assistant import answer_question
from luckyshot.config import get_settings
from luckyshot.errors import CompletionError, ConfigurationError
from luckyshot.llm import LLMClient
from luckyshot.retrieval import HybridRetriever

console = Console()

def ask(
    ctx: typer.Context,
    question: List[str] = typer.Argument(..., help="Question about the codebase"),
    top_n: int = typer.Option(5, "--files", "-n", help="Number of files sent as context"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Chat model (defaults to model_router_default)"),
):
    """Answer a question using the most relevant files as context"""
    settings = ctx.obj or get_settings()
    retriever = HybridRetriever(settings=settings)

    try:
        llm = LLMClient(model=model, settings=settings)
        result = answer_question(" ".join(question), retriever, llm=llm, top_n=top_n)
    except (ConfigurationError, CompletionError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)

    if result["files"]:
        console.print("[dim]Context: " + ", ".join(result["files"]) + "[/dim]")
    console.print(Markdown(result["answer"]))
