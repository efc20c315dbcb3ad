# CLI commands for viewing and managing provider call logs
from typing import Optional
import typer
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.text import Text

from luckyshot.config import get_settings
from luckyshot.utils.llm_logger import get_llm_logger

app = typer.Typer()
console = Console()

def _logger(ctx: typer.Context):
    settings = ctx.obj or get_settings()
    return get_llm_logger(settings.llm_log_dir)

@app.command()
def stats(ctx: typer.Context):
    """Show logging statistics"""
    stats = _logger(ctx).get_stats()

    table = Table(title="Provider Call Statistics", show_header=True)
    table.add_column("Component", style="cyan")
    table.add_column("Total", style="white")
    table.add_column("Success", style="green")
    table.add_column("Errors", style="red")

    for component, data in stats["by_component"].items():
        table.add_row(component, str(data["total"]), str(data["success"]), str(data["errors"]))
    table.add_row("all", str(stats["total_logs"]), str(stats["total_logs"] - stats["errors"]), str(stats["errors"]))

    console.print(table)

@app.command()
def recent(
    ctx: typer.Context,
    component: str = typer.Option("embeddings", "--component", "-c", help="embeddings or completion"),
    limit: int = typer.Option(10, "--limit", "-n", help="Number of logs to show"),
    errors_only: bool = typer.Option(False, "--errors", "-e", help="Show only errors"),
):
    """Show recent log entries"""
    logger = _logger(ctx)
    if errors_only:
        logs = logger.get_error_logs(component=component, limit=limit)
    else:
        logs = logger.get_recent_logs(component=component, limit=limit)

    if not logs:
        console.print("[yellow]No logs found[/yellow]")
        return

    for log in logs:
        status = log.get("status", "unknown")
        status_color = "green" if status == "success" else "red"
        header = f"[{status_color}]{status.upper()}[/{status_color}] | {log.get('model', 'unknown')} | {log.get('timestamp', '')}"

        error = log.get("output", {}).get("error")
        if error:
            preview = Text(f"Error: {error[:200]}", style="red")
        else:
            messages = log.get("input", {}).get("messages", [])
            content = messages[-1].get("content", "") if messages else ""
            preview = Text(content[:100] + ("..." if len(content) > 100 else ""))

        console.print(Panel(
            preview,
            title=header,
            subtitle=f"[dim]{log.get('_filename', '')}[/dim]",
            border_style="blue" if status == "success" else "red"
        ))

@app.command()
def clear(
    ctx: typer.Context,
    component: Optional[str] = typer.Option(None, "--component", "-c", help="Clear logs for specific component"),
    older_than: Optional[int] = typer.Option(None, "--older-than", "-o", help="Only clear logs older than N hours"),
    confirm: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Clear log files"""
    target = f"logs for component '{component}'" if component else "all logs"
    if older_than:
        target += f" older than {older_than} hours"

    if not confirm:
        confirm = typer.confirm(f"Delete {target}?")
    if not confirm:
        console.print("[yellow]Cancelled[/yellow]")
        return

    deleted = _logger(ctx).clear_logs(component=component, older_than_hours=older_than)
    console.print(f"[green]Deleted {deleted} log files[/green]")
