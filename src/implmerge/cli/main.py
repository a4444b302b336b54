"""
implmerge CLI - Main entry point.

Provides commands for folding Java interfaces into their single implementation class.
"""

import logging
from pathlib import Path
from typing import Optional

import orjson
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from implmerge.config.loader import (
    ConfigurationError,
    create_config_from_args,
    generate_default_config,
    load_config_from_yaml,
)
from implmerge.config.models import BatchReport, ImplMergeConfig, MatchDecision, MergePlan, MergeStatus
from implmerge.merger.batch import BatchDriver
from implmerge.merger.errors import MergeError
from implmerge.merger.orchestrator import MergeOrchestrator
from implmerge.workspace.context import EditorContext

app = typer.Typer(
    name="implmerge",
    help="Merge Java interfaces into their single Impl class",
    no_args_is_help=True,
)

console = Console()


# =============================================================================
# Helper Functions
# =============================================================================


def print_banner():
    """Print implmerge banner."""
    console.print(
        Panel(
            "[bold]implmerge[/bold]\nFold interfaces into their implementation",
            border_style="bold cyan",
            expand=False,
        )
    )


def validate_path(path: str, must_exist: bool = True) -> Path:
    """Validate and return a Path object."""
    p = Path(path)
    if must_exist and not p.exists():
        raise typer.BadParameter(f"Path does not exist: {path}")
    return p


def configure_logging(verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=log_level, format="%(name)s: %(message)s")


def build_config(
    config: Optional[str],
    source_root: Optional[str],
    null_anchor: Optional[str] = None,
    location: Optional[str] = None,
    dry_run: bool = False,
) -> ImplMergeConfig:
    """Load the YAML config if given and layer command-line options over it."""
    base = None
    if config:
        console.print(f"[cyan]Loading configuration from {config}...[/cyan]")
        base = load_config_from_yaml(Path(config))

    return create_config_from_args(
        source_root=validate_path(source_root) if source_root else None,
        null_anchor=null_anchor,
        location=location,
        dry_run=dry_run,
        base=base,
    )


# =============================================================================
# Commands
# =============================================================================


@app.command()
def merge(
    path: str = typer.Argument(..., help="Impl class file, or a directory to scan for Impl classes"),
    caret: Optional[int] = typer.Option(None, "--caret", help="Byte offset inside the class to merge (file mode)"),
    source_root: Optional[str] = typer.Option(None, "--source-root", "-r", help="Source root for resolving interfaces"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to configuration YAML file"),
    null_anchor: Optional[str] = typer.Option(None, "--null-anchor", help="Placement of leading copies (prepend/skip)"),
    location: Optional[str] = typer.Option(None, "--location", help="Output file (class_file/interface_file)"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Compute merges without touching files"),
    report: Optional[str] = typer.Option(None, "--report", help="Write a JSON report of the run"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Merge interfaces into their implementation classes.

    Examples:
        implmerge merge src/main/java/com/acme/GreeterImpl.java
        implmerge merge src/main/java --dry-run --report merge.json
    """
    print_banner()
    configure_logging(verbose)

    try:
        cfg = build_config(config, source_root, null_anchor, location, dry_run)
        context = EditorContext(
            selection=validate_path(path),
            caret_offset=caret,
            source_root=cfg.source.root,
        )

        batch = BatchDriver(MergeOrchestrator(cfg)).run(context)
        display_batch(batch, verbose)

        if report:
            write_report(batch, Path(report))

    except ConfigurationError as e:
        console.print(f"[bold red]Configuration Error:[/bold red] {e}")
        raise typer.Exit(1)
    except typer.BadParameter:
        raise
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        if verbose:
            console.print_exception()
        raise typer.Exit(1)

    if not batch.files:
        console.print("[yellow]Nothing to merge.[/yellow]")
    if batch.failed:
        raise typer.Exit(1)


@app.command()
def plan(
    path: str = typer.Argument(..., help="Impl class file"),
    caret: Optional[int] = typer.Option(None, "--caret", help="Byte offset inside the class to merge"),
    source_root: Optional[str] = typer.Option(None, "--source-root", "-r", help="Source root for resolving interfaces"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to configuration YAML file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Show how each interface method would be handled, without editing anything.
    """
    configure_logging(verbose)

    try:
        cfg = build_config(config, source_root)
        merge_plan = MergeOrchestrator(cfg).plan_file(validate_path(path), caret, cfg.source.root)
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration Error:[/bold red] {e}")
        raise typer.Exit(1)
    except MergeError as e:
        console.print(f"[bold red]Can't merge:[/bold red] {e}")
        raise typer.Exit(1)

    display_plan(merge_plan)


@app.command()
def init(
    output: str = typer.Option("./implmerge.yaml", "--output", "-o", help="Output path for config file"),
):
    """
    Generate a default configuration file.

    Creates an implmerge.yaml with sensible defaults that you can customize.
    """
    output_path = Path(output)

    if output_path.exists():
        if not typer.confirm(f"{output} already exists. Overwrite?"):
            console.print("[yellow]Cancelled.[/yellow]")
            raise typer.Abort()

    generate_default_config(output_path)
    console.print(f"[green]✓[/green] Generated configuration file: {output}")
    console.print("\nEdit this file to customize merge settings.")


# =============================================================================
# Display
# =============================================================================

_STATUS_STYLES = {
    MergeStatus.MERGED: "green",
    MergeStatus.PLANNED: "cyan",
    MergeStatus.SKIPPED: "yellow",
    MergeStatus.FAILED: "red",
}


def display_batch(batch: BatchReport, verbose: bool = False):
    """Summarize a batch run as a table."""
    if not batch.files:
        return

    table = Table(title="Merge Results")
    table.add_column("File", style="cyan")
    table.add_column("Status", justify="center")
    table.add_column("Copied", justify="right")
    table.add_column("Matched", justify="right")
    table.add_column("Ambiguous", justify="right")
    table.add_column("Message")

    for outcome in batch.files:
        color = _STATUS_STYLES[outcome.status]
        r = outcome.report
        table.add_row(
            outcome.path.name,
            f"[{color}]{outcome.status.value}[/{color}]",
            str(len(r.copied)) if r else "-",
            str(len(r.matched)) if r else "-",
            str(len(r.ambiguous)) if r else "-",
            outcome.message or "",
        )

    console.print(table)

    for outcome in batch.files:
        if outcome.report is None:
            continue
        for ambiguous in outcome.report.ambiguous:
            console.print(
                f"[yellow]⚠[/yellow] {outcome.report.class_name}: more than one implementation of "
                f"{ambiguous.method}, left unchanged"
            )
        for method in outcome.report.unplaced:
            console.print(f"[yellow]⚠[/yellow] {outcome.report.class_name}: {method} was not copied")
        if verbose and outcome.preview:
            console.print(Panel(outcome.preview, title=str(outcome.destination), border_style="dim"))

    console.print(
        f"\n[bold]{batch.merged} merged, {batch.count(MergeStatus.PLANNED)} planned, "
        f"{batch.skipped} skipped, {batch.failed} failed[/bold]"
    )


def display_plan(merge_plan: MergePlan):
    """Show the match decisions for one class."""
    info_text = f"""
[bold cyan]Class:[/bold cyan] {merge_plan.class_name} ({merge_plan.class_path})
[bold cyan]Interface:[/bold cyan] {merge_plan.interface_name} ({merge_plan.interface_path})
    """
    console.print(Panel(info_text.strip(), title="Merge Plan", border_style="bold green"))

    decision_styles = {
        MatchDecision.COPY: "cyan",
        MatchDecision.MERGE: "green",
        MatchDecision.INHERITED: "dim",
        MatchDecision.AMBIGUOUS: "yellow",
    }
    table = Table()
    table.add_column("Method", style="cyan")
    table.add_column("Decision", justify="center")
    table.add_column("Implementations")
    table.add_column("Doc", justify="center")

    for entry in merge_plan.entries:
        color = decision_styles[entry.decision]
        table.add_row(
            entry.method,
            f"[{color}]{entry.decision.value}[/{color}]",
            "\n".join(entry.implementations),
            "✓" if entry.has_doc else "",
        )

    console.print(table)


def write_report(batch: BatchReport, output_path: Path):
    """Save the batch outcome as JSON."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "wb") as f:
        f.write(orjson.dumps(batch.model_dump(mode="json"), option=orjson.OPT_INDENT_2))
    console.print(f"\n[green]✓[/green] Report saved to {output_path}")


# =============================================================================
# Entry Point
# =============================================================================


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
