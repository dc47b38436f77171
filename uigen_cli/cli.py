"""Typer-based CLI for the UIGen component-generation core."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from . import __version__, config, config_manager
from .context_builder import ContextSynthesizer, render_prompt_context
from .errors import ConfigError, InsufficientContextError, ProviderUnavailable
from .fusion import fuse
from .models import GenerationRequest, Origin, SearchHit
from .optimizer import Optimizer, unified_diff
from .providers import Catalog, catalog_providers
from .review_engine import ReviewEngine
from .review_models import Severity

app = typer.Typer(
    help="🧩 UIGen CLI: context synthesis, quality review and optimisation for UI components.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
config_app = typer.Typer(
    help="⚙️  Show or change tuning settings.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
app.add_typer(config_app, name="config")

console = Console()

_SEVERITY_STYLE = {
    Severity.ERROR: "bold red",
    Severity.WARNING: "yellow",
    Severity.INFO: "dim",
}


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"UIGen CLI v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Enable debug logging."),
):
    """UIGen CLI: fuse search results, build generation context, review and optimise components."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise typer.BadParameter(f"Cannot read {path}: {exc}")


def _load_hits(path: Path, origin: Origin) -> List[SearchHit]:
    try:
        data: Any = json.loads(_read_text(path))
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"{path} is not valid JSON: {exc}")
    if isinstance(data, dict):
        data = data.get("hits", [])
    if not isinstance(data, list):
        raise typer.BadParameter(f"{path} must contain a list of hits")
    return [SearchHit.from_dict(item, origin) for item in data if isinstance(item, dict)]


def _score_color(score: int) -> str:
    if score >= 80:
        return "green"
    if score >= 60:
        return "yellow"
    return "red"


# ===================================================================
# fuse
# ===================================================================

@app.command("fuse")
def fuse_command(
    semantic_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON list of semantic hits."),
    keyword_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON list of keyword hits."),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON."),
):
    """🔀 Fuse semantic and keyword hit lists into one ranking."""
    settings = config_manager.load_fusion_settings()
    results = fuse(
        _load_hits(semantic_file, Origin.SEMANTIC),
        _load_hits(keyword_file, Origin.KEYWORD),
        settings,
    )

    if as_json:
        typer.echo(json.dumps([r.to_dict() for r in results], indent=2))
        return

    if not results:
        console.print("[yellow]No results.[/yellow]")
        return

    table = Table(title="Fused Results", show_lines=False)
    table.add_column("#", style="dim", width=4)
    table.add_column("ID", style="cyan")
    table.add_column("Score", justify="right", style="green")
    table.add_column("Title", min_width=20)
    for i, result in enumerate(results, 1):
        table.add_row(str(i), result.id, f"{result.score:.3f}", result.title or "-")
    console.print(table)


# ===================================================================
# context
# ===================================================================

@app.command("context")
def context_command(
    prompt: str = typer.Argument(..., help="Natural-language component request."),
    catalog_path: Path = typer.Option(..., "--catalog", "-c", help="JSON catalog snapshot."),
    framework: str = typer.Option("react", "--framework", "-f", help="Target framework."),
    category: Optional[str] = typer.Option(None, "--category", help="Catalog category (inferred if omitted)."),
    from_code: Optional[Path] = typer.Option(
        None, "--from-code", exists=True, dir_okay=False,
        help="Example component whose features extend the search query.",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the context as JSON."),
):
    """📚 Gather and summarise generation context from a catalog."""
    try:
        catalog = Catalog.load(catalog_path)
    except ProviderUnavailable as exc:
        console.print(f"[red]❌ {exc}[/red]")
        raise typer.Exit(code=1)

    synthesizer = ContextSynthesizer.from_providers(
        catalog_providers(catalog),
        fusion_settings=config_manager.load_fusion_settings(),
        settings=config_manager.load_synthesis_settings(),
    )
    request = GenerationRequest(
        prompt=prompt,
        framework=framework,
        category=category,
        example_code=_read_text(from_code) if from_code else None,
    )
    try:
        result = synthesizer.build_context(request)
    except InsufficientContextError as exc:
        console.print(f"[red]❌ {exc}[/red]")
        raise typer.Exit(code=2)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
        return

    console.print(Panel(f"[bold]{prompt}[/bold]\n[dim]{framework} · {result.category}[/dim]",
                        title="Generation Context", border_style="cyan"))
    if result.failed_providers:
        console.print(f"[yellow]⚠ Unavailable providers: {', '.join(result.failed_providers)}[/yellow]")
    console.print(render_prompt_context(result), markup=False, highlight=False)


# ===================================================================
# review / optimize
# ===================================================================

@app.command("review")
def review_command(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Component source file."),
    framework: str = typer.Option("react", "--framework", "-f", help="Declared framework."),
    as_json: bool = typer.Option(False, "--json", help="Print the verdict as JSON."),
):
    """🔍 Review a component and print its quality verdict."""
    engine = ReviewEngine(config_manager.load_review_settings())
    verdict = engine.review(_read_text(file), framework)

    if as_json:
        typer.echo(json.dumps(verdict.to_dict(), indent=2))
        return

    color = _score_color(verdict.score)
    status = "PASSED" if verdict.passed else "FAILED"
    console.print(Panel.fit(
        f"[bold {color}]{verdict.score}/100 {status}[/bold {color}]",
        title=f"[bold]{file.name}[/bold]",
        border_style=color,
    ))

    sections = Table(title="Sections", show_header=True)
    sections.add_column("Analyzer", style="cyan")
    sections.add_column("Score", justify="right")
    sections.add_column("Issues", justify="right")
    sections.add_column("Suggestions", justify="right")
    for section in verdict.sections:
        sections.add_row(
            section.analyzer,
            f"[{_score_color(section.score)}]{section.score}[/]",
            str(len(section.issues)),
            str(len(section.suggestions)),
        )
    console.print(sections)

    if verdict.issues:
        issues = Table(title="Issues", show_header=True)
        issues.add_column("Severity", width=8)
        issues.add_column("Line", justify="right", style="dim", width=5)
        issues.add_column("Code", style="magenta")
        issues.add_column("Message", min_width=30)
        for issue in verdict.issues:
            style = _SEVERITY_STYLE[issue.severity]
            issues.add_row(
                f"[{style}]{issue.severity.value}[/]",
                str(issue.line or ""),
                issue.code,
                issue.message,
            )
        console.print(issues)

    for suggestion in verdict.suggestions:
        console.print(f"  💡 [{suggestion.priority.value}] {suggestion.message}", markup=False)

    if verdict.auto_fix_available:
        console.print(f"\n[dim]Auto-fixes available: run 'uig optimize {file}'[/dim]")


@app.command("optimize")
def optimize_command(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Component source file."),
    framework: str = typer.Option("react", "--framework", "-f", help="Declared framework."),
    write: bool = typer.Option(False, "--write", "-w", help="Write the optimised source back to FILE."),
    show_diff: bool = typer.Option(False, "--diff", help="Print a unified diff instead of the source."),
):
    """⚡ Apply safe rewrites for review findings."""
    original = _read_text(file)
    verdict = ReviewEngine(config_manager.load_review_settings()).review(original, framework)
    optimized, record = Optimizer(config_manager.load_optimize_settings()).optimize(
        original, verdict, framework,
    )

    if not record.labels:
        console.print("[yellow]Nothing to optimise.[/yellow]")
        return

    for label in record.labels:
        console.print(f"  ✅ {label}", markup=False)
    console.print(
        f"[dim]Estimated score: {record.base_score} → {record.estimated_score} "
        f"(+{record.score_delta})[/dim]"
    )

    if show_diff:
        typer.echo(unified_diff(original, optimized, file.name))
    if write:
        file.write_text(optimized, encoding="utf-8")
        console.print(f"[green]Wrote {file}[/green]")
    elif not show_diff:
        typer.echo(optimized)


# ===================================================================
# config
# ===================================================================

@config_app.command("show")
def config_show():
    """Show effective settings (file values merged over defaults)."""
    table = Table(title="Effective Settings", show_header=True)
    table.add_column("Key", style="cyan")
    table.add_column("Value", justify="right", style="green")
    for section, values in config_manager.effective_settings().items():
        for key, value in values.items():
            table.add_row(f"{section}.{key}", str(value))
    console.print(table)
    console.print(f"[dim]Config file: {config.CONFIG_FILE}[/dim]")


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Setting as section.key, e.g. fusion.semantic_boost."),
    value: str = typer.Argument(..., help="New value."),
):
    """Persist one setting."""
    try:
        written = config_manager.set_value(key, value)
    except ConfigError as exc:
        console.print(f"[red]❌ {exc}[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]✓[/green] {key} = {written}")


@config_app.command("reset")
def config_reset():
    """Delete the config file and return to defaults."""
    if config_manager.reset_config():
        console.print("[green]✓ Configuration reset to defaults.[/green]")
    else:
        console.print("[dim]No config file to remove.[/dim]")
