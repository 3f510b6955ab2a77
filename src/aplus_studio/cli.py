"""CLI interface for aplus-studio."""

import asyncio
from pathlib import Path
from typing import NoReturn

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from .config.logging import get_logger, setup_logging
from .config.settings import get_settings
from .exceptions import AplusStudioError
from .models import (
    BrandVibe,
    GeneratedAsset,
    ReferenceImage,
    StrategyBrief,
    StudioShotConfig,
    StudioShotType,
)
from .studio.content_studio import ContentStudio

app = typer.Typer(
    name="aplus-studio",
    help="Generate Amazon A+ marketing image sets from product photos.",
    rich_markup_mode="rich",
    no_args_is_help=True,
)

console = Console()
logger = get_logger(__name__)

DEFAULT_OUTPUT = Path("aplus-output")


def _load_studio(images: list[Path] | None = None) -> ContentStudio:
    """Build a session from settings and load product images into it."""
    try:
        settings = get_settings()
    except ValidationError as e:
        console.print(
            "[red]Configuration error:[/red] Invalid configuration values.\n"
            "Check your .env file for correct format.\n"
            f"Details: {e}"
        )
        raise typer.Exit(1)
    if images is not None and not settings.is_configured():
        console.print(
            Panel(
                "[red]GEMINI_API_KEY is not set.[/red]\n"
                "Add it to your environment or a .env file, then run "
                "[bold]aplus-studio config[/bold] to check.",
                title="Configuration Required",
                border_style="red",
            )
        )
        raise typer.Exit(1)
    studio = ContentStudio()
    for path in images or []:
        try:
            studio.images.add(ReferenceImage.from_path(path))
        except AplusStudioError as e:
            console.print(f"[red]Invalid image:[/red] {e.message}")
            raise typer.Exit(1)
    return studio


def _progress() -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        TimeElapsedColumn(),
        console=console,
    )


def _save_assets(studio: ContentStudio, assets: list[GeneratedAsset], output: Path) -> None:
    table = Table(title="Generated Images", show_header=True, header_style="bold")
    table.add_column("#", style="dim")
    table.add_column("Category", style="cyan")
    table.add_column("Layout")
    table.add_column("File")
    for i, asset in enumerate(assets, 1):
        path = studio.download(asset.id, output)
        layout = asset.layout_type.value if asset.layout_type else "-"
        table.add_row(str(i), asset.category, layout, str(path))
    console.print(table)


def _fail(e: AplusStudioError) -> NoReturn:
    logger.debug("Command failed", exc_info=e)
    console.print(f"[red]Error:[/red] {e.message}")
    if e.details:
        console.print(f"[dim]{e.details}[/dim]")
    raise typer.Exit(1)


@app.command()
def generate(
    images: list[Path] = typer.Argument(..., help="Product image files", exists=True),
    category: str = typer.Option(..., "--category", "-c", help="Product category"),
    vibe: BrandVibe = typer.Option(BrandVibe.CLEAN_CLINICAL, "--vibe", help="Brand vibe"),
    notes: str = typer.Option("", "--notes", help="Extra details for the planner"),
    output: Path = typer.Option(DEFAULT_OUTPUT, "--output", "-o", help="Output directory"),
) -> None:
    """Research, plan and generate a full A+ image set (Express mode).

    Examples:
        aplus-studio generate serum.png -c "Vitamin C Serum"
        aplus-studio generate a.png b.png -c "Skincare Bundle" --vibe "Luxury & Minimal"
    """
    studio = _load_studio(images)
    try:
        brief = StrategyBrief(category=category, vibe=vibe, notes=notes)
    except ValidationError:
        console.print("[red]Invalid category:[/red] category cannot be empty")
        raise typer.Exit(1)

    label = "bundle" if studio.images.is_bundle else "single product"
    console.print(
        Panel(
            f"[bold]Category:[/bold] {brief.category}\n"
            f"[bold]Vibe:[/bold] {brief.vibe.value}\n"
            f"[bold]Images:[/bold] {len(studio.images)} ({label})\n"
            f"[bold]Guidelines:[/bold] {'yes' if studio.guidelines else 'none'}",
            title="A+ Strategy",
            border_style="cyan",
        )
    )
    console.print("[cyan]Researching trends and planning the set...[/cyan]")

    with _progress() as progress:
        task = progress.add_task("[cyan]Generating images...", total=None)

        def on_progress(current: int, total: int) -> None:
            progress.update(
                task, total=total, completed=current - 1, description=f"[cyan]Image {current}"
            )

        try:
            result = asyncio.run(studio.start_batch_run(brief, on_progress=on_progress))
        except AplusStudioError as e:
            progress.stop()
            _fail(e)
        progress.update(task, completed=result.total, description="[green]Done")

    if studio.trend_summary:
        console.print(Panel(studio.trend_summary, title="Trend Research", border_style="blue"))
    if result.assets:
        _save_assets(studio, result.assets, output)
    for err in result.errors:
        console.print(f"[yellow]Skipped:[/yellow] {err}")
    console.print(
        f"[green]Generated {result.succeeded}/{result.total} images in {output}[/green]"
    )


@app.command()
def shot(
    images: list[Path] = typer.Argument(..., help="Product image files", exists=True),
    shot_type: StudioShotType = typer.Option(StudioShotType.HERO, "--type", "-t"),
    theme: str = typer.Option("Minimalist", "--theme"),
    lighting: str = typer.Option("Soft Daylight", "--lighting"),
    composition: str = typer.Option("Centered", "--composition"),
    background: str = typer.Option("Solid Color", "--background"),
    element: list[str] = typer.Option([], "--element", "-e", help="Prop (repeatable)"),
    text: str = typer.Option("", "--text", help="Text to render on the image"),
    trust: str = typer.Option(None, "--trust", help="Trust cue for SCIENTIFIC shots"),
    style_ref: Path = typer.Option(None, "--style-ref", exists=True, help="Style image"),
    instructions: str = typer.Option("", "--instructions", help="Extra scene details"),
    match_vibe: bool = typer.Option(False, "--match-vibe", help="Match the brand palette"),
    output: Path = typer.Option(DEFAULT_OUTPUT, "--output", "-o", help="Output directory"),
) -> None:
    """Generate one image from explicit scene settings (Studio mode)."""
    studio = _load_studio(images)
    try:
        config = StudioShotConfig(
            theme=theme,
            lighting=lighting,
            composition=composition,
            background=background,
            elements=tuple(element),
            custom_instructions=instructions,
            match_brand_vibe=match_vibe,
            reference_image=ReferenceImage.from_path(style_ref) if style_ref else None,
        )
    except ValidationError as e:
        console.print(f"[red]Invalid scene settings:[/red] {e.errors()[0]['msg']}")
        raise typer.Exit(1)
    except AplusStudioError as e:
        _fail(e)

    with console.status(f"[cyan]Generating {shot_type.value} shot..."):
        try:
            asset = asyncio.run(studio.start_single_shot(config, shot_type, text, trust))
        except AplusStudioError as e:
            _fail(e)
    _save_assets(studio, [asset], output)


@app.command()
def regenerate(
    asset_id: str = typer.Argument(..., help="Id of a history entry"),
    images: list[Path] = typer.Argument(..., help="Product image files", exists=True),
    prompt: str = typer.Option(None, "--prompt", "-p", help="Replacement prompt"),
    output: Path = typer.Option(DEFAULT_OUTPUT, "--output", "-o", help="Output directory"),
) -> None:
    """Regenerate a history entry, keeping its id."""
    studio = _load_studio(images)
    with console.status(f"[cyan]Regenerating {asset_id}..."):
        try:
            ok = asyncio.run(studio.regenerate(asset_id, prompt))
        except AplusStudioError as e:
            _fail(e)
    if not ok:
        console.print(f"[red]{studio.error_message}[/red]")
        raise typer.Exit(1)
    _save_assets(studio, [studio.get_asset(asset_id)], output)


@app.command()
def history(
    clear: bool = typer.Option(False, "--clear", help="Delete the saved history"),
) -> None:
    """List (or clear) recently generated images."""
    studio = _load_studio()
    if clear:
        studio.clear_history()
        console.print("[green]History cleared.[/green]")
        return
    entries = studio.store.history.items
    if not entries:
        console.print("[dim]No history yet.[/dim]")
        return
    table = Table(title="History (most recent first)", show_header=True, header_style="bold")
    table.add_column("Id", style="cyan", no_wrap=True)
    table.add_column("Category")
    table.add_column("Created", style="dim")
    table.add_column("Texts")
    for a in entries:
        texts = ", ".join(r.literal_text for r in a.text_requests) or "-"
        table.add_row(a.id, a.category, a.created_at.strftime("%Y-%m-%d %H:%M"), texts)
    console.print(table)


@app.command()
def guidelines(
    set_text: str = typer.Option(None, "--set", help="New brand guidelines"),
    file: Path = typer.Option(None, "--file", exists=True, help="Read guidelines from file"),
) -> None:
    """Show or update the brand guidelines applied to every generation."""
    studio = _load_studio()
    if file is not None:
        set_text = file.read_text(encoding="utf-8")
    if set_text is not None:
        studio.save_guidelines(set_text)
        console.print("[green]Brand guidelines saved.[/green]")
        return
    if studio.guidelines:
        console.print(Panel(studio.guidelines, title="Brand Guidelines", border_style="cyan"))
    else:
        console.print("[dim]No brand guidelines set.[/dim]")


@app.command()
def config() -> None:
    """Show configuration status."""
    try:
        settings = get_settings()
    except Exception as e:
        console.print(f"[red]Failed to load configuration:[/red] {e}")
        raise typer.Exit(1)

    table = Table(title="Configuration", show_header=True, header_style="bold")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for name, value in settings.to_dict().items():
        table.add_row(name.upper(), str(value) if value != "" else "[red]✗ Not set[/red]")
    console.print(table)
    if not settings.is_configured():
        console.print("\n[red]✗ GEMINI_API_KEY is missing[/red]")
        raise typer.Exit(1)
    console.print("\n[green]✓ Ready to generate.[/green]")


def main() -> None:
    """Entry point for the CLI."""
    try:
        log_level = get_settings().aplus_log_level
    except Exception:
        log_level = "INFO"
    setup_logging(level=log_level)
    app()


if __name__ == "__main__":
    main()
