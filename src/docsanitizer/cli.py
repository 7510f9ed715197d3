import asyncio
import json
import logging
from importlib.metadata import version
from pathlib import Path

import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from .config import EXPORT_FORMATS, Config, load_config
from .detectors.base import Category
from .detectors.ner_detector import OnnxEntityRecognizer
from .pipeline import process_file
from .readers.registry import list_supported_files

logger = logging.getLogger(__name__)

console = Console()


@click.command()
@click.argument("input_path", type=click.Path(exists=True, path_type=Path))
@click.option(
    "-o",
    "--output",
    "output_dir",
    type=click.Path(path_type=Path),
    default="output",
    help="Output directory for masked files and mappings.",
)
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="JSON configuration file (company info, custom entities, detection settings).",
)
@click.option(
    "--min-confidence",
    type=click.IntRange(0, 100),
    default=None,
    help="Minimum rule confidence (0-100). Overrides the configuration file.",
)
@click.option(
    "--disable-category",
    "disabled_categories",
    type=click.Choice([c.value for c in Category]),
    multiple=True,
    help="Category to skip; may be given several times.",
)
@click.option(
    "--auto-approve/--no-auto-approve",
    default=None,
    help="Approve high-confidence detections without review.",
)
@click.option("--approve-all", is_flag=True, default=False, help="Mask every detection, whatever its confidence.")
@click.option("--no-ner", is_flag=True, default=False, help="Skip person/organization recognition.")
@click.option(
    "--format",
    "export_format",
    type=click.Choice(EXPORT_FORMATS),
    default=None,
    help="Output format for masked text.",
)
@click.option("--no-mapping", is_flag=True, default=False, help="Do not write mapping files.")
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Show detections without writing files.",
)
@click.option("--dump-config", is_flag=True, default=False, help="Print the effective configuration as JSON and exit.")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Verbose logging.")
@click.version_option(version=version("docsanitizer"))
def main(
    input_path: Path,
    output_dir: Path,
    config_path: Path | None,
    min_confidence: int | None,
    disabled_categories: tuple[str, ...],
    auto_approve: bool | None,
    approve_all: bool,
    no_ner: bool,
    export_format: str | None,
    no_mapping: bool,
    dry_run: bool,
    dump_config: bool,
    verbose: bool,
) -> None:
    """Detect and mask sensitive information in documents.

    INPUT_PATH can be a single file or a directory of documents.
    Supported formats: .txt, .md, .csv, .json, .html, .docx, .xlsx, .pdf
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
    )

    config = load_config(config_path) if config_path else Config()
    settings = config.detection_settings
    if min_confidence is not None:
        settings.min_confidence = min_confidence
    if auto_approve is not None:
        settings.auto_approve_high_confidence = auto_approve
    for value in disabled_categories:
        settings.categories_enabled.discard(Category(value))
    if export_format is not None:
        config.export_preferences.default_format = export_format
    if no_mapping:
        config.export_preferences.include_mapping_file = False
    if no_ner:
        config.ner.enabled = False

    if dump_config:
        click.echo(json.dumps(config.to_dict(), indent=2, ensure_ascii=False))
        return

    recognizer = OnnxEntityRecognizer(config.ner) if config.ner.enabled else None

    # Discover files
    files = list_supported_files(input_path)
    if not files:
        console.print("[red]No supported files found.[/red]")
        raise SystemExit(1)

    console.print(f"Found {len(files)} file(s) to process")

    if dry_run:
        console.print("[yellow]Dry run: no files will be written.[/yellow]")

    # Process files
    total_detections = 0
    total_approved = 0
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("Processing...", total=len(files))
        for file_path in files:
            progress.update(task, description=f"Processing {file_path.name}...")
            try:
                result = asyncio.run(
                    process_file(
                        file_path,
                        config,
                        output_dir,
                        dry_run=dry_run,
                        approve_everything=approve_all,
                        recognizer=recognizer,
                        console=console,
                    )
                )
                if result is not None:
                    total_detections += len(result.detections)
                    total_approved += sum(1 for d in result.detections if d.approved)
            except Exception:
                console.print(f"  [red]Error processing {file_path.name}[/red]")
                logger.debug("Failed to process %s", file_path.name, exc_info=True)
            progress.advance(task)

    # Summary
    console.print()
    console.print(
        f"[bold green]Done.[/bold green] {total_detections} detection(s) across {len(files)} file(s), "
        f"{total_approved} approved for masking."
    )

    if not dry_run and total_approved > 0:
        console.print(f"Masked files in {output_dir}/")
