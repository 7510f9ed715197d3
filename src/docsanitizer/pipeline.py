import hashlib
import logging
import time
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console
from rich.table import Table

from .config import Config
from .detectors.base import Detection
from .detectors.composite import ScanEngine
from .detectors.ner_detector import EntityRecognizer
from .pseudonymizer.engine import MaskingResult, apply_masking
from .pseudonymizer.mapping import MappingStore
from .readers.registry import is_binary_format, read_document
from .review import approve_all
from .stats import ScanStats, compute_stats

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    document_id: str
    original_file_name: str
    content: str
    detections: list[Detection]
    stats: ScanStats


async def scan_document(
    content: str,
    file_name: str,
    config: Config,
    recognizer: EntityRecognizer | None = None,
) -> ScanResult:
    """Scan already-extracted text and time it."""
    started = time.perf_counter()
    detections = await ScanEngine(config, recognizer).scan(content)
    elapsed_ms = (time.perf_counter() - started) * 1000

    document_id = hashlib.sha256(f"{file_name}\0{content}".encode()).hexdigest()[:16]
    return ScanResult(
        document_id=document_id,
        original_file_name=file_name,
        content=content,
        detections=detections,
        stats=compute_stats(detections, elapsed_ms),
    )


def output_path_for(file_path: Path, output_dir: Path, export_format: str) -> Path:
    """Where the masked text of file_path is written.

    Text formats keep their extension with "same"; binary documents are
    written as plain text since their layout is not rebuilt.
    """
    if export_format in ("txt", "md"):
        return output_dir / f"{file_path.stem}.{export_format}"
    if is_binary_format(file_path):
        return output_dir / f"{file_path.stem}.txt"
    return output_dir / file_path.name


def _display_detections(file_name: str, result: ScanResult, console: Console) -> None:
    """Display detections in a rich table."""
    if not result.detections:
        console.print(f"  [dim]{file_name}: no sensitive information detected[/dim]")
        return

    table = Table(title=f"{file_name}", show_lines=False, padding=(0, 1))
    table.add_column("Category", style="cyan", width=14)
    table.add_column("Type", style="cyan")
    table.add_column("Text", style="yellow")
    table.add_column("Conf.", style="green", width=5)
    table.add_column("Placeholder", style="magenta")
    table.add_column("Mask", width=4)

    for detection in result.detections:
        # Truncate long texts for display
        text = detection.text if len(detection.text) <= 60 else detection.text[:57] + "..."
        table.add_row(
            detection.category.value,
            detection.subcategory,
            text,
            str(detection.confidence),
            detection.suggested_placeholder,
            "yes" if detection.approved else "no",
        )

    console.print(table)
    stats = result.stats
    console.print(
        f"  [dim]{stats.total_detections} detection(s): "
        f"{stats.by_confidence['high']} high, {stats.by_confidence['medium']} medium, "
        f"{stats.by_confidence['low']} low confidence ({stats.processing_time_ms:.0f} ms)[/dim]"
    )


def write_outputs(
    file_path: Path,
    masking: MaskingResult,
    config: Config,
    output_dir: Path,
) -> tuple[Path, Path | None]:
    """Write the masked text and, if enabled, its mapping file."""
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_path_for(file_path, output_dir, config.export_preferences.default_format)
    output_path.write_text(masking.masked_text, encoding="utf-8")

    mapping_path = None
    if config.export_preferences.include_mapping_file and masking.mapping:
        mapping_path = output_dir / f"{file_path.stem}.mapping.json"
        MappingStore(masking.mapping).save(mapping_path)
    return output_path, mapping_path


async def process_file(
    file_path: Path,
    config: Config,
    output_dir: Path,
    *,
    dry_run: bool = False,
    approve_everything: bool = False,
    recognizer: EntityRecognizer | None = None,
    console: Console | None = None,
) -> ScanResult | None:
    """Process a single file through the full pipeline.

    Returns None when the file could not be read.
    """
    if console is None:
        console = Console()

    logger.info("Reading: %s", file_path.name)

    # 1. Read
    content = read_document(file_path)
    if content is None:
        return None
    if not content.strip():
        logger.info("  No text content in %s, skipping.", file_path.name)
        return None

    # 2. Detect
    result = await scan_document(content, file_path.name, config, recognizer)
    if approve_everything:
        result.detections = approve_all(result.detections)

    # 3. Display detections
    _display_detections(file_path.name, result, console)

    if dry_run or not result.detections:
        return result

    # 4. Mask
    masking = apply_masking(content, result.detections)

    # 5. Write
    output_path, mapping_path = write_outputs(file_path, masking, config, output_dir)
    logger.info("  Written: %s (%d replacement(s))", output_path, masking.total_masked)
    if mapping_path is not None:
        logger.info("  Mapping: %s", mapping_path)

    return result
