"""Command-line interface for GlobalMe.

Generates country variants of one photo and writes them as PNG files.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
import sys

from rich.console import Console
from rich.table import Table

from globalme.core.config.loader import load_app_config
from globalme.core.config.models import AppConfig
from globalme.core.generation.client import GeminiVariantGenerator
from globalme.core.generation.export import save_variants
from globalme.core.generation.models import ItemStatus, SourceImage, StoreSnapshot
from globalme.core.generation.orchestrator import GenerationOrchestrator
from globalme.core.generation.protocols import VariantGenerator
from globalme.core.intake import IntakeValidationError, load_source_image
from globalme.core.targets.catalog import BUILTIN_TARGETS, load_targets, select_targets
from globalme.core.targets.models import TargetConfig
from globalme.core.utils.logging import configure_logging

console = Console()
logger = logging.getLogger(__name__)

_STATUS_STYLES = {
    ItemStatus.IDLE: "dim",
    ItemStatus.PENDING: "yellow",
    ItemStatus.SUCCEEDED: "green",
    ItemStatus.FAILED: "red",
}


def _parse_id_list(value: str | None) -> list[str] | None:
    if not value:
        return None
    return [part.strip() for part in value.split(",") if part.strip()]


def resolve_targets(
    config: AppConfig,
    targets_file: str | None = None,
    only: str | None = None,
) -> tuple[TargetConfig, ...]:
    """Pick the target set: CLI file, then config file, then built-ins."""
    path = targets_file or config.targets_path
    targets = load_targets(path) if path else BUILTIN_TARGETS
    return select_targets(targets, _parse_id_list(only))


def render_snapshot(snapshot: StoreSnapshot, targets: tuple[TargetConfig, ...]) -> Table:
    """Build a status table for a snapshot."""
    names = {t.target_id: t.name for t in targets}
    table = Table(title="Variants")
    table.add_column("Target")
    table.add_column("Status")
    table.add_column("Detail", overflow="fold")

    for target_id, item in snapshot.items.items():
        style = _STATUS_STYLES[item.status]
        detail = item.error or ""
        table.add_row(
            names.get(target_id, target_id),
            f"[{style}]{item.status.value}[/{style}]",
            detail,
        )
    return table


async def run_generation_async(
    image: SourceImage,
    targets: tuple[TargetConfig, ...],
    generator: VariantGenerator,
    output_dir: Path,
    retry_rounds: int = 0,
) -> int:
    """Generate, retry failures, save and report.

    Returns:
        Exit code (0 if every variant succeeded, 1 otherwise)
    """
    async with GenerationOrchestrator(targets, generator) as orchestrator:
        orchestrator.start(image)
        with console.status(f"Generating {len(targets)} variants..."):
            snapshot = await orchestrator.wait_settled()

        for round_number in range(1, retry_rounds + 1):
            failed = [item.target_id for item in snapshot.failed]
            if not failed:
                break
            console.print(f"[yellow]Retry round {round_number}: {', '.join(failed)}[/yellow]")
            for target_id in failed:
                orchestrator.retry(target_id)
            with console.status(f"Retrying {len(failed)} variant(s)..."):
                snapshot = await orchestrator.wait_settled()

    saved = save_variants(snapshot, output_dir)
    console.print(render_snapshot(snapshot, targets))
    for variant in saved:
        console.print(f"[green]Saved[/green] {variant.file_path}")

    failed_count = len(snapshot.failed)
    if failed_count:
        console.print(f"[red]{failed_count} of {len(targets)} variant(s) failed[/red]")
        return 1
    return 0


def run_generate(args: argparse.Namespace) -> None:
    """Run the generate command."""
    config = load_app_config(args.app_config)
    configure_logging(
        level=config.logging.level,
        format_string=config.logging.format,
        filename=config.logging.filename,
        structured=config.logging.structured,
    )

    if not config.api_key:
        console.print("[red]ERROR: GEMINI_API_KEY environment variable not set[/red]")
        console.print("  export GEMINI_API_KEY='your-key-here'")
        sys.exit(1)

    try:
        targets = resolve_targets(config, args.targets_file, args.only)
        image = load_source_image(args.image, config.intake)
    except (FileNotFoundError, IntakeValidationError, KeyError, ValueError) as e:
        console.print(f"[red]ERROR: {e}[/red]")
        sys.exit(1)

    output_dir = Path(args.out or config.output_dir).resolve()
    generator = GeminiVariantGenerator.from_config(config.generation, config.api_key)

    exit_code = asyncio.run(
        run_generation_async(
            image,
            targets,
            generator,
            output_dir,
            retry_rounds=args.retry_failed,
        )
    )
    sys.exit(exit_code)


def run_list_targets(args: argparse.Namespace) -> None:
    """Print the configured targets."""
    config = load_app_config(args.app_config)
    try:
        targets = resolve_targets(config, args.targets_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]ERROR: {e}[/red]")
        sys.exit(1)

    table = Table(title="Targets")
    table.add_column("Id")
    table.add_column("Name")
    table.add_column("Location", overflow="fold")
    for target in targets:
        table.add_row(target.target_id, target.name, target.scene.location)
    console.print(table)


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for CLI."""
    p = argparse.ArgumentParser(
        prog="globalme",
        description="GlobalMe - see yourself in different countries",
    )
    p.add_argument(
        "--app-config",
        default="config.yaml",
        help="Path to app config YAML/JSON (default: config.yaml)",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    gen = sub.add_parser("generate", help="Generate variants of a photo")
    gen.add_argument("--image", required=True, help="Path to the source photo (jpg/png/webp)")
    gen.add_argument("--out", default=None, help="Output directory (default: from config)")
    gen.add_argument("--targets-file", default=None, help="YAML/JSON file with custom targets")
    gen.add_argument("--only", default=None, help="Comma-separated target ids to generate")
    gen.add_argument(
        "--retry-failed",
        type=int,
        default=0,
        metavar="N",
        help="Retry failed variants up to N rounds (default: 0)",
    )

    targets = sub.add_parser("targets", help="List available targets")
    targets.add_argument("--targets-file", default=None, help="YAML/JSON file with custom targets")

    return p


def main() -> None:
    """Main entry point for CLI."""
    p = build_arg_parser()
    args = p.parse_args()

    if args.cmd == "generate":
        run_generate(args)
    elif args.cmd == "targets":
        run_list_targets(args)


if __name__ == "__main__":
    main()
