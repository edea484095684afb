#!/usr/bin/env python3
"""
Command-line interface for mesh_acd.

This module handles all the CLI-specific stuff: argument parsing, pretty
printing, error display, etc. The decomposition itself lives in
decomposer.py (and converter.py for the file-to-file wrapper) and can be
imported/used programmatically.
"""

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn
from rich.panel import Panel
from rich.table import Table
from rich import box

from .constants import (
    MAX_CLUSTERS,
    DEFAULT_METRIC,
    DEFAULT_ADJACENCY,
    DEFAULT_HULL,
    MAX_WORKERS,
    COLOR_MODE,
    COLOR_SEED,
    DEFAULT_OUTPUT_SUFFIX,
    DEFAULT_OUTPUT_EXTENSION,
    __version__
)
from .config import DecompositionConfig, VALID_METRICS, VALID_ADJACENCY, VALID_HULLS, VALID_COLOR_MODES
from .converter import convert_mesh_file
from .decomposer import DecompositionTimeoutError
from .mesh_data import InvalidMeshError

# Create Rich consoles for output and errors
console = Console()
error_console = Console(stderr=True)

STAGE_LABELS = {
    "load": "[cyan]📁 Loading mesh...",
    "decompose": "[magenta]🧩 Decomposing...",
    "aggregate": "[blue]📦 Collecting pieces...",
    "validate": "[yellow]🔍 Validating pieces...",
    "export": "[green]💾 Writing output...",
    "render": "[green]🖼️  Rendering preview...",
}


def default_output_path(input_path: Path) -> str:
    """{input_name}_convex.glb next to the input file."""
    return str(input_path.with_suffix('')) + DEFAULT_OUTPUT_SUFFIX + DEFAULT_OUTPUT_EXTENSION


def configure_logging(verbose: bool) -> None:
    """Attach a stream handler to the package logger when --verbose is given."""
    if not verbose:
        return
    package_logger = logging.getLogger('mesh_acd')
    package_logger.setLevel(logging.DEBUG)

    # Add handler only if one doesn't exist
    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('   [%(levelname)s] %(name)s: %(message)s'))
        package_logger.addHandler(handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mesh-acd",
        description="Split a triangle mesh into approximately convex pieces",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Decompose with defaults (writes model_convex.glb)
  mesh-acd model.obj

  # At most 20 pieces per mesh, stricter angle threshold
  mesh-acd model.obj --max-clusters 20 --threshold 10

  # Hull-deviation metric, with summary and preview
  mesh-acd model.stl --metric hull_deviation --threshold 0.05 --summary --render
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
        help="Show program's version number and exit"
    )

    parser.add_argument(
        "input_file",
        type=str,
        help="Input mesh file (OBJ, STL, PLY, GLB, OFF...)"
    )

    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        help=f"Output file path (default: {{input_name}}{DEFAULT_OUTPUT_SUFFIX}{DEFAULT_OUTPUT_EXTENSION})"
    )

    parser.add_argument(
        "--max-clusters",
        type=int,
        default=MAX_CLUSTERS,
        help=f"Maximum convex pieces per source mesh (default: {MAX_CLUSTERS})"
    )

    parser.add_argument(
        "--metric",
        type=str,
        choices=sorted(VALID_METRICS),
        default=DEFAULT_METRIC,
        help=f"Convexity metric used to admit triangles (default: {DEFAULT_METRIC})"
    )

    parser.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Acceptance threshold: degrees for normal_angle, mesh units for "
             "hull_deviation (default: depends on metric)"
    )

    parser.add_argument(
        "--adjacency",
        type=str,
        choices=sorted(VALID_ADJACENCY),
        default=DEFAULT_ADJACENCY,
        help=f"Triangle neighbors: share an edge or share a vertex (default: {DEFAULT_ADJACENCY})"
    )

    parser.add_argument(
        "--hull",
        type=str,
        choices=sorted(VALID_HULLS),
        default=DEFAULT_HULL,
        help=f"Hull strategy for the hull_deviation metric (default: {DEFAULT_HULL})"
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=MAX_WORKERS,
        help=f"Worker threads for multi-mesh files (default: {MAX_WORKERS})"
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-mesh timeout in seconds (default: no timeout)"
    )

    parser.add_argument(
        "--color-mode",
        type=str,
        choices=sorted(VALID_COLOR_MODES),
        default=COLOR_MODE,
        help=f"Piece colors: golden-ratio palette or seeded random (default: {COLOR_MODE})"
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=COLOR_SEED,
        help=f"Seed for --color-mode random (default: {COLOR_SEED})"
    )

    parser.add_argument(
        "--validate",
        action="store_true",
        help="Check every piece against its true convex hull and report concavity"
    )

    parser.add_argument(
        "--render",
        action="store_true",
        help="Render a PNG preview of the pieces ({output_name}_render.png)"
    )

    parser.add_argument(
        "--summary",
        action="store_true",
        help="Write a JSON summary next to the output ({output_name}.summary.json)"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show log messages from the decomposition"
    )

    return parser


def main(argv=None):
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)

    # Build config object from CLI arguments
    try:
        config = DecompositionConfig(
            max_clusters=args.max_clusters,
            metric=args.metric,
            concavity_threshold=args.threshold,
            adjacency=args.adjacency,
            hull=args.hull,
            max_workers=args.workers,
            task_timeout_s=args.timeout,
            color_mode=args.color_mode,
            color_seed=args.seed,
            validate_submeshes=args.validate,
            render_preview=args.render,
            write_summary=args.summary
        )
    except ValueError as e:
        error_console.print(f"[red]❌ Error: Invalid configuration: {e}[/red]")
        sys.exit(1)

    # Validate input file exists
    input_path = Path(args.input_file)
    if not input_path.exists():
        error_console.print(f"[red]❌ Error: Input file not found: {args.input_file}[/red]")
        sys.exit(1)

    output_path = args.output or default_output_path(input_path)

    # Print header
    console.print(Panel.fit(
        "[bold cyan]🔷 Approximate Convex Decomposition[/bold cyan]",
        border_style="cyan"
    ))
    console.print()

    # Display configuration table
    config_table = Table(title="Configuration", box=box.ROUNDED, show_header=True, header_style="bold cyan")
    config_table.add_column("Parameter", style="bold yellow")
    config_table.add_column("Value", style="white")

    config_table.add_row("Input File", str(input_path))
    config_table.add_row("Output File", output_path)
    config_table.add_row("Max Clusters", str(config.max_clusters))
    config_table.add_row("Metric", config.metric)
    unit = "°" if config.metric == "normal_angle" else ""
    config_table.add_row("Threshold", f"{config.concavity_threshold}{unit}")
    config_table.add_row("Adjacency", config.adjacency)
    if config.metric == "hull_deviation":
        config_table.add_row("Hull", config.hull)
    config_table.add_row("Workers", str(config.max_workers))
    config_table.add_row("Timeout", f"{config.task_timeout_s}s" if config.task_timeout_s else "None")
    colors = config.color_mode if config.color_mode == "palette" else f"random (seed {config.color_seed})"
    config_table.add_row("Colors", colors)

    console.print(config_table)
    console.print()

    # Progress tracking with Rich
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        transient=False
    ) as progress:

        tasks = {}
        current_stage = None

        def progress_callback(stage: str, message: str):
            nonlocal current_stage
            label = STAGE_LABELS.get(stage, f"[white]{stage}...")

            if stage != current_stage:
                # Close out the previous stage
                if current_stage in tasks:
                    progress.update(tasks[current_stage], total=1, completed=1)
                current_stage = stage
                if stage not in tasks:
                    tasks[stage] = progress.add_task(label, total=None)

            progress.update(tasks[stage], description=f"{label} {message}")

        # Run the decomposition!
        try:
            stats = convert_mesh_file(
                input_path=str(input_path),
                output_path=output_path,
                config=config,
                progress_callback=progress_callback
            )
            for task_id in tasks.values():
                progress.update(task_id, total=1, completed=1)
        except FileNotFoundError as e:
            error_console.print(f"\n[red]❌ Error: {e}[/red]")
            sys.exit(1)
        except InvalidMeshError as e:
            error_console.print(f"\n[red]❌ Invalid mesh: {e}[/red]")
            sys.exit(1)
        except ValueError as e:
            error_console.print(f"\n[red]❌ Invalid parameter: {e}[/red]")
            sys.exit(1)
        except DecompositionTimeoutError as e:
            error_console.print(f"\n[red]❌ Timed out: {e}[/red]")
            sys.exit(1)
        except Exception as e:
            error_console.print(f"\n[red]❌ Unexpected error: {e}[/red]")
            import traceback
            traceback.print_exc()
            sys.exit(1)

    # Print summary
    console.print()
    console.print(Panel.fit(
        "[bold green]✅ Decomposition complete![/bold green]",
        border_style="green"
    ))

    stats_table = Table(show_header=False, box=box.SIMPLE, padding=(0, 1))
    stats_table.add_column("Label", style="bold cyan")
    stats_table.add_column("Value", style="white")

    stats_table.add_row("Meshes:", str(stats['num_meshes']))
    stats_table.add_row("Convex pieces:", str(stats['num_pieces']))
    stats_table.add_row(
        "Triangles covered:",
        f"{stats['output_triangles']} / {stats['input_triangles']}"
    )
    stats_table.add_row("Output:", f"{stats['output_path']} ({stats['file_size']})")

    if 'validation_results' in stats:
        results = stats['validation_results']
        concavities = [v.stats['concavity'] for v in results if 'concavity' in v.stats]
        worst = f"{max(concavities):.4g}" if concavities else "n/a"
        invalid = sum(1 for v in results if not v.is_valid)
        stats_table.add_row("Max concavity:", worst)
        if invalid:
            stats_table.add_row("Invalid pieces:", f"[red]{invalid}[/red]")
    if 'summary_path' in stats:
        stats_table.add_row("Summary:", stats['summary_path'])
    if 'render_path' in stats:
        stats_table.add_row("Render:", stats['render_path'])

    console.print(stats_table)

    if stats['partial_coverage']:
        console.print(Panel(
            f"[bold yellow]⚠️  {stats['dropped_triangles']} triangle(s) were not assigned to any piece.[/bold yellow]\n\n"
            f"The cluster limit ({config.max_clusters} per mesh) ran out first. "
            "Raise --max-clusters or loosen --threshold to cover the whole mesh.",
            title="[bold yellow]Partial Coverage[/bold yellow]",
            border_style="yellow"
        ))
    console.print()


if __name__ == "__main__":
    main()
