"""Command-line interface for bluecloud."""

from pathlib import Path
from typing import Any, Dict, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from bluecloud.analysis import distribution_stats
from bluecloud.core import Config, get_default_config, load_config
from bluecloud.core.resampler import Resampler
from bluecloud.processing import PointCloudLoader
from bluecloud.utils import setup_logging

app = typer.Typer(
    name="bluecloud",
    help="Blue-noise resampling of oriented point clouds",
    add_completion=False,
)
console = Console()


def _apply_overrides(cfg: Config, overrides: Dict[str, Dict[str, Any]]) -> Config:
    """Return a copy of ``cfg`` with the non-None overrides applied."""
    data = cfg.to_dict()
    for section, values in overrides.items():
        for key, value in values.items():
            if value is not None:
                data[section][key] = value
    return Config.from_dict(data)


@app.command()
def resample(
    input_file: Path = typer.Argument(
        ...,
        exists=True,
        help="Point cloud (.xyz) or mesh file to resample",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output XYZ file",
    ),
    radius: Optional[float] = typer.Option(
        None,
        "--radius",
        "-r",
        help="Conflict radius for dart throwing",
    ),
    max_attempts: Optional[int] = typer.Option(
        None,
        "--max-attempts",
        "-n",
        help="Consecutive rejections before dart throwing gives up",
    ),
    iterations: Optional[int] = typer.Option(
        None,
        "--iterations",
        "-i",
        help="Energy minimization iterations (0 disables relaxation)",
    ),
    sigma: Optional[float] = typer.Option(
        None,
        "--sigma",
        help="Gaussian energy bandwidth",
    ),
    seed: Optional[int] = typer.Option(
        None,
        "--seed",
        help="Random seed",
    ),
    locator: Optional[str] = typer.Option(
        None,
        "--locator",
        help="Locator strategy (bruteforce, hashgrid)",
    ),
    constraint: Optional[str] = typer.Option(
        None,
        "--constraint",
        help="Relaxation constraint (none, snap, clamp, normalize)",
    ),
    feature_weight: Optional[float] = typer.Option(
        None,
        "--feature-weight",
        help="Weight of normals relative to positions",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file",
    ),
    plot: Optional[Path] = typer.Option(
        None,
        "--plot",
        help="Save an image of the resampled cloud",
    ),
) -> None:
    """Resample a point cloud with dart throwing and energy minimization."""
    console.print(f"\n🎯 Resampling [cyan]{input_file.name}[/cyan]...")

    try:
        cfg = load_config(config) if config else Config()
        cfg = _apply_overrides(
            cfg,
            {
                "dart_throwing": {
                    "conflict_radius": radius,
                    "max_attempts": max_attempts,
                    "seed": seed,
                },
                "energy": {
                    "iterations": iterations,
                    "sigma": sigma,
                    "constraint": constraint,
                },
                "locator": {"strategy": locator},
                "stacking": {"feature_weight": feature_weight},
            },
        )
    except (ValidationError, ValueError, FileNotFoundError) as e:
        console.print(f"[red]Invalid configuration: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    setup_logging(cfg.logging)
    resampler = Resampler(config=cfg, console=console)
    result = resampler.resample_file(
        input_file,
        output,
        progress_callback=lambda msg: console.print(f"  {msg}"),
    )

    if not result.success:
        console.print(f"[red]Error: {escape(result.error)}[/red]")
        raise typer.Exit(1)

    metrics = result.metrics
    console.print(
        f"✅ Kept {result.num_samples:,} of {metrics.get('candidates', 0):,} points "
        f"→ [cyan]{result.output_path}[/cyan]"
    )
    if result.gave_up:
        console.print(
            f"⚠️  Dart throwing gave up after {cfg.dart_throwing.max_attempts:,} "
            "consecutive rejections"
        )
    if "final_energy" in metrics:
        console.print(f"  • Final energy: {metrics['final_energy']:.4f}")
    console.print(f"  • Total time: {metrics.get('total_time', 0):.2f}s")

    if plot:
        from bluecloud.visualization import PointCloudVisualizer

        viz = PointCloudVisualizer()
        fig = viz.plot_with_normals(
            result.positions,
            result.normals,
            title=f"{input_file.stem} ({result.num_samples} samples)",
        )
        viz.save_figure(fig, plot)
        console.print(f"🖼️  Saved plot to [cyan]{plot}[/cyan]")


@app.command()
def info(
    input_file: Path = typer.Argument(
        ...,
        exists=True,
        help="Point cloud (.xyz) or mesh file to inspect",
    ),
    surface_samples: int = typer.Option(
        100000,
        "--surface-samples",
        help="Points sampled from mesh surfaces",
    ),
) -> None:
    """Display point counts, bounds and spacing statistics."""
    try:
        with console.status("Loading point cloud..."):
            points, _ = PointCloudLoader(surface_samples=surface_samples).load(input_file)
        stats = distribution_stats(points)
    except Exception as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    table = Table(title="Point Cloud Information", show_header=False)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="white")

    lower, upper = points.min(axis=0), points.max(axis=0)
    extents = upper - lower
    table.add_row("File", str(input_file))
    table.add_row("Points", f"{stats['count']:,}")
    table.add_row(
        "Bounding Box",
        f"[{lower[0]:.3f}, {lower[1]:.3f}, {lower[2]:.3f}] to "
        f"[{upper[0]:.3f}, {upper[1]:.3f}, {upper[2]:.3f}]",
    )
    table.add_row("Size", f"{extents[0]:.3f} x {extents[1]:.3f} x {extents[2]:.3f}")
    if stats["nn_mean"] is not None:
        table.add_row("NN Distance (min)", f"{stats['nn_min']:.6f}")
        table.add_row("NN Distance (mean)", f"{stats['nn_mean']:.6f}")
        cv = stats["nn_cv"]
        table.add_row("NN Distance (CV)", "n/a" if cv is None else f"{cv:.3f}")

    console.print(table)


@app.command("config")
def show_config(
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the default configuration to this file",
    ),
) -> None:
    """Print or save the default configuration."""
    cfg = get_default_config()
    if output:
        cfg.save_toml(output)
        console.print(f"💾 Saved configuration to [cyan]{output}[/cyan]")
    else:
        console.print(cfg.to_toml(), markup=False, highlight=False)


def main() -> None:
    """Main entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
