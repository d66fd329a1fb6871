"""Command-line interface for tidying, aggregating and comparing covariates.

Usage:
    sparse-covariates tidy --covariates rows.parquet --covariate-ref ref.parquet \
        --analysis-ref analyses.parquet --population-size 1000 --out tidy/
    sparse-covariates aggregate --data-dir tidy/ --out agg/
    sparse-covariates compare agg_target/ agg_comparator/ --out std_diff.parquet
    sparse-covariates summary --data-dir tidy/
"""

from pathlib import Path
from typing import Optional

import typer
from loguru import logger
from rich.console import Console

from .aggregation.aggregator import aggregate_covariates
from .comparison.std_diff import compute_standardized_difference
from .config import load_config
from .io import (
    load_aggregated,
    load_covariate_data,
    load_covariate_dir,
    save_aggregated,
    save_covariate_data,
)
from .shared.logging_utils import setup_logging
from .store.covariate_data import CovariateData
from .tidy.pipeline import tidy_covariate_data

app = typer.Typer(no_args_is_help=True, help="Sparse covariate post-processing CLI")
console = Console()


@app.callback()
def main(
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level"),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Optional log file"),
):
    setup_logging(log_file=log_file, level=log_level)


def _load_store(
    data_dir: Optional[Path],
    covariates: Optional[Path],
    covariate_ref: Optional[Path],
    analysis_ref: Optional[Path],
    population_size: Optional[int],
) -> CovariateData:
    if data_dir is not None:
        return load_covariate_dir(data_dir)
    if None in (covariates, covariate_ref, analysis_ref, population_size):
        console.print(
            "[red]❌ Pass --data-dir, or all of --covariates, --covariate-ref, "
            "--analysis-ref and --population-size[/red]"
        )
        raise typer.Exit(2)
    return load_covariate_data(covariates, covariate_ref, analysis_ref, population_size)


def _fail(e: Exception) -> None:
    logger.error(str(e))
    console.print(f"[red]❌ {type(e).__name__}: {e}[/red]")
    raise typer.Exit(1)


DATA_DIR = typer.Option(None, "--data-dir", help="Directory written by `tidy`")
COVARIATES = typer.Option(None, "--covariates", help="Sparse covariate rows (parquet/csv)")
COVARIATE_REF = typer.Option(None, "--covariate-ref", help="Covariate catalog (parquet/csv)")
ANALYSIS_REF = typer.Option(None, "--analysis-ref", help="Analysis catalog (parquet/csv)")
POPULATION = typer.Option(None, "--population-size", "-n", help="Number of cohort entries")


@app.command()
def tidy(
    out: Path = typer.Option(..., "--out", "-o", help="Output directory"),
    data_dir: Optional[Path] = DATA_DIR,
    covariates: Optional[Path] = COVARIATES,
    covariate_ref: Optional[Path] = COVARIATE_REF,
    analysis_ref: Optional[Path] = ANALYSIS_REF,
    population_size: Optional[int] = POPULATION,
    min_fraction: Optional[float] = typer.Option(
        None, "--min-fraction", help="Minimum share of entries (default from settings)"
    ),
    normalize: Optional[bool] = typer.Option(
        None, "--normalize/--no-normalize", help="Scale values into [0, 1] (default from settings)"
    ),
    remove_redundancy: Optional[bool] = typer.Option(
        None, "--redundancy/--no-redundancy", help="Remove redundant covariates (default from settings)"
    ),
):
    """Filter infrequent, normalize and remove redundant covariates."""
    try:
        settings = load_config()
        data = _load_store(data_dir, covariates, covariate_ref, analysis_ref, population_size)
        tidied = tidy_covariate_data(
            data,
            min_fraction=min_fraction,
            normalize=normalize,
            remove_redundancy=remove_redundancy,
            settings=settings,
        )
        save_covariate_data(tidied, out)
    except ValueError as e:
        _fail(e)
    meta = tidied.metadata
    console.print(
        f"[green]✅ Tidy complete:[/green] {len(meta.deleted_infrequent_covariate_ids)} infrequent, "
        f"{len(meta.deleted_redundant_covariate_ids)} redundant covariates removed -> {out}"
    )


@app.command()
def aggregate(
    out: Path = typer.Option(..., "--out", "-o", help="Output directory"),
    data_dir: Optional[Path] = DATA_DIR,
    covariates: Optional[Path] = COVARIATES,
    covariate_ref: Optional[Path] = COVARIATE_REF,
    analysis_ref: Optional[Path] = ANALYSIS_REF,
    population_size: Optional[int] = POPULATION,
    progress: bool = typer.Option(False, "--progress", help="Print batch progress"),
):
    """Aggregate covariate rows into binary and continuous summaries."""
    try:
        settings = load_config()
        data = _load_store(data_dir, covariates, covariate_ref, analysis_ref, population_size)
        agg = aggregate_covariates(data, progress=progress, settings=settings)
        save_aggregated(agg, out)
    except ValueError as e:
        _fail(e)
    console.print(
        f"[green]✅ Aggregated[/green] {agg.binary.height} binary and "
        f"{agg.continuous.height} continuous covariates -> {out}"
    )


@app.command()
def compare(
    first: Path = typer.Argument(..., help="Aggregate directory of the target cohort"),
    second: Path = typer.Argument(..., help="Aggregate directory of the comparator cohort"),
    out: Path = typer.Option(..., "--out", "-o", help="Output parquet or csv file"),
    top: int = typer.Option(10, "--top", help="Rows to print"),
):
    """Standardized difference between two aggregated cohorts."""
    try:
        result = compute_standardized_difference(load_aggregated(first), load_aggregated(second))
    except ValueError as e:
        _fail(e)
    out.parent.mkdir(parents=True, exist_ok=True)
    if out.suffix.lower() == ".csv":
        result.table.write_csv(out)
    else:
        result.table.write_parquet(out)

    console.print(f"[bold]Largest standardized differences[/bold] (written to {out})")
    for row in result.table.head(top).iter_rows(named=True):
        console.print(
            f"  {row['covariate_id']:>10}  std_diff={row['std_diff']:+.4f}  "
            f"mean1={row['mean1']:.4f}  mean2={row['mean2']:.4f}  {row['covariate_name']}",
            markup=False,
        )
    if result.non_comparable_covariate_ids:
        console.print(
            f"[yellow]⚠ {len(result.non_comparable_covariate_ids)} non-comparable covariates: "
            f"{result.non_comparable_covariate_ids[:10]}[/yellow]"
        )


@app.command()
def summary(
    data_dir: Optional[Path] = DATA_DIR,
    covariates: Optional[Path] = COVARIATES,
    covariate_ref: Optional[Path] = COVARIATE_REF,
    analysis_ref: Optional[Path] = ANALYSIS_REF,
    population_size: Optional[int] = POPULATION,
):
    """Print counts of a covariate store."""
    try:
        info = _load_store(data_dir, covariates, covariate_ref, analysis_ref, population_size).summary()
    except ValueError as e:
        _fail(e)
    console.print("[bold]Covariate data[/bold]")
    for name, value in info.model_dump().items():
        console.print(f"  {name}: {value}")


if __name__ == "__main__":
    app()
