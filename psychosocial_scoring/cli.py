"""
Psychosocial Scoring — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Load the instrument registry (and recommendation catalogs).
  4. Execute the action.
  5. Report the result to stdout; errors go to stderr with exit code 1.

Install and run::

    pip install -e .
    psychosocial-scoring --help
    psychosocial-scoring validate-config
    psychosocial-scoring list-instruments
    psychosocial-scoring validate-instruments
    psychosocial-scoring score --instrument hse_it --responses data/responses.csv
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="psychosocial-scoring",
    help="Psychosocial questionnaire scoring and classification CLI.",
    add_completion=False,
)

_PARTITIONS = ("department", "respondent", "organization")
_MAX_SKIPPED_SHOWN = 10


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from psychosocial_scoring.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from psychosocial_scoring.utils.logging import configure_logging
    configure_logging(config.logging)


def _load_registry_or_exit(config):
    """Load every instrument definition, exiting on the first broken one."""
    from psychosocial_scoring.instruments.registry import InstrumentRegistry

    definitions_dir = config.resolve_path(config.instruments.definitions_dir)
    try:
        return InstrumentRegistry.from_directory(definitions_dir)
    except Exception as exc:
        typer.echo(f"[ERROR] Failed to load instruments from {definitions_dir}: {exc}", err=True)
        raise typer.Exit(code=1)


def _load_catalog(config, instrument, required: bool = False):
    """Load the instrument's recommendation catalog.

    A missing catalog file is tolerated unless ``required`` (action plan
    entries then use the fallback text); a broken one always fails.
    """
    from psychosocial_scoring.models.recommendation import RecommendationCatalog
    from psychosocial_scoring.recommendations.catalog import (
        catalog_path_for,
        load_recommendation_catalog,
    )

    path = catalog_path_for(
        config.resolve_path(config.instruments.recommendations_dir), instrument.instrument_id
    )
    if not path.exists() and not required:
        typer.echo(
            f"  [WARN] No recommendation catalog at {path}; using fallback text.", err=True
        )
        return RecommendationCatalog(instrument_id=instrument.instrument_id)
    return load_recommendation_catalog(path, instrument)


def _partition_fn(name: str):
    from psychosocial_scoring.scoring.rollup import (
        by_department,
        by_respondent,
        whole_organization,
    )

    return {
        "department": by_department,
        "respondent": by_respondent,
        "organization": whole_organization,
    }[name]


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Instruments dir:     {config.instruments.definitions_dir}")
    typer.echo(f"  Recommendations dir: {config.instruments.recommendations_dir}")
    typer.echo(f"  Default instrument:  {config.instruments.default_instrument}")
    typer.echo(f"  Top questions:       {config.reporting.top_questions}")
    typer.echo(f"  Output dir:          {config.reporting.output_dir}")
    typer.echo(f"  Log level:           {config.logging.level}")
    typer.echo(f"  Debug mode:          {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("list-instruments")
def list_instruments(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """List registered instruments with their size and scoring mode."""
    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    registry = _load_registry_or_exit(config)

    if not len(registry):
        typer.echo("  (no instruments registered)")
        return

    header = f"  {'ID':<12}  {'Version':<8}  {'Items':>5}  {'Cats':>4}  {'Mode':<32}  Name"
    typer.echo(header)
    typer.echo("  " + "-" * (len(header) - 2))
    for instrument_id in registry.ids():
        inst = registry.get(instrument_id)
        typer.echo(
            f"  {inst.instrument_id:<12}  {inst.version:<8}  {inst.item_count:>5}  "
            f"{len(inst.categories):>4}  {inst.profile.aggregation_mode.value:<32}  "
            f"{inst.display_name}"
        )


@app.command("validate-instruments")
def validate_instruments(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Load every instrument definition and its recommendation catalog.

    Exits with code 1 if any definition or catalog is invalid or missing.
    """
    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    registry = _load_registry_or_exit(config)

    failures = 0
    for instrument_id in registry.ids():
        inst = registry.get(instrument_id)
        try:
            catalog = _load_catalog(config, inst, required=True)
        except Exception as exc:
            typer.echo(f"  [FAIL] {instrument_id}: {exc}", err=True)
            failures += 1
            continue
        typer.echo(
            f"  [OK]   {instrument_id}: {inst.item_count} items, "
            f"{len(inst.categories)} categories, "
            f"{len(catalog.recommendations)} recommendation(s), "
            f"{len(catalog.guidance)} guidance entr(ies)"
        )

    typer.echo("")
    if failures:
        typer.echo(f"[ERROR] {failures} instrument(s) failed validation.", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"[OK] {len(registry)} instrument(s) valid.")


@app.command("score")
def score(
    responses_file: str = typer.Option(
        ...,
        "--responses",
        "-r",
        help="Path to responses file (.json array or long-format .csv).",
    ),
    instrument_id: Optional[str] = typer.Option(
        None,
        "--instrument",
        "-i",
        help="Instrument id (e.g. hse_it, burnout). Uses config default if omitted.",
    ),
    partition: str = typer.Option(
        "department",
        "--partition",
        "-p",
        help="Rollup partition: department, respondent or organization.",
    ),
    top: Optional[int] = typer.Option(
        None,
        "--top",
        help="Number of critical questions to list. Uses config default if omitted.",
    ),
    json_out: Optional[str] = typer.Option(
        None,
        "--json-out",
        help="Write the full assessment as JSON to this path.",
    ),
    csv_out: Optional[str] = typer.Option(
        None,
        "--csv-out",
        help="Write one row per (partition, category) as CSV to this path.",
    ),
    export: bool = typer.Option(
        False,
        "--export",
        help="Also write <instrument>_assessment.json/.csv into reporting.output_dir.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Score a batch of responses and print the assessment.

    \b
    Partitions:
      department    one report per department (missing department kept apart)
      respondent    one report per response
      organization  a single report for everyone
    """
    from psychosocial_scoring.ingestion.response_reader import read_responses
    from psychosocial_scoring.reporting.export import (
        EXPORT_COLUMNS,
        assessment_to_dict,
        export_to_csv,
        export_to_json,
        flatten_reports_for_export,
    )
    from psychosocial_scoring.reporting.formatters import format_assessment
    from psychosocial_scoring.scoring.engine import ScoringEngine
    from psychosocial_scoring.scoring.errors import ConfigurationMismatchError

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    if partition not in _PARTITIONS:
        typer.echo(
            f"[ERROR] Invalid --partition '{partition}'. Use one of: {', '.join(_PARTITIONS)}.",
            err=True,
        )
        raise typer.Exit(code=1)
    if top is not None and top < 0:
        typer.echo("[ERROR] --top must be >= 0.", err=True)
        raise typer.Exit(code=1)

    registry = _load_registry_or_exit(config)
    target_id = instrument_id or config.instruments.default_instrument
    try:
        instrument = registry.get(target_id)
        catalog = _load_catalog(config, instrument)
    except ConfigurationMismatchError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except (ValueError, OSError) as exc:
        typer.echo(f"[ERROR] Recommendation catalog invalid: {exc}", err=True)
        raise typer.Exit(code=1)

    try:
        loaded = read_responses(Path(responses_file))
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(f"[ERROR] Could not read responses:\n{exc}", err=True)
        raise typer.Exit(code=1)

    if loaded.skipped:
        typer.echo(
            f"  [WARN] {len(loaded.skipped)} unusable record(s) skipped in {loaded.path.name}:",
            err=True,
        )
        for record in loaded.skipped[:_MAX_SKIPPED_SHOWN]:
            typer.echo(f"    {record.location}: {record.reason}", err=True)
        if len(loaded.skipped) > _MAX_SKIPPED_SHOWN:
            typer.echo(f"    ... and {len(loaded.skipped) - _MAX_SKIPPED_SHOWN} more", err=True)

    top_n = top if top is not None else config.reporting.top_questions
    decimals = config.reporting.decimals
    result = ScoringEngine(instrument, catalog).assess(
        loaded.responses,
        partition_fn=_partition_fn(partition),
        top_questions=top_n,
    )

    typer.echo(format_assessment(result, instrument, decimals))

    if export:
        output_dir = config.resolve_path(config.reporting.output_dir)
        stem = f"{instrument.instrument_id}_assessment"
        json_out = json_out or str(output_dir / f"{stem}.json")
        csv_out = csv_out or str(output_dir / f"{stem}.csv")

    if json_out:
        written = export_to_json(assessment_to_dict(result, instrument, decimals), Path(json_out))
        typer.echo(f"\n  JSON written to: {written}")
    if csv_out:
        written = export_to_csv(
            flatten_reports_for_export(result, instrument, decimals),
            Path(csv_out),
            fieldnames=EXPORT_COLUMNS,
        )
        typer.echo(f"  CSV written to:  {written}")

    typer.echo("")
    typer.echo(f"[OK] Scored {result.response_count} response(s) with '{instrument.instrument_id}'.")


# ── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    app()
