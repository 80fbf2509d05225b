from __future__ import annotations

from typing import Any, Dict, Iterable

import typer

from models.records import ScoreResult, SoilHealthBand

_BAND_COLORS = {
    SoilHealthBand.excellent: typer.colors.GREEN,
    SoilHealthBand.good: typer.colors.BRIGHT_GREEN,
    SoilHealthBand.moderate: typer.colors.YELLOW,
    SoilHealthBand.poor: typer.colors.RED,
}


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_score(result: ScoreResult) -> None:
    echo_heading("Soil Health Index")
    typer.echo(f"percent: {result.percent:.1f}")
    typer.secho(f"band: {result.band.value}", fg=_BAND_COLORS[result.band])
    typer.echo()
    echo_heading("Sub-scores")
    echo_key_values((name, f"{score:.3f}") for name, score in result.sub_scores.items())


def render_batch(payload: Dict[str, Any]) -> None:
    echo_heading("Batch Result")
    echo_key_values(
        [
            ("batch_id", payload.get("batch_id")),
            ("filename", payload.get("filename")),
            ("status", payload.get("status")),
            ("uploaded_at", payload.get("uploaded_at")),
            ("processed_at", payload.get("processed_at")),
            ("processing_ms", payload.get("processing_ms")),
        ]
    )

    summary = payload.get("summary") or {}
    typer.echo()
    echo_heading("Summary")
    if summary:
        echo_key_values(
            [
                ("row_count", summary.get("row_count")),
                ("min_percent", summary.get("min_percent")),
                ("max_percent", summary.get("max_percent")),
                ("mean_percent", summary.get("mean_percent")),
            ]
        )
        per_band = summary.get("per_band_count") or {}
        if per_band:
            typer.echo("per_band_count:")
            for band, count in per_band.items():
                typer.echo(f"  - {band}: {count}")
    else:
        typer.echo("No summary available.")

    scores = payload.get("scores") or []
    typer.echo()
    echo_heading("Scores")
    if scores:
        for score in scores:
            label = f"row {score.get('row_number')}"
            if score.get("reading_id"):
                label += f" ({score['reading_id']})"
            typer.echo(f"  - {label}: {score.get('percent', 0.0):.1f} {score.get('band')}")
    else:
        typer.echo("No rows scored.")

    errors = payload.get("errors") or []
    typer.echo()
    echo_heading("Errors")
    if errors:
        for error in errors:
            typer.echo(f"  - row {error.get('row_number')}: {error.get('reason')}")
    else:
        typer.echo("No errors recorded.")
