from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_batch, render_score
from models.records import SensorReading
from services.soil_health import InvalidReadingError, score_reading


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Score soil sensor readings and manage CSV scoring batches.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Service base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    poll_interval: Optional[float] = typer.Option(
        None,
        "--poll-interval",
        help="Seconds between status checks when waiting for completion.",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Maximum seconds to wait when polling for results.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(
        base_url=base_url,
        poll_interval=poll_interval,
        poll_timeout=timeout,
    )
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("score")
def score_command(
    nitrogen: float = typer.Option(..., "--nitrogen", "-n", help="Nitrogen, mg/kg."),
    phosphorus: float = typer.Option(..., "--phosphorus", "-p", help="Phosphorus, mg/kg."),
    potassium: float = typer.Option(..., "--potassium", "-k", help="Potassium, mg/kg."),
    soil_ph: float = typer.Option(..., "--ph", help="Soil pH."),
    soil_moisture: float = typer.Option(..., "--moisture", help="Soil moisture, percent."),
    temperature: float = typer.Option(..., "--temperature", "-t", help="Temperature, degrees Celsius."),
    humidity: float = typer.Option(..., "--humidity", help="Relative humidity, percent."),
) -> None:
    """Compute the Soil Health Index for one reading locally."""
    reading = SensorReading(
        nitrogen=nitrogen,
        phosphorus=phosphorus,
        potassium=potassium,
        soil_ph=soil_ph,
        soil_moisture=soil_moisture,
        temperature=temperature,
        humidity=humidity,
    )
    try:
        result = score_reading(reading)
    except InvalidReadingError as exc:
        raise typer.BadParameter(str(exc), param_hint=exc.field) from exc
    render_score(result)


@app.command("upload")
def upload_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Path to CSV file."),
    wait: bool = typer.Option(
        False,
        "--wait/--no-wait",
        help="Wait for scoring to finish and display the result.",
    ),
    poll_interval: Optional[float] = typer.Option(
        None,
        "--poll-interval",
        help="Override poll interval while waiting.",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Override timeout while waiting.",
    ),
) -> None:
    """Upload a CSV of sensor readings for background scoring."""
    state = _get_state(ctx)
    typer.echo(f"Uploading {file} to {state.config.base_url} ...")
    batch_id = state.client.upload_batch(file)
    typer.secho(f"Upload accepted. batch_id={batch_id}", fg=typer.colors.GREEN)

    if not wait:
        return

    interval = poll_interval if poll_interval is not None else state.config.poll_interval
    poll_timeout = timeout if timeout is not None else state.config.poll_timeout
    typer.echo(f"Waiting for scoring (interval={interval}s, timeout={poll_timeout}s)...")
    payload = state.client.poll_batch(batch_id, interval=interval, timeout=poll_timeout)
    typer.echo()
    render_batch(payload)


@app.command("result")
def result_command(
    ctx: typer.Context,
    batch_id: str = typer.Argument(..., help="Identifier returned from the upload command."),
) -> None:
    """Fetch status, summary and row errors for a batch."""
    state = _get_state(ctx)
    render_batch(state.client.get_batch(batch_id))
