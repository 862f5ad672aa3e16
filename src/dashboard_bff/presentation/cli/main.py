import logging
from dataclasses import asdict

import typer
import uvicorn

from dashboard_bff.config import settings

app = typer.Typer(help="Dashboard BFF CLI")


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(5000, "--port", "-p"),
    log_level: str = typer.Option(settings.log_level, "--log-level"),
) -> None:
    _configure_logging(log_level)
    typer.echo(f"Forwarding to {settings.api_base_url} (store: {settings.session_store})")
    uvicorn.run("dashboard_bff.presentation.api.main:app", host=host, port=port, log_level=log_level.lower())


@app.command("show-config")
def show_config() -> None:
    for key, value in asdict(settings).items():
        typer.echo(f"{key}={value}")
    typer.echo(f"cookie_secure={settings.cookie_secure}")
