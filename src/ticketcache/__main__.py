"""Run the ticketcache API server: ``python -m ticketcache``."""

from __future__ import annotations

import click
import uvicorn

from ticketcache import __version__
from ticketcache.config import get_settings
from ticketcache.logging import setup_logging


@click.command()
@click.version_option(__version__)
@click.option("--host", default="127.0.0.1", show_default=True, help="Bind address")
@click.option("--port", type=int, default=8000, show_default=True, help="Bind port")
@click.option("--no-console-log", is_flag=True, help="Log to file only")
def main(host: str, port: int, no_console_log: bool) -> None:
    """Serve the ticketcache API."""
    settings = get_settings()
    setup_logging(
        log_dir=settings.log_dir,
        level=settings.log_level,
        console=not no_console_log,
        server_loggers=True,
    )

    from ticketcache.api.app import create_app  # noqa: PLC0415

    click.echo(f"Serving ticketcache on http://{host}:{port}")
    uvicorn.run(create_app(settings), host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
