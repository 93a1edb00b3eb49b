import click

from orderhub.infrastructure.cli.order_commands import order_create, order_mine, order_show
from orderhub.infrastructure.config import get_settings
from orderhub.infrastructure.logging_setup import configure_logging


@click.group()
@click.option("--log-level", default=None, help="Overrides ORDERHUB_LOG_LEVEL.")
def cli(log_level: str | None) -> None:
    """orderhub: order creation service."""
    configure_logging(log_level or get_settings().log_level)


@cli.group()
def order() -> None:
    """Create and inspect orders."""


@cli.command("serve")
@click.option("--host", default=None, help="Bind address (default from settings).")
@click.option("--port", default=None, type=int, help="Port (default from settings).")
def serve(host: str | None, port: int | None) -> None:
    """Run the HTTP API."""
    import uvicorn

    from orderhub.infrastructure.api.app import create_app

    settings = get_settings()
    uvicorn.run(
        create_app(settings=settings),
        host=host or settings.host,
        port=port or settings.port,
        log_config=None,
    )


# Register subcommands
order.add_command(order_create)
order.add_command(order_mine)
order.add_command(order_show)
