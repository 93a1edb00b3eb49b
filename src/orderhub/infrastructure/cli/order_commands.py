"""CLI commands for orders."""

from __future__ import annotations

from decimal import Decimal

import click

from orderhub.application.dto import OrderDTO, OrderItemSpec
from orderhub.application.pagination import PageRequest, paginate
from orderhub.domain.exceptions import DomainException
from orderhub.domain.model.value_objects import Money
from orderhub.infrastructure.bootstrap import Container, build_container
from orderhub.infrastructure.config import get_settings


def _container(ctx: click.Context) -> Container:
    """The container passed in via ``obj``, or one built from settings."""
    root = ctx.find_root()
    if root.obj is None:
        root.obj = build_container(get_settings())
        root.call_on_close(root.obj.close)
    return root.obj


def _parse_items(raw: str) -> list[OrderItemSpec]:
    """Parse 'P1:3,P2:5' into OrderItemSpec list."""
    specs: list[OrderItemSpec] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if not pair:
            continue
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'ProductID:Quantity'."
            )
        product_id, qty_str = pair.rsplit(":", 1)
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for product '{product_id}'."
            )
        specs.append(OrderItemSpec(product_id=product_id.strip(), quantity=qty))
    return specs


def _money(amount: Decimal) -> str:
    return str(Money(amount))


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order {dto.id}  (status={dto.status})")
    click.echo(f"User:     {dto.user_id}")
    click.echo(f"Created:  {dto.created_at:%Y-%m-%d %H:%M UTC}")
    click.echo()
    click.echo(f"  {'Product':<24} {'Qty':>5} {'Price':>10} {'Total':>10}")
    click.echo(f"  {'-'*51}")
    for item in dto.items:
        name = item.product.name if item.product.available else f"{item.product_id} (n/a)"
        click.echo(
            f"  {name[:24]:<24} {item.quantity:>5} "
            f"{_money(item.price):>10} {_money(item.line_total):>10}"
        )
    click.echo(f"  {'-'*51}")
    click.echo(f"  {'Order Total':<31} {_money(dto.total):>20}")


@click.command("create")
@click.option("--user", "user_id", required=True, help="ID of the ordering user.")
@click.option("--items", required=True, help="Items as 'ProductID:Qty,ProductID:Qty'.")
@click.option("--idempotency-key", default=None, help="Replays the original order if reused.")
@click.pass_context
def order_create(ctx: click.Context, user_id: str, items: str, idempotency_key: str | None) -> None:
    """Create a new order (decrements remote stock)."""
    specs = _parse_items(items)
    handler = _container(ctx).create_order_handler()

    try:
        dto = handler.handle(user_id=user_id, item_specs=specs, idempotency_key=idempotency_key)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo("Order created.")
    _display_order(dto)


@click.command("show")
@click.option("--id", "order_id", required=True, help="Order ID to display.")
@click.option("--user", "user_id", required=True, help="ID of the requesting user.")
@click.pass_context
def order_show(ctx: click.Context, order_id: str, user_id: str) -> None:
    """Show one of your orders."""
    handler = _container(ctx).show_order_handler()

    try:
        dto = handler.handle(order_id, requester_id=user_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


@click.command("mine")
@click.option("--user", "user_id", required=True, help="ID of the requesting user.")
@click.option("--page", default=None, help="Page number (default 1).")
@click.option("--limit", default=None, help="Orders per page, 1-100 (default 10).")
@click.pass_context
def order_mine(ctx: click.Context, user_id: str, page: str | None, limit: str | None) -> None:
    """List your orders, newest first."""
    handler = _container(ctx).list_user_orders_handler()

    try:
        orders = handler.handle(user_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    result = paginate(orders, PageRequest.from_raw(page, limit))
    click.echo(f"Page {result.page} (limit {result.limit}), {result.total} order(s) in total")
    if not result.items:
        click.echo("No orders found.")
        return

    click.echo(f"{'ID':<38} {'Status':<10} {'Items':>5} {'Total':>12}")
    click.echo("-" * 68)
    for dto in result.items:
        click.echo(f"{dto.id:<38} {dto.status:<10} {len(dto.items):>5} {_money(dto.total):>12}")
