"""CLI tests with a container of fakes passed in as the click ``obj``."""

import pytest
from click.testing import CliRunner

from orderhub.infrastructure.bootstrap import Container
from orderhub.infrastructure.cli.main import cli
from tests.fakes import (
    FakeIdentityClient,
    FakeInventoryClient,
    FakeOrderStore,
    make_product,
)


@pytest.fixture
def container():
    return Container(
        order_store=FakeOrderStore(),
        identity=FakeIdentityClient(["U1", "U2"]),
        inventory=FakeInventoryClient([
            make_product("P1", "10.50", 100, name="Widget"),
            make_product("P2", "25.00", 50, name="Gadget"),
        ]),
    )


@pytest.fixture
def run(container):
    runner = CliRunner()

    def invoke(*args):
        return runner.invoke(cli, list(args), obj=container)

    return invoke


def _only_order_id(container, user_id="U1"):
    (order,) = container.order_store.load_orders_by_user(user_id)
    return order.id


class TestOrderCreate:

    def test_creates_order(self, run, container):
        result = run("order", "create", "--user", "U1", "--items", "P1:2,P2:1")

        assert result.exit_code == 0, result.output
        assert "Order created." in result.output
        assert "Widget" in result.output
        assert "$46.00" in result.output
        assert container.inventory.quantity("P1") == 98

    def test_bad_item_format(self, run, container):
        result = run("order", "create", "--user", "U1", "--items", "P1")

        assert result.exit_code != 0
        assert "ProductID:Quantity" in result.output
        assert container.order_store.count() == 0

    def test_bad_quantity(self, run):
        result = run("order", "create", "--user", "U1", "--items", "P1:lots")

        assert result.exit_code != 0
        assert "Invalid quantity" in result.output

    def test_business_error_is_reported(self, run, container):
        result = run("order", "create", "--user", "U1", "--items", "P1:1000")

        assert result.exit_code == 1
        assert "Insufficient quantity" in result.output
        assert container.order_store.count() == 0

    def test_idempotency_key(self, run, container):
        run("order", "create", "--user", "U1", "--items", "P1:1", "--idempotency-key", "k")
        run("order", "create", "--user", "U1", "--items", "P1:1", "--idempotency-key", "k")

        assert container.order_store.count() == 1


class TestOrderShow:

    def test_shows_own_order(self, run, container):
        run("order", "create", "--user", "U1", "--items", "P1:2")
        order_id = _only_order_id(container)

        result = run("order", "show", "--id", order_id, "--user", "U1")

        assert result.exit_code == 0, result.output
        assert order_id in result.output
        assert "$21.00" in result.output

    def test_foreign_order_refused(self, run, container):
        run("order", "create", "--user", "U1", "--items", "P1:2")
        order_id = _only_order_id(container)

        result = run("order", "show", "--id", order_id, "--user", "U2")

        assert result.exit_code == 1
        assert "own orders" in result.output

    def test_unknown_order(self, run):
        result = run("order", "show", "--id", "missing", "--user", "U1")

        assert result.exit_code == 1
        assert "missing" in result.output


class TestOrderMine:

    def test_lists_orders(self, run, container):
        run("order", "create", "--user", "U1", "--items", "P1:1")
        run("order", "create", "--user", "U1", "--items", "P2:1")

        result = run("order", "mine", "--user", "U1")

        assert result.exit_code == 0, result.output
        assert "Page 1 (limit 10), 2 order(s) in total" in result.output
        assert "$25.00" in result.output

    def test_empty(self, run):
        result = run("order", "mine", "--user", "U2")

        assert result.exit_code == 0
        assert "No orders found." in result.output
