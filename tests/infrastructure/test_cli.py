"""Smoke tests for the click command-line interface."""

import re

import pytest
from click.testing import CliRunner

from ordercore.infrastructure import bootstrap
from ordercore.infrastructure.cli.main import cli

UUID = r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"


@pytest.fixture
def run(tmp_path, monkeypatch):
    monkeypatch.setattr(bootstrap, "configure_logging", lambda *args, **kwargs: None)
    runner = CliRunner()
    env = {"ORDERCORE_DATA_DIR": str(tmp_path / "data")}

    def _run(*args):
        return runner.invoke(cli, list(args), env=env, catch_exceptions=False)

    return _run


def _restock(run, product, qty):
    result = run(
        "inventory", "adjust", "--product", product, "--delta", str(qty),
        "--reason", "supplier delivery", "--restock",
    )
    assert result.exit_code == 0, result.output


class TestInventoryCommands:

    def test_adjust_and_show(self, run):
        _restock(run, "sku-a", 12)
        result = run("inventory", "show")
        assert result.exit_code == 0
        assert "sku-a" in result.output
        assert "in_stock" in result.output

    def test_filter_and_threshold(self, run):
        _restock(run, "sku-a", 12)
        assert run("inventory", "threshold", "--product", "sku-a", "--value", "20").exit_code == 0
        result = run("inventory", "show", "--status", "low_stock")
        assert "sku-a" in result.output

    def test_negative_adjustment_fails(self, run):
        _restock(run, "sku-a", 1)
        result = run("inventory", "adjust", "--product", "sku-a", "--delta", "-2", "--reason", "count")
        assert result.exit_code != 0
        assert "INSUFFICIENT_STOCK" in result.output

    def test_movements(self, run):
        _restock(run, "sku-a", 5)
        result = run("inventory", "movements", "--product", "sku-a")
        assert result.exit_code == 0
        assert "+5" in result.output
        assert "restock" in result.output

    def test_adjustment_without_flag_is_not_a_restock(self, run):
        _restock(run, "sku-a", 5)
        run("inventory", "adjust", "--product", "sku-a", "--delta", "3", "--reason", "restock")
        result = run("inventory", "movements", "--product", "sku-a", "--limit", "1")
        assert "adjustment" in result.output

    def test_restock_must_add_stock(self, run):
        _restock(run, "sku-a", 5)
        result = run(
            "inventory", "adjust", "--product", "sku-a", "--delta", "-1",
            "--reason", "returned to supplier", "--restock",
        )
        assert result.exit_code == 1
        assert "VALIDATION" in result.output


class TestOrderCommands:

    def test_place_then_cancel(self, run):
        _restock(run, "sku-a", 10)
        placed = run("order", "place", "--customer", "cust-1", "--items", "sku-a:2:15000:12000")
        assert placed.exit_code == 0, placed.output
        order_id = re.search(UUID, placed.output).group(0)
        assert "status=pending" in placed.output
        assert "Next:     cancelled, paid" in placed.output

        cancelled = run("order", "status", "--id", order_id, "--to", "cancelled")
        assert cancelled.exit_code == 0
        assert "cancelled" in cancelled.output

        again = run("order", "status", "--id", order_id, "--to", "paid")
        assert again.exit_code != 0
        assert "terminal state" in again.output

        shown = run("order", "show", "--id", order_id)
        assert "status=cancelled" in shown.output
        assert "Next:     (final)" in shown.output

    def test_prices_accept_underscore_separators(self, run):
        _restock(run, "sku-a", 10)
        placed = run("order", "place", "--customer", "cust-1", "--items", "sku-a:1:15_000:12_000")
        assert placed.exit_code == 0, placed.output
        assert "12000" in placed.output

    def test_bad_items_format(self, run):
        result = run("order", "place", "--customer", "cust-1", "--items", "sku-a:two")
        assert result.exit_code == 2
        assert "Invalid item format" in result.output

    def test_unknown_order(self, run):
        result = run("order", "show", "--id", "missing")
        assert result.exit_code == 1
        assert "not found" in result.output


class TestAutoshipCommands:

    def test_lifecycle(self, run):
        _restock(run, "sku-a", 10)
        created = run(
            "autoship", "create",
            "--customer", "cust-1",
            "--items", "sku-a:1:15000",
            "--every", "2w",
            "--start", "2020-01-01T00:00:00+00:00",
        )
        assert created.exit_code == 0, created.output
        autoship_id = re.search(UUID, created.output).group(0)

        due = run("autoship", "due")
        assert autoship_id in due.output

        delivered = run("autoship", "run-due")
        assert "1 delivered, 0 failed." in delivered.output

        assert run("autoship", "pause", "--id", autoship_id).exit_code == 0
        assert run("autoship", "resume", "--id", autoship_id).exit_code == 0
        assert run("autoship", "frequency", "--id", autoship_id, "--every", "30d").exit_code == 0
        assert run("autoship", "skip", "--id", autoship_id).exit_code == 0
        assert run("autoship", "cancel", "--id", autoship_id).exit_code == 0

        again = run("autoship", "cancel", "--id", autoship_id)
        assert again.exit_code == 1
        assert "INVALID_STATE" in again.output

        shown = run("autoship", "show", "--id", autoship_id)
        assert "status=cancelled" in shown.output
        assert "completed" in shown.output
        assert "skipped" in shown.output

    def test_run_due_as_of_a_future_moment(self, run):
        _restock(run, "sku-a", 10)
        created = run(
            "autoship", "create",
            "--customer", "cust-1",
            "--items", "sku-a:1:15000",
            "--every", "30d",
            "--start", "2999-01-01T00:00:00+00:00",
        )
        assert created.exit_code == 0, created.output

        delivered = run("autoship", "run-due", "--as-of", "2999-01-01T07:00:00+07:00")
        assert "1 delivered, 0 failed." in delivered.output

    def test_naive_timestamp_rejected(self, run):
        result = run("autoship", "due", "--as-of", "2026-01-01T00:00:00")
        assert result.exit_code == 2
        assert "timezone" in result.output

    def test_bad_frequency_rejected(self, run):
        result = run(
            "autoship", "create", "--customer", "c", "--items", "sku-a:1:10", "--every", "monthly"
        )
        assert result.exit_code == 2
