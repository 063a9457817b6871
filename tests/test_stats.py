"""Tests for dashboard and container statistics."""

import pytest

from bikestock.errors import ContainerNotFoundError
from bikestock.stats import (
    container_report,
    container_summaries,
    container_summary,
    dashboard_stats,
    recent_sales,
)


class TestDashboard:
    def test_empty_store(self, store):
        stats = dashboard_stats(store)
        assert stats.total_motorcycles == 0
        assert stats.total_revenue == 0

    def test_counts_and_revenue(self, store, coordinator, lot, make_fields):
        coordinator.submit_sale("CHAS001", make_fields(), 480000, "2 years")
        coordinator.submit_sale(
            "CHAS002", make_fields(name="Karim", phone="018", nid="N2"), 420000, "10 years"
        )

        stats = dashboard_stats(store)
        assert stats.total_motorcycles == 3
        assert stats.in_stock == 1
        assert stats.sold == 2
        assert stats.in_stock + stats.sold == stats.total_motorcycles
        assert stats.total_sales == 2
        assert stats.total_revenue == 900000
        assert stats.total_customers == 2

    def test_recomputed_after_removal(self, store, inventory, lot):
        bike = store.find_motorcycle_by_chassis("CHAS003")
        inventory.remove_motorcycle(bike.id)

        stats = dashboard_stats(store)
        assert stats.total_motorcycles == 2
        assert stats.in_stock == 2


class TestContainerSummary:
    def test_before_any_sale(self, store, lot):
        summary = container_summary(store, lot.id)
        assert summary.unit_count == 3
        assert summary.available_count == 3
        assert summary.sold_count == 0
        assert summary.investment == 750000
        assert summary.sales_total == 0
        assert summary.realized_profit == 0

    def test_realized_profit(self, store, coordinator, lot, make_fields):
        coordinator.submit_sale("CHAS001", make_fields(), 480000, "2 years")
        coordinator.submit_sale("CHAS002", make_fields(), 330000, "2 years")

        summary = container_summary(store, lot.id)
        assert summary.sold_count == 2
        assert summary.sales_total == 810000
        assert summary.realized_profit == 60000

    def test_missing_buying_price_counts_as_zero(self, store, coordinator, lot, make_fields):
        coordinator.submit_sale("CHAS003", make_fields(), 150000, "2 years")
        assert container_summary(store, lot.id).realized_profit == 150000

    def test_unknown_container(self, store):
        with pytest.raises(ContainerNotFoundError):
            container_summary(store, "missing")

    def test_summaries_newest_import_first(self, store, inventory, lot):
        later = inventory.create_container("Lot-2", "Kobe Traders", "2024-05-01T00:00:00Z")
        inventory.create_container("Lot-0", "Kobe Traders", "2023-11-01T00:00:00Z")

        names = [s.container.name for s in container_summaries(store)]
        assert names == ["Lot-2", "Lot-1", "Lot-0"]
        assert container_summaries(store)[0].container.id == later.id


class TestContainerReport:
    def test_rows(self, store, coordinator, lot, make_fields):
        coordinator.submit_sale("CHAS001", make_fields(), 480000, "2 years")

        rows = {r.chassis: r for r in container_report(store, lot.id)}
        assert set(rows) == {"CHAS001", "CHAS002", "CHAS003"}

        assert rows["CHAS001"].status == "sold"
        assert rows["CHAS001"].selling_price == 480000
        assert rows["CHAS001"].profit == 80000

        assert rows["CHAS002"].status == "available"
        assert rows["CHAS002"].selling_price == 0
        assert rows["CHAS002"].profit == 0

        assert rows["CHAS003"].buying_price == 0

    def test_unknown_container(self, store):
        with pytest.raises(ContainerNotFoundError):
            container_report(store, "missing")


class TestRecentSales:
    def test_limit(self, store, coordinator, lot, make_fields):
        for chassis in ("CHAS001", "CHAS002", "CHAS003"):
            coordinator.submit_sale(chassis, make_fields(), 100000, "2 years")

        assert len(recent_sales(store, limit=2)) == 2
        assert len(recent_sales(store)) == 3
