"""Dashboard and container statistics.

Each function recomputes from one snapshot of committed state; nothing is
cached.
"""

from .entity_store import EntityStore, StoreView
from .models import (
    STATUS_AVAILABLE,
    STATUS_SOLD,
    Container,
    ContainerReportRow,
    ContainerSummary,
    DashboardStats,
    SaleListing,
)
from .queries import list_sales


def dashboard_stats(store: EntityStore) -> DashboardStats:
    """Stock counts, sales count, revenue and customer count."""
    view = store.snapshot()
    bikes = view.list_motorcycles()
    sales = view.list_sales()
    return DashboardStats(
        total_motorcycles=len(bikes),
        in_stock=sum(1 for b in bikes if b.status == STATUS_AVAILABLE),
        sold=sum(1 for b in bikes if b.status == STATUS_SOLD),
        total_sales=len(sales),
        total_revenue=sum(s.sale_price for s in sales),
        total_customers=len(view.list_customers()),
    )


def _summarize(view: StoreView, container: Container) -> ContainerSummary:
    bikes = view.list_motorcycles(container_id=container.id)
    sold = [b for b in bikes if b.status == STATUS_SOLD]

    sales_total = 0
    sold_cost = 0
    for bike in sold:
        sale = view.find_sale_by_motorcycle(bike.id)
        if sale is not None:
            sales_total += sale.sale_price
        sold_cost += bike.buying_price or 0

    return ContainerSummary(
        container=container,
        unit_count=len(bikes),
        available_count=len(bikes) - len(sold),
        sold_count=len(sold),
        investment=sum(b.buying_price or 0 for b in bikes),
        sales_total=sales_total,
        realized_profit=sales_total - sold_cost,
    )


def container_summary(store: EntityStore, container_id: str) -> ContainerSummary:
    """
    Investment, sales and realized profit for one container.

    Raises:
        ContainerNotFoundError: If the container doesn't exist.
    """
    view = store.snapshot()
    return _summarize(view, view.get_container(container_id))


def container_summaries(store: EntityStore) -> list[ContainerSummary]:
    """Summaries for every container, newest import first."""
    view = store.snapshot()
    containers = sorted(view.list_containers(), key=lambda c: c.import_date, reverse=True)
    return [_summarize(view, c) for c in containers]


def container_report(store: EntityStore, container_id: str) -> list[ContainerReportRow]:
    """
    Per-bike buy/sell figures for a container; unsold bikes show 0 profit.

    Raises:
        ContainerNotFoundError: If the container doesn't exist.
    """
    view = store.snapshot()
    container = view.get_container(container_id)
    rows = []
    for bike in view.list_motorcycles(container_id=container.id):
        sale = view.find_sale_by_motorcycle(bike.id)
        selling = sale.sale_price if sale is not None else 0
        buying = bike.buying_price or 0
        rows.append(
            ContainerReportRow(
                model=bike.model,
                chassis=bike.chassis,
                engine=bike.engine,
                color=bike.color,
                status=bike.status,
                buying_price=buying,
                selling_price=selling,
                profit=selling - buying if sale is not None else 0,
            )
        )
    return rows


def recent_sales(store: EntityStore, limit: int = 5) -> list[SaleListing]:
    """The ``limit`` newest sales."""
    return list_sales(store, limit=limit)
