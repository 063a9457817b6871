"""Read-only queries for listings, search and sale slips."""

from .entity_store import EntityStore, StoreView
from .models import STATUS_AVAILABLE, Customer, Motorcycle, SaleListing, SaleRecord
from .utils import validate_month


def stock_matches(bike: Motorcycle, query: str) -> bool:
    """Case-insensitive substring match on model, chassis or engine."""
    needle = (query or "").strip().lower()
    if not needle:
        return True
    return any(needle in value.lower() for value in (bike.model, bike.chassis, bike.engine))


def list_available(store: EntityStore, query: str = "") -> list[Motorcycle]:
    """In-stock motorcycles matching ``query``, newest first."""
    bikes = [b for b in store.list_motorcycles(status=STATUS_AVAILABLE) if stock_matches(b, query)]
    bikes.sort(key=lambda b: b.created_at, reverse=True)
    return bikes


def _customer_text(customer: Customer, bikes_by_id: dict[str, Motorcycle]) -> str:
    parts = [
        customer.name,
        customer.father_name,
        customer.mother_name,
        customer.phone,
        customer.nid,
        customer.address,
        customer.notes,
    ]
    for bike_id in customer.purchased_bike_ids:
        bike = bikes_by_id.get(bike_id)
        if bike is None:
            continue
        parts.extend(
            [bike.model, bike.chassis, bike.engine, bike.color, bike.registration_number or ""]
        )
    return " ".join(parts).lower()


def search_customers(
    store: EntityStore,
    query: str = "",
    month: str | None = None,
) -> list[Customer]:
    """
    Search customers by free text and/or purchase month.

    Every whitespace-separated term of ``query`` must appear (case-insensitive)
    somewhere in the customer's particulars or in the model, chassis, engine,
    color or registration number of a bike they bought.

    Args:
        store: Store to read from.
        query: Search terms; empty matches everybody.
        month: "YYYY-MM"; keeps only customers with a sale in that month.

    Raises:
        InvalidInputError: If ``month`` is malformed.
    """
    view = store.snapshot()
    customers = view.list_customers()
    terms = (query or "").lower().split()

    if month:
        month = validate_month(month)
        sale_dates = {s.motorcycle_id: s.sale_date for s in view.list_sales()}
        customers = [
            c
            for c in customers
            if any(sale_dates.get(b, "").startswith(month) for b in c.purchased_bike_ids)
        ]

    if terms:
        bikes_by_id = {b.id: b for b in view.list_motorcycles()}
        customers = [
            c for c in customers if all(t in _customer_text(c, bikes_by_id) for t in terms)
        ]

    return customers


def _listing(view: StoreView, sale) -> SaleListing:
    bike = view.get_motorcycle(sale.motorcycle_id)
    customer = view.get_customer(sale.customer_id)
    return SaleListing(
        sale=sale,
        model=bike.model,
        chassis=bike.chassis,
        engine=bike.engine,
        color=bike.color,
        customer_name=customer.name,
        customer_phone=customer.phone,
    )


def list_sales(store: EntityStore, limit: int | None = None) -> list[SaleListing]:
    """Sales joined with bike and buyer details, newest first."""
    view = store.snapshot()
    sales = sorted(view.list_sales(), key=lambda s: s.sale_date, reverse=True)
    if limit is not None:
        sales = sales[:limit]
    return [_listing(view, s) for s in sales]


def get_sale_slip(store: EntityStore, sale_id: str) -> SaleRecord:
    """
    Resolve the (sale, customer, motorcycle) triple printed on a sale slip.

    Raises:
        SaleNotFoundError: If the sale doesn't exist.
    """
    view = store.snapshot()
    sale = view.get_sale(sale_id)
    return SaleRecord(
        sale=sale,
        customer=view.get_customer(sale.customer_id),
        motorcycle=view.get_motorcycle(sale.motorcycle_id),
    )
