"""FastAPI REST API for bikestock."""

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from typing import Literal, Optional

from . import __version__
from .entity_store import EntityStore
from .errors import (
    BikestockError,
    ConflictError,
    ContainerNotFoundError,
    CustomerNotFoundError,
    DuplicateChassisError,
    InvalidInputError,
    InvalidSchemaVersionError,
    MotorcycleAlreadySoldError,
    MotorcycleNotAvailableError,
    MotorcycleNotFoundError,
    MotorcycleNotSoldError,
    NotFoundError,
    ReferentialIntegrityError,
    SaleNotFoundError,
    StoreUnavailableError,
    UnknownContainerError,
)
from .inventory import InventoryService
from .models import (
    REGISTRATION_DURATIONS,
    Container,
    ContainerSummary,
    Customer,
    CustomerFields,
    Motorcycle,
    SaleListing,
    SaleRecord,
)
from .queries import get_sale_slip, list_available, list_sales, search_customers, stock_matches
from .sales import SaleCoordinator
from .stats import container_report, container_summaries, container_summary, dashboard_stats, recent_sales
from .utils import BikeRow, parse_bike_rows


# --- Pydantic Schemas ---


class MotorcycleSchema(BaseModel):
    id: str
    model: str
    chassis: str
    engine: str
    color: str
    status: str
    buying_price: Optional[float] = None
    registration_number: Optional[str] = None
    exporter_name: Optional[str] = None
    container_id: Optional[str] = None
    created_at: str


class MotorcycleCreateRequest(BaseModel):
    model: str
    chassis: str
    engine: str = ""
    color: str = ""
    buying_price: Optional[float] = Field(None, ge=0)
    exporter_name: Optional[str] = None
    container_id: Optional[str] = None


class MotorcycleListResponse(BaseModel):
    motorcycles: list[MotorcycleSchema]
    count: int


class RegistrationUpdateRequest(BaseModel):
    registration_number: str


class ContainerSchema(BaseModel):
    id: str
    name: str
    exporter_name: str
    import_date: str
    bike_ids: list[str]
    created_at: str


class ContainerCreateRequest(BaseModel):
    name: str
    exporter_name: str
    import_date: Optional[str] = Field(None, description="ISO timestamp (defaults to now)")


class ContainerSummarySchema(BaseModel):
    container: ContainerSchema
    unit_count: int
    available_count: int
    sold_count: int
    investment: float
    sales_total: float
    realized_profit: float


class ContainerListResponse(BaseModel):
    containers: list[ContainerSummarySchema]
    count: int


class BikeRowSchema(BaseModel):
    model: str
    chassis: str
    engine: str
    color: str
    buying_price: Optional[float] = Field(None, ge=0)
    exporter_name: Optional[str] = None


class ContainerImportRequest(BaseModel):
    """Either structured ``bikes`` or pasted ``text`` (one bike per line)."""

    bikes: list[BikeRowSchema] = Field(default_factory=list)
    text: Optional[str] = Field(
        None,
        description="Lines of 'model,chassis,engine,color[,buying_price]' (comma or tab separated)",
    )


class ContainerReportRowSchema(BaseModel):
    model: str
    chassis: str
    engine: str
    color: str
    status: str
    buying_price: float
    selling_price: float
    profit: float


class CustomerSchema(BaseModel):
    id: str
    name: str
    father_name: str
    mother_name: str
    phone: str
    nid: str
    dob: str
    photo: Optional[str] = None
    address: str
    notes: str
    purchased_bike_ids: list[str]
    created_at: str


class CustomerListResponse(BaseModel):
    customers: list[CustomerSchema]
    count: int


class CustomerNotesRequest(BaseModel):
    notes: str


class CustomerFieldsSchema(BaseModel):
    name: str
    phone: str
    nid: str
    father_name: str = ""
    mother_name: str = ""
    dob: str = ""
    address: str = ""
    notes: str = ""
    photo: Optional[str] = None


class SaleSchema(BaseModel):
    id: str
    motorcycle_id: str
    customer_id: str
    sale_date: str
    sale_price: float
    registration_duration: str


class SaleCreateRequest(BaseModel):
    chassis: str
    customer: CustomerFieldsSchema
    sale_price: float
    registration_duration: str = Field(
        ..., description=f"One of {', '.join(REGISTRATION_DURATIONS)}"
    )


class SaleRecordSchema(BaseModel):
    sale: SaleSchema
    customer: CustomerSchema
    motorcycle: MotorcycleSchema
    customer_created: bool = False


class SaleListingSchema(SaleSchema):
    model: str
    chassis: str
    engine: str
    color: str
    customer_name: str
    customer_phone: str


class SaleListResponse(BaseModel):
    sales: list[SaleListingSchema]
    count: int


class DashboardStatsSchema(BaseModel):
    total_motorcycles: int
    in_stock: int
    sold: int
    total_sales: int
    total_revenue: float
    total_customers: int


class ErrorResponse(BaseModel):
    detail: str
    error_type: str


# --- Helper Functions ---


def get_entity_store() -> EntityStore:
    """Get the global EntityStore."""
    return EntityStore()


def motorcycle_to_schema(bike: Motorcycle) -> MotorcycleSchema:
    return MotorcycleSchema(**bike.to_dict())


def customer_to_schema(customer: Customer) -> CustomerSchema:
    return CustomerSchema(**customer.to_dict())


def container_summary_to_schema(summary: ContainerSummary) -> ContainerSummarySchema:
    data = summary.to_dict()
    data["container"] = ContainerSchema(**data["container"])
    return ContainerSummarySchema(**data)


def sale_record_to_schema(record: SaleRecord) -> SaleRecordSchema:
    return SaleRecordSchema(
        sale=SaleSchema(**record.sale.to_dict()),
        customer=customer_to_schema(record.customer),
        motorcycle=motorcycle_to_schema(record.motorcycle),
        customer_created=record.customer_created,
    )


def sale_listing_to_schema(listing: SaleListing) -> SaleListingSchema:
    return SaleListingSchema(**listing.to_dict())


# --- App Setup ---


app = FastAPI(
    title="bikestock API",
    description="Motorcycle dealership stock, container and sales management",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Global Exception Handler ---


# Map exception types to HTTP status codes
ERROR_STATUS_CODES: dict[type, int] = {
    MotorcycleNotFoundError: 404,
    ContainerNotFoundError: 404,
    CustomerNotFoundError: 404,
    SaleNotFoundError: 404,
    InvalidInputError: 400,
    UnknownContainerError: 422,
    ReferentialIntegrityError: 422,
    MotorcycleNotAvailableError: 409,
    MotorcycleAlreadySoldError: 409,
    MotorcycleNotSoldError: 409,
    DuplicateChassisError: 409,
    StoreUnavailableError: 503,
    InvalidSchemaVersionError: 500,
}

# Fallbacks for subclasses not listed above
_BASE_STATUS_CODES: tuple[tuple[type, int], ...] = (
    (NotFoundError, 404),
    (ReferentialIntegrityError, 422),
    (ConflictError, 409),
)


def status_code_for(exc: BikestockError) -> int:
    status_code = ERROR_STATUS_CODES.get(type(exc))
    if status_code is not None:
        return status_code
    for base, code in _BASE_STATUS_CODES:
        if isinstance(exc, base):
            return code
    return 500


@app.exception_handler(BikestockError)
async def bikestock_error_handler(request: Request, exc: BikestockError) -> JSONResponse:
    """Map BikestockError subclasses to appropriate HTTP responses."""
    return JSONResponse(
        status_code=status_code_for(exc),
        content={"detail": str(exc), "error_type": type(exc).__name__},
    )


# --- Endpoints ---


@app.get("/api/health")
def health_check():
    """
    Health check endpoint.

    Reports whether the inventory store can be read.
    """
    store = get_entity_store()
    try:
        stats = dashboard_stats(store)
        return {
            "status": "ok",
            "store_initialized": store.exists(),
            "motorcycle_count": stats.total_motorcycles,
        }
    except BikestockError as e:
        return {
            "status": "error",
            "detail": str(e),
        }


# --- Motorcycle Endpoints ---


@app.get("/api/motorcycles", response_model=MotorcycleListResponse)
def list_motorcycles(
    status: Optional[Literal["available", "sold"]] = Query(
        default="available", description="Filter by status"
    ),
    include_all: bool = Query(default=False, description="Ignore the status filter"),
    q: str = Query(default="", description="Model, chassis or engine substring"),
):
    """List motorcycles (in-stock only by default)."""
    store = get_entity_store()
    if include_all:
        bikes = [b for b in store.list_motorcycles() if stock_matches(b, q)]
    elif status == "available":
        bikes = list_available(store, query=q)
    else:
        bikes = [b for b in store.list_motorcycles(status=status) if stock_matches(b, q)]
    return MotorcycleListResponse(
        motorcycles=[motorcycle_to_schema(b) for b in bikes],
        count=len(bikes),
    )


@app.post("/api/motorcycles", response_model=MotorcycleSchema, status_code=201)
def create_motorcycle(request: MotorcycleCreateRequest):
    """Add a single motorcycle to stock."""
    service = InventoryService(get_entity_store())
    bike = service.add_motorcycle(
        model=request.model,
        chassis=request.chassis,
        engine=request.engine,
        color=request.color,
        buying_price=request.buying_price,
        exporter_name=request.exporter_name,
        container_id=request.container_id,
    )
    return motorcycle_to_schema(bike)


@app.get("/api/motorcycles/lookup", response_model=MotorcycleSchema)
def lookup_motorcycle(chassis: str = Query(..., description="Chassis number")):
    """Find an in-stock motorcycle by chassis number."""
    service = InventoryService(get_entity_store())
    return motorcycle_to_schema(service.find_available_by_chassis(chassis))


@app.get("/api/motorcycles/{motorcycle_id}", response_model=MotorcycleSchema)
def get_motorcycle(motorcycle_id: str):
    """Get a motorcycle by ID."""
    return motorcycle_to_schema(get_entity_store().get_motorcycle(motorcycle_id))


@app.delete("/api/motorcycles/{motorcycle_id}", response_model=MotorcycleSchema)
def delete_motorcycle(motorcycle_id: str):
    """Remove an unsold motorcycle from stock."""
    service = InventoryService(get_entity_store())
    return motorcycle_to_schema(service.remove_motorcycle(motorcycle_id))


@app.put("/api/motorcycles/{motorcycle_id}/registration", response_model=MotorcycleSchema)
def update_registration(motorcycle_id: str, request: RegistrationUpdateRequest):
    """Set the registration number of a sold motorcycle."""
    service = InventoryService(get_entity_store())
    bike = service.set_registration_number(motorcycle_id, request.registration_number)
    return motorcycle_to_schema(bike)


# --- Container Endpoints ---


@app.get("/api/containers", response_model=ContainerListResponse)
def list_containers():
    """List containers with their stock and profit figures."""
    summaries = container_summaries(get_entity_store())
    return ContainerListResponse(
        containers=[container_summary_to_schema(s) for s in summaries],
        count=len(summaries),
    )


@app.post("/api/containers", response_model=ContainerSchema, status_code=201)
def create_container(request: ContainerCreateRequest):
    """Register a new import shipment."""
    service = InventoryService(get_entity_store())
    container: Container = service.create_container(
        name=request.name,
        exporter_name=request.exporter_name,
        import_date=request.import_date,
    )
    return ContainerSchema(**container.to_dict())


@app.get("/api/containers/{container_id}", response_model=ContainerSummarySchema)
def get_container(container_id: str):
    """Get one container's stock and profit figures."""
    return container_summary_to_schema(container_summary(get_entity_store(), container_id))


@app.post(
    "/api/containers/{container_id}/import",
    response_model=MotorcycleListResponse,
    status_code=201,
)
def import_container_bikes(container_id: str, request: ContainerImportRequest):
    """Import a batch of motorcycles into a container."""
    rows = [BikeRow(**b.model_dump()) for b in request.bikes]
    if request.text:
        rows.extend(parse_bike_rows(request.text))

    service = InventoryService(get_entity_store())
    bikes = service.import_bikes(container_id, rows)
    return MotorcycleListResponse(
        motorcycles=[motorcycle_to_schema(b) for b in bikes],
        count=len(bikes),
    )


@app.get("/api/containers/{container_id}/report", response_model=list[ContainerReportRowSchema])
def get_container_report(container_id: str):
    """Per-bike buying price, selling price and profit for a container."""
    rows = container_report(get_entity_store(), container_id)
    return [ContainerReportRowSchema(**r.to_dict()) for r in rows]


# --- Customer Endpoints ---


@app.get("/api/customers", response_model=CustomerListResponse)
def list_customers(
    q: str = Query(default="", description="Search terms (all must match)"),
    month: Optional[str] = Query(default=None, description="Purchase month, YYYY-MM"),
):
    """Search customers by text and purchase month."""
    customers = search_customers(get_entity_store(), query=q, month=month)
    return CustomerListResponse(
        customers=[customer_to_schema(c) for c in customers],
        count=len(customers),
    )


@app.get("/api/customers/{customer_id}", response_model=CustomerSchema)
def get_customer(customer_id: str):
    """Get a customer by ID."""
    return customer_to_schema(get_entity_store().get_customer(customer_id))


@app.put("/api/customers/{customer_id}/notes", response_model=CustomerSchema)
def update_customer_notes(customer_id: str, request: CustomerNotesRequest):
    """Replace a customer's notes."""
    service = InventoryService(get_entity_store())
    return customer_to_schema(service.update_customer_notes(customer_id, request.notes))


# --- Sale Endpoints ---


@app.get("/api/sales", response_model=SaleListResponse)
def get_sales(limit: Optional[int] = Query(default=None, ge=1)):
    """List sales, newest first."""
    listings = list_sales(get_entity_store(), limit=limit)
    return SaleListResponse(
        sales=[sale_listing_to_schema(s) for s in listings],
        count=len(listings),
    )


@app.post(
    "/api/sales",
    response_model=SaleRecordSchema,
    status_code=201,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def create_sale(request: SaleCreateRequest):
    """Sell an in-stock motorcycle, resolving or creating the customer."""
    coordinator = SaleCoordinator(get_entity_store())
    record = coordinator.submit_sale(
        chassis=request.chassis,
        customer_fields=CustomerFields(**request.customer.model_dump()),
        sale_price=request.sale_price,
        registration_duration=request.registration_duration,
    )
    return sale_record_to_schema(record)


@app.get("/api/sales/{sale_id}", response_model=SaleRecordSchema)
def get_sale(sale_id: str):
    """Get a sale with its customer and motorcycle, as printed on the slip."""
    return sale_record_to_schema(get_sale_slip(get_entity_store(), sale_id))


# --- Stats Endpoints ---


@app.get("/api/stats/dashboard", response_model=DashboardStatsSchema)
def get_dashboard_stats():
    """Stock, sales, revenue and customer counts."""
    return DashboardStatsSchema(**dashboard_stats(get_entity_store()).to_dict())


@app.get("/api/stats/recent-sales", response_model=SaleListResponse)
def get_recent_sales(limit: int = Query(default=5, ge=1, le=100)):
    """The newest sales for the dashboard."""
    listings = recent_sales(get_entity_store(), limit=limit)
    return SaleListResponse(
        sales=[sale_listing_to_schema(s) for s in listings],
        count=len(listings),
    )
