"""Data models for bikestock."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
import uuid

STATUS_AVAILABLE = "available"
STATUS_SOLD = "sold"
BIKE_STATUSES = (STATUS_AVAILABLE, STATUS_SOLD)

REGISTRATION_DURATIONS = ("2 years", "10 years")


def _utc_now() -> str:
    """Return current UTC time as ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _generate_id() -> str:
    """Generate a new entity ID."""
    return str(uuid.uuid4())


@dataclass
class Motorcycle:
    """A single physical unit in stock, identified by its chassis number."""

    id: str
    model: str
    chassis: str
    engine: str
    color: str
    status: str = STATUS_AVAILABLE
    buying_price: float | None = None
    registration_number: str | None = None
    exporter_name: str | None = None
    container_id: str | None = None
    created_at: str = field(default_factory=_utc_now)

    @property
    def is_available(self) -> bool:
        return self.status == STATUS_AVAILABLE

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "model": self.model,
            "chassis": self.chassis,
            "engine": self.engine,
            "color": self.color,
            "status": self.status,
            "buying_price": self.buying_price,
            "registration_number": self.registration_number,
            "exporter_name": self.exporter_name,
            "container_id": self.container_id,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Motorcycle":
        return cls(
            id=data["id"],
            model=data["model"],
            chassis=data["chassis"],
            engine=data.get("engine", ""),
            color=data.get("color", ""),
            status=data.get("status", STATUS_AVAILABLE),
            buying_price=data.get("buying_price"),
            registration_number=data.get("registration_number"),
            exporter_name=data.get("exporter_name"),
            container_id=data.get("container_id"),
            created_at=data.get("created_at", ""),
        )

    @classmethod
    def create(
        cls,
        model: str,
        chassis: str,
        engine: str,
        color: str,
        buying_price: float | None = None,
        exporter_name: str | None = None,
        container_id: str | None = None,
    ) -> "Motorcycle":
        """Create a new available motorcycle with generated ID and timestamp."""
        return cls(
            id=_generate_id(),
            model=model,
            chassis=chassis,
            engine=engine,
            color=color,
            status=STATUS_AVAILABLE,
            buying_price=buying_price,
            exporter_name=exporter_name,
            container_id=container_id,
            created_at=_utc_now(),
        )


@dataclass
class Container:
    """An import shipment grouping motorcycles under one exporter."""

    id: str
    name: str
    exporter_name: str
    import_date: str
    bike_ids: list[str] = field(default_factory=list)
    created_at: str = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "exporter_name": self.exporter_name,
            "import_date": self.import_date,
            "bike_ids": list(self.bike_ids),
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Container":
        return cls(
            id=data["id"],
            name=data["name"],
            exporter_name=data.get("exporter_name", ""),
            import_date=data.get("import_date", ""),
            bike_ids=list(data.get("bike_ids", [])),
            created_at=data.get("created_at", ""),
        )

    @classmethod
    def create(cls, name: str, exporter_name: str, import_date: str | None = None) -> "Container":
        """Create a new empty container; import date defaults to now."""
        now = _utc_now()
        return cls(
            id=_generate_id(),
            name=name,
            exporter_name=exporter_name,
            import_date=import_date or now,
            bike_ids=[],
            created_at=now,
        )


@dataclass
class CustomerFields:
    """Identity and contact particulars submitted with a sale."""

    name: str
    phone: str
    nid: str
    father_name: str = ""
    mother_name: str = ""
    dob: str = ""
    address: str = ""
    notes: str = ""
    photo: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "father_name": self.father_name,
            "mother_name": self.mother_name,
            "phone": self.phone,
            "nid": self.nid,
            "dob": self.dob,
            "photo": self.photo,
            "address": self.address,
            "notes": self.notes,
        }


@dataclass
class Customer:
    """A buyer. Phone and nid are alternate keys to the same identity."""

    id: str
    name: str
    phone: str
    nid: str
    father_name: str = ""
    mother_name: str = ""
    dob: str = ""
    photo: str | None = None
    address: str = ""
    notes: str = ""
    purchased_bike_ids: list[str] = field(default_factory=list)
    created_at: str = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "father_name": self.father_name,
            "mother_name": self.mother_name,
            "phone": self.phone,
            "nid": self.nid,
            "dob": self.dob,
            "photo": self.photo,
            "address": self.address,
            "notes": self.notes,
            "purchased_bike_ids": list(self.purchased_bike_ids),
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Customer":
        return cls(
            id=data["id"],
            name=data["name"],
            phone=data.get("phone", ""),
            nid=data.get("nid", ""),
            father_name=data.get("father_name", ""),
            mother_name=data.get("mother_name", ""),
            dob=data.get("dob", ""),
            photo=data.get("photo"),
            address=data.get("address", ""),
            notes=data.get("notes", ""),
            purchased_bike_ids=list(data.get("purchased_bike_ids", [])),
            created_at=data.get("created_at", ""),
        )

    @classmethod
    def create(cls, fields: CustomerFields) -> "Customer":
        """Create a new customer with an empty purchased-bike set."""
        return cls(
            id=_generate_id(),
            name=fields.name,
            phone=fields.phone,
            nid=fields.nid,
            father_name=fields.father_name,
            mother_name=fields.mother_name,
            dob=fields.dob,
            photo=fields.photo,
            address=fields.address,
            notes=fields.notes,
            purchased_bike_ids=[],
            created_at=_utc_now(),
        )


@dataclass
class Sale:
    """The sale fact for one motorcycle. Never mutated once written."""

    id: str
    motorcycle_id: str
    customer_id: str
    sale_price: float
    registration_duration: str
    sale_date: str = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "motorcycle_id": self.motorcycle_id,
            "customer_id": self.customer_id,
            "sale_date": self.sale_date,
            "sale_price": self.sale_price,
            "registration_duration": self.registration_duration,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Sale":
        return cls(
            id=data["id"],
            motorcycle_id=data["motorcycle_id"],
            customer_id=data["customer_id"],
            sale_price=data["sale_price"],
            registration_duration=data["registration_duration"],
            sale_date=data.get("sale_date", ""),
        )

    @classmethod
    def create(
        cls,
        motorcycle_id: str,
        customer_id: str,
        sale_price: float,
        registration_duration: str,
    ) -> "Sale":
        """Create a new sale stamped with the current time."""
        return cls(
            id=_generate_id(),
            motorcycle_id=motorcycle_id,
            customer_id=customer_id,
            sale_price=sale_price,
            registration_duration=registration_duration,
            sale_date=_utc_now(),
        )


# Read models joining several entities


@dataclass
class SaleRecord:
    """A committed sale with the customer and motorcycle it resolved to."""

    sale: Sale
    customer: Customer
    motorcycle: Motorcycle
    customer_created: bool = False


@dataclass
class SaleListing:
    """A sale row joined with bike and buyer details for listings."""

    sale: Sale
    model: str
    chassis: str
    engine: str
    color: str
    customer_name: str
    customer_phone: str

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.sale.to_dict(),
            "model": self.model,
            "chassis": self.chassis,
            "engine": self.engine,
            "color": self.color,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
        }


@dataclass
class DashboardStats:
    """Store-wide counts and revenue."""

    total_motorcycles: int
    in_stock: int
    sold: int
    total_sales: int
    total_revenue: float
    total_customers: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_motorcycles": self.total_motorcycles,
            "in_stock": self.in_stock,
            "sold": self.sold,
            "total_sales": self.total_sales,
            "total_revenue": self.total_revenue,
            "total_customers": self.total_customers,
        }


@dataclass
class ContainerSummary:
    """Investment and realized profit for one container."""

    container: Container
    unit_count: int
    available_count: int
    sold_count: int
    investment: float
    sales_total: float
    realized_profit: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "container": self.container.to_dict(),
            "unit_count": self.unit_count,
            "available_count": self.available_count,
            "sold_count": self.sold_count,
            "investment": self.investment,
            "sales_total": self.sales_total,
            "realized_profit": self.realized_profit,
        }


@dataclass
class ContainerReportRow:
    """One line of a container report: a bike with its buy/sell figures."""

    model: str
    chassis: str
    engine: str
    color: str
    status: str
    buying_price: float
    selling_price: float
    profit: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "chassis": self.chassis,
            "engine": self.engine,
            "color": self.color,
            "status": self.status,
            "buying_price": self.buying_price,
            "selling_price": self.selling_price,
            "profit": self.profit,
        }
