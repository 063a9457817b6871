"""Inventory storage for bikestock.

All four collections (motorcycles, containers, customers, sales) live in one
JSON document. Writers go through :meth:`EntityStore.transaction`, which holds
an exclusive lock on the store for the whole read-modify-write and commits by
write-temp-then-rename. Readers load the last committed document without
locking, since a rename never exposes a half-written file.
"""

import fcntl
import json
import logging
import os
import tempfile
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from .errors import (
    ContainerNotFoundError,
    CustomerNotFoundError,
    DuplicateChassisError,
    InvalidInputError,
    InvalidSchemaVersionError,
    MotorcycleAlreadySoldError,
    MotorcycleNotAvailableError,
    MotorcycleNotFoundError,
    ReferentialIntegrityError,
    SaleNotFoundError,
    StoreUnavailableError,
    UnknownContainerError,
)
from .models import STATUS_SOLD, Container, Customer, Motorcycle, Sale

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

# Can be overridden via BIKESTOCK_DATA_DIR / BIKESTOCK_LOCK_TIMEOUT
_default_data_dir = Path(__file__).parent.parent.parent / "data"
DATA_DIR = Path(os.environ.get("BIKESTOCK_DATA_DIR", _default_data_dir))
LOCK_TIMEOUT = float(os.environ.get("BIKESTOCK_LOCK_TIMEOUT", "10"))
STORE_FILE = "inventory.json"
LOCK_FILE = ".inventory.lock"

_LOCK_POLL_INTERVAL = 0.02

COLLECTIONS = ("motorcycles", "containers", "customers", "sales")


def _empty_data() -> dict[str, Any]:
    data: dict[str, Any] = {"schema_version": SCHEMA_VERSION}
    for name in COLLECTIONS:
        data[name] = []
    return data


class StoreView:
    """Read-only queries over one consistent copy of the store."""

    def __init__(self, data: dict[str, Any]):
        self.data = data

    def _rows(self, collection: str) -> list[dict[str, Any]]:
        return self.data.setdefault(collection, [])

    def _index_of(self, collection: str, entity_id: str) -> int | None:
        for i, row in enumerate(self._rows(collection)):
            if row["id"] == entity_id:
                return i
        return None

    # Motorcycles

    def list_motorcycles(
        self,
        status: str | None = None,
        container_id: str | None = None,
    ) -> list[Motorcycle]:
        """List motorcycles, optionally filtered by status and/or container."""
        bikes = [Motorcycle.from_dict(row) for row in self._rows("motorcycles")]
        if status is not None:
            bikes = [b for b in bikes if b.status == status]
        if container_id is not None:
            bikes = [b for b in bikes if b.container_id == container_id]
        return bikes

    def get_motorcycle(self, motorcycle_id: str) -> Motorcycle:
        """
        Get a motorcycle by ID.

        Raises:
            MotorcycleNotFoundError: If no motorcycle has this ID.
        """
        idx = self._index_of("motorcycles", motorcycle_id)
        if idx is None:
            raise MotorcycleNotFoundError(motorcycle_id)
        return Motorcycle.from_dict(self._rows("motorcycles")[idx])

    def find_motorcycle_by_chassis(self, chassis: str) -> Motorcycle | None:
        """Find a motorcycle by exact chassis number, whatever its status."""
        for row in self._rows("motorcycles"):
            if row["chassis"] == chassis:
                return Motorcycle.from_dict(row)
        return None

    # Containers

    def list_containers(self) -> list[Container]:
        return [Container.from_dict(row) for row in self._rows("containers")]

    def get_container(self, container_id: str) -> Container:
        """
        Get a container by ID.

        Raises:
            ContainerNotFoundError: If no container has this ID.
        """
        idx = self._index_of("containers", container_id)
        if idx is None:
            raise ContainerNotFoundError(container_id)
        return Container.from_dict(self._rows("containers")[idx])

    # Customers

    def list_customers(self) -> list[Customer]:
        return [Customer.from_dict(row) for row in self._rows("customers")]

    def get_customer(self, customer_id: str) -> Customer:
        """
        Get a customer by ID.

        Raises:
            CustomerNotFoundError: If no customer has this ID.
        """
        idx = self._index_of("customers", customer_id)
        if idx is None:
            raise CustomerNotFoundError(customer_id)
        return Customer.from_dict(self._rows("customers")[idx])

    def find_customers_by_phone_or_nid(self, phone: str, nid: str) -> list[Customer]:
        """Customers whose phone equals ``phone`` or whose nid equals ``nid``, in insertion order."""
        return [
            Customer.from_dict(row)
            for row in self._rows("customers")
            if row.get("phone") == phone or row.get("nid") == nid
        ]

    # Sales

    def list_sales(self) -> list[Sale]:
        return [Sale.from_dict(row) for row in self._rows("sales")]

    def get_sale(self, sale_id: str) -> Sale:
        """
        Get a sale by ID.

        Raises:
            SaleNotFoundError: If no sale has this ID.
        """
        idx = self._index_of("sales", sale_id)
        if idx is None:
            raise SaleNotFoundError(sale_id)
        return Sale.from_dict(self._rows("sales")[idx])

    def find_sale_by_motorcycle(self, motorcycle_id: str) -> Sale | None:
        for row in self._rows("sales"):
            if row["motorcycle_id"] == motorcycle_id:
                return Sale.from_dict(row)
        return None


class Transaction(StoreView):
    """A unit of work against a private copy of the store.

    Writes only become visible when the enclosing
    :meth:`EntityStore.transaction` block exits without an exception.
    """

    # Motorcycles

    def insert_motorcycle(self, bike: Motorcycle) -> Motorcycle:
        """
        Insert a motorcycle and register it with its container.

        Raises:
            DuplicateChassisError: If the chassis number is already stored.
            UnknownContainerError: If ``bike.container_id`` doesn't exist.
        """
        if self.find_motorcycle_by_chassis(bike.chassis) is not None:
            raise DuplicateChassisError(bike.chassis)

        if bike.container_id is not None:
            idx = self._index_of("containers", bike.container_id)
            if idx is None:
                raise UnknownContainerError(bike.container_id)
            self._rows("containers")[idx]["bike_ids"].append(bike.id)

        self._rows("motorcycles").append(bike.to_dict())
        return bike

    def update_motorcycle(self, bike: Motorcycle) -> Motorcycle:
        """
        Replace a stored motorcycle.

        Raises:
            MotorcycleNotFoundError: If the motorcycle doesn't exist.
            InvalidInputError: If the chassis number was changed.
        """
        idx = self._index_of("motorcycles", bike.id)
        if idx is None:
            raise MotorcycleNotFoundError(bike.id)
        if self._rows("motorcycles")[idx]["chassis"] != bike.chassis:
            raise InvalidInputError("chassis", "chassis number cannot be changed")
        self._rows("motorcycles")[idx] = bike.to_dict()
        return bike

    def delete_motorcycle(self, motorcycle_id: str) -> Motorcycle:
        """
        Delete an unsold motorcycle and drop it from its container.

        Raises:
            MotorcycleNotFoundError: If the motorcycle doesn't exist.
            MotorcycleAlreadySoldError: If the motorcycle is sold.
        """
        idx = self._index_of("motorcycles", motorcycle_id)
        if idx is None:
            raise MotorcycleNotFoundError(motorcycle_id)

        bike = Motorcycle.from_dict(self._rows("motorcycles")[idx])
        if bike.status == STATUS_SOLD or self.find_sale_by_motorcycle(bike.id):
            raise MotorcycleAlreadySoldError(bike.chassis)

        self._rows("motorcycles").pop(idx)
        if bike.container_id is not None:
            c_idx = self._index_of("containers", bike.container_id)
            if c_idx is not None:
                bike_ids = self._rows("containers")[c_idx]["bike_ids"]
                if bike.id in bike_ids:
                    bike_ids.remove(bike.id)
        return bike

    # Containers

    def insert_container(self, container: Container) -> Container:
        self._rows("containers").append(container.to_dict())
        return container

    # Customers

    def insert_customer(self, customer: Customer) -> Customer:
        self._rows("customers").append(customer.to_dict())
        return customer

    def update_customer(self, customer: Customer) -> Customer:
        """
        Replace a stored customer.

        Raises:
            CustomerNotFoundError: If the customer doesn't exist.
            InvalidInputError: If name, phone or nid was changed.
        """
        idx = self._index_of("customers", customer.id)
        if idx is None:
            raise CustomerNotFoundError(customer.id)

        existing = self._rows("customers")[idx]
        for key in ("name", "phone", "nid"):
            if existing.get(key) != getattr(customer, key):
                raise InvalidInputError(key, "customer identity fields cannot be changed")

        self._rows("customers")[idx] = customer.to_dict()
        return customer

    # Sales

    def insert_sale(self, sale: Sale) -> Sale:
        """
        Insert a sale fact.

        Raises:
            ReferentialIntegrityError: If the motorcycle or customer doesn't exist.
            MotorcycleNotAvailableError: If the motorcycle already has a sale.
        """
        if self._index_of("motorcycles", sale.motorcycle_id) is None:
            raise ReferentialIntegrityError(
                f"Sale references missing motorcycle {sale.motorcycle_id}"
            )
        if self._index_of("customers", sale.customer_id) is None:
            raise ReferentialIntegrityError(
                f"Sale references missing customer {sale.customer_id}"
            )
        if self.find_sale_by_motorcycle(sale.motorcycle_id) is not None:
            bike = self.get_motorcycle(sale.motorcycle_id)
            raise MotorcycleNotAvailableError(bike.chassis)

        self._rows("sales").append(sale.to_dict())
        return sale


class EntityStore:
    """Manages the durable inventory document."""

    def __init__(self, data_dir: Path | None = None, lock_timeout: float | None = None):
        """
        Initialize EntityStore.

        Args:
            data_dir: Override data directory (for testing).
            lock_timeout: Seconds to wait for the write lock before giving up.
        """
        self.data_dir = Path(data_dir) if data_dir is not None else DATA_DIR
        self.store_path = self.data_dir / STORE_FILE
        self.lock_path = self.data_dir / LOCK_FILE
        self.lock_timeout = LOCK_TIMEOUT if lock_timeout is None else lock_timeout

    def _ensure_dir(self) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreUnavailableError(str(self.data_dir), str(e)) from e

    @contextmanager
    def _lock(self) -> Iterator[None]:
        """Acquire the exclusive store lock, polling until ``lock_timeout`` elapses."""
        self._ensure_dir()
        try:
            lock_file = open(self.lock_path, "w")
        except OSError as e:
            raise StoreUnavailableError(str(self.lock_path), str(e)) from e

        with lock_file:
            deadline = time.monotonic() + self.lock_timeout
            while True:
                try:
                    fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                    break
                except BlockingIOError:
                    if time.monotonic() >= deadline:
                        raise StoreUnavailableError(
                            str(self.store_path),
                            f"timed out after {self.lock_timeout}s waiting for lock",
                        )
                    time.sleep(_LOCK_POLL_INTERVAL)
            logger.debug("Acquired store lock %s", self.lock_path)
            try:
                yield
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)
                logger.debug("Released store lock %s", self.lock_path)

    def _load_data(self) -> dict[str, Any]:
        """Load the committed document from disk."""
        if not self.store_path.exists():
            return _empty_data()

        try:
            with open(self.store_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StoreUnavailableError(str(self.store_path), str(e)) from e

        if not isinstance(data, dict):
            raise StoreUnavailableError(str(self.store_path), "top level is not a JSON object")

        version = data.get("schema_version", 0)
        if version != SCHEMA_VERSION:
            raise InvalidSchemaVersionError(version, SCHEMA_VERSION)

        for name in COLLECTIONS:
            data.setdefault(name, [])
        return data

    def _save_data(self, data: dict[str, Any]) -> None:
        """Save the document to disk atomically."""
        self._ensure_dir()

        try:
            fd, temp_path = tempfile.mkstemp(
                dir=self.data_dir, prefix=".inventory_", suffix=".tmp"
            )
        except OSError as e:
            raise StoreUnavailableError(str(self.data_dir), str(e)) from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.write("\n")
            os.replace(temp_path, self.store_path)
        except Exception as e:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            if isinstance(e, OSError):
                raise StoreUnavailableError(str(self.store_path), str(e)) from e
            raise

    def exists(self) -> bool:
        """Check if anything has been committed yet."""
        return self.store_path.exists()

    def snapshot(self) -> StoreView:
        """Return a read-only view of the last committed state."""
        return StoreView(self._load_data())

    @contextmanager
    def transaction(self) -> Iterator[Transaction]:
        """
        Run a block as one atomic unit.

        The block sees the latest committed state and holds the store lock
        until it exits. Its writes are committed only if it exits normally;
        any exception discards them and propagates.

        Raises:
            StoreUnavailableError: If the lock can't be acquired in time or
                the store can't be read or written.
        """
        with self._lock():
            txn = Transaction(self._load_data())
            try:
                yield txn
            except Exception as e:
                logger.warning("Transaction rolled back: %s", e)
                raise
            self._save_data(txn.data)
            logger.debug("Transaction committed to %s", self.store_path)

    # Convenience reads against the latest committed state

    def list_motorcycles(
        self,
        status: str | None = None,
        container_id: str | None = None,
    ) -> list[Motorcycle]:
        return self.snapshot().list_motorcycles(status=status, container_id=container_id)

    def get_motorcycle(self, motorcycle_id: str) -> Motorcycle:
        return self.snapshot().get_motorcycle(motorcycle_id)

    def find_motorcycle_by_chassis(self, chassis: str) -> Motorcycle | None:
        return self.snapshot().find_motorcycle_by_chassis(chassis)

    def list_containers(self) -> list[Container]:
        return self.snapshot().list_containers()

    def get_container(self, container_id: str) -> Container:
        return self.snapshot().get_container(container_id)

    def list_customers(self) -> list[Customer]:
        return self.snapshot().list_customers()

    def get_customer(self, customer_id: str) -> Customer:
        return self.snapshot().get_customer(customer_id)

    def list_sales(self) -> list[Sale]:
        return self.snapshot().list_sales()

    def get_sale(self, sale_id: str) -> Sale:
        return self.snapshot().get_sale(sale_id)
