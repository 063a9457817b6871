"""Stock, container and customer maintenance for bikestock.

Everything that writes to the store except the sale itself.
"""

import logging

from .entity_store import EntityStore
from .errors import (
    ContainerNotFoundError,
    InvalidInputError,
    MotorcycleNotAvailableError,
    MotorcycleNotFoundError,
    MotorcycleNotSoldError,
    UnknownContainerError,
)
from .models import STATUS_SOLD, Container, Customer, Motorcycle
from .utils import BikeRow, normalize_chassis, parse_price

logger = logging.getLogger(__name__)


class InventoryService:
    """Container imports and stock upkeep against an :class:`EntityStore`."""

    def __init__(self, store: EntityStore):
        self.store = store

    # --- Containers ---

    def create_container(
        self,
        name: str,
        exporter_name: str,
        import_date: str | None = None,
    ) -> Container:
        """
        Register a new, empty import shipment.

        Raises:
            InvalidInputError: If name or exporter name is blank.
        """
        name = (name or "").strip()
        exporter_name = (exporter_name or "").strip()
        if not name:
            raise InvalidInputError("name", "container name is required")
        if not exporter_name:
            raise InvalidInputError("exporter_name", "exporter name is required")

        container = Container.create(name, exporter_name, import_date or None)
        with self.store.transaction() as txn:
            txn.insert_container(container)

        logger.info("Created container %s (%s)", container.id, container.name)
        return container

    def import_bikes(self, container_id: str, rows: list[BikeRow]) -> list[Motorcycle]:
        """
        Add a batch of motorcycles to a container's stock.

        Each bike takes the container's exporter unless its row names one.
        The batch is all-or-nothing.

        Raises:
            InvalidInputError: If the batch is empty or a row is invalid.
            UnknownContainerError: If the container doesn't exist.
            DuplicateChassisError: If a chassis is already stored or repeated.
        """
        if not rows:
            raise InvalidInputError("rows", "no valid bikes found in input")

        with self.store.transaction() as txn:
            try:
                container = txn.get_container(container_id)
            except ContainerNotFoundError:
                raise UnknownContainerError(container_id) from None

            bikes = []
            for row in rows:
                model, engine, color = (
                    (row.model or "").strip(),
                    (row.engine or "").strip(),
                    (row.color or "").strip(),
                )
                for field, value in (("model", model), ("engine", engine), ("color", color)):
                    if not value:
                        raise InvalidInputError(field, f"{field} is required for chassis {row.chassis!r}")

                bike = Motorcycle.create(
                    model=model,
                    chassis=normalize_chassis(row.chassis),
                    engine=engine,
                    color=color,
                    buying_price=(
                        parse_price(row.buying_price, field="buying_price", allow_zero=True)
                        if row.buying_price is not None
                        else None
                    ),
                    exporter_name=row.exporter_name or container.exporter_name,
                    container_id=container.id,
                )
                bikes.append(txn.insert_motorcycle(bike))

        logger.info("Imported %d motorcycles into container %s", len(bikes), container.name)
        return bikes

    # --- Stock ---

    def add_motorcycle(
        self,
        model: str,
        chassis: str,
        engine: str,
        color: str,
        buying_price: float | None = None,
        exporter_name: str | None = None,
        container_id: str | None = None,
    ) -> Motorcycle:
        """
        Add a single motorcycle to stock.

        Raises:
            InvalidInputError: If a required field is blank or the price is invalid.
            UnknownContainerError: If ``container_id`` doesn't exist.
            DuplicateChassisError: If the chassis is already stored.
        """
        model = (model or "").strip()
        if not model:
            raise InvalidInputError("model", "model is required")

        bike = Motorcycle.create(
            model=model,
            chassis=normalize_chassis(chassis),
            engine=(engine or "").strip(),
            color=(color or "").strip(),
            buying_price=(
                parse_price(buying_price, field="buying_price", allow_zero=True)
                if buying_price is not None
                else None
            ),
            exporter_name=exporter_name or None,
            container_id=container_id or None,
        )

        with self.store.transaction() as txn:
            if bike.container_id is not None and bike.exporter_name is None:
                try:
                    bike.exporter_name = txn.get_container(bike.container_id).exporter_name
                except ContainerNotFoundError:
                    raise UnknownContainerError(bike.container_id) from None
            txn.insert_motorcycle(bike)

        logger.info("Added motorcycle %s (%s) to stock", bike.chassis, bike.model)
        return bike

    def find_available_by_chassis(self, chassis: str) -> Motorcycle:
        """
        Look up an in-stock motorcycle for the sale form.

        Raises:
            MotorcycleNotFoundError: If no motorcycle has this chassis.
            MotorcycleNotAvailableError: If it has already been sold.
        """
        chassis = normalize_chassis(chassis)
        bike = self.store.find_motorcycle_by_chassis(chassis)
        if bike is None:
            raise MotorcycleNotFoundError(chassis)
        if not bike.is_available:
            raise MotorcycleNotAvailableError(chassis)
        return bike

    def remove_motorcycle(self, motorcycle_id: str) -> Motorcycle:
        """
        Remove an unsold motorcycle from stock.

        Raises:
            MotorcycleNotFoundError: If the motorcycle doesn't exist.
            MotorcycleAlreadySoldError: If it has been sold.
        """
        with self.store.transaction() as txn:
            bike = txn.delete_motorcycle(motorcycle_id)

        logger.info("Removed motorcycle %s from stock", bike.chassis)
        return bike

    def set_registration_number(self, motorcycle_id: str, registration_number: str) -> Motorcycle:
        """
        Record the registration number of a sold motorcycle.

        Raises:
            InvalidInputError: If the registration number is blank.
            MotorcycleNotFoundError: If the motorcycle doesn't exist.
            MotorcycleNotSoldError: If it hasn't been sold.
        """
        registration_number = (registration_number or "").strip()
        if not registration_number:
            raise InvalidInputError("registration_number", "registration number is required")

        with self.store.transaction() as txn:
            bike = txn.get_motorcycle(motorcycle_id)
            if bike.status != STATUS_SOLD:
                raise MotorcycleNotSoldError(bike.chassis)
            bike.registration_number = registration_number
            txn.update_motorcycle(bike)

        return bike

    # --- Customers ---

    def update_customer_notes(self, customer_id: str, notes: str) -> Customer:
        """
        Replace a customer's free-text notes.

        Raises:
            CustomerNotFoundError: If the customer doesn't exist.
        """
        with self.store.transaction() as txn:
            customer = txn.get_customer(customer_id)
            customer.notes = notes or ""
            txn.update_customer(customer)

        return customer
