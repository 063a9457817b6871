"""Sale transactions for bikestock.

:class:`SaleCoordinator` is the only code path that turns a motorcycle into a
sold one. Every entry point (API, CLI) goes through :meth:`submit_sale`.
"""

import logging

from .entity_store import EntityStore
from .errors import MotorcycleNotAvailableError, MotorcycleNotFoundError
from .models import STATUS_SOLD, CustomerFields, Sale, SaleRecord
from .resolver import CustomerResolver
from .utils import (
    clean_customer_fields,
    normalize_chassis,
    parse_price,
    validate_registration_duration,
)

logger = logging.getLogger(__name__)


class SaleCoordinator:
    """Records sales atomically against an :class:`EntityStore`."""

    def __init__(self, store: EntityStore, resolver: CustomerResolver | None = None):
        self.store = store
        self.resolver = resolver or CustomerResolver()

    def submit_sale(
        self,
        chassis: str,
        customer_fields: CustomerFields,
        sale_price: float,
        registration_duration: str,
    ) -> SaleRecord:
        """
        Sell the available motorcycle with ``chassis`` to the described customer.

        In one transaction: resolve or create the customer, append the bike
        to their purchases, mark the bike sold and insert the sale. Either
        all of it commits or none of it does.

        Args:
            chassis: Chassis number of the motorcycle being sold.
            customer_fields: Buyer particulars; an existing customer with the
                same phone or nid is reused unchanged.
            sale_price: Positive sale price.
            registration_duration: "2 years" or "10 years".

        Returns:
            The committed SaleRecord.

        Raises:
            InvalidInputError: If any submitted value is invalid.
            MotorcycleNotFoundError: If no motorcycle has this chassis.
            MotorcycleNotAvailableError: If the motorcycle is already sold,
                including by a concurrent sale.
            StoreUnavailableError: If the store failed; safe to retry.
        """
        chassis = normalize_chassis(chassis)
        price = parse_price(sale_price)
        duration = validate_registration_duration(registration_duration)
        fields = clean_customer_fields(customer_fields)

        # Unknown chassis fails here, before any lock is taken
        bike = self.store.find_motorcycle_by_chassis(chassis)
        if bike is None:
            raise MotorcycleNotFoundError(chassis)
        if not bike.is_available:
            raise MotorcycleNotAvailableError(chassis)

        with self.store.transaction() as txn:
            # Re-check under the lock; a concurrent sale may have committed since
            bike = txn.find_motorcycle_by_chassis(chassis)
            if bike is None:
                raise MotorcycleNotFoundError(chassis)
            if not bike.is_available:
                raise MotorcycleNotAvailableError(chassis)

            customer, created = self.resolver.resolve_or_create(txn, fields)

            if bike.id not in customer.purchased_bike_ids:
                customer.purchased_bike_ids.append(bike.id)
            txn.update_customer(customer)

            bike.status = STATUS_SOLD
            txn.update_motorcycle(bike)

            sale = Sale.create(
                motorcycle_id=bike.id,
                customer_id=customer.id,
                sale_price=price,
                registration_duration=duration,
            )
            txn.insert_sale(sale)

        logger.info(
            "Sold %s (%s) to customer %s for %s, registration %s",
            bike.chassis,
            bike.model,
            customer.id,
            price,
            duration,
        )
        return SaleRecord(
            sale=sale,
            customer=customer,
            motorcycle=bike,
            customer_created=created,
        )
