"""Customer resolution for bikestock.

Phone and nid are alternate keys to the same person: a submission matching an
existing customer on either one resolves to that customer, and the stored
record stays authoritative over whatever else was submitted.
"""

import logging

from .entity_store import StoreView, Transaction
from .models import Customer, CustomerFields

logger = logging.getLogger(__name__)


class CustomerResolver:
    """Maps submitted identity fields to one canonical customer."""

    def resolve(self, view: StoreView, phone: str, nid: str) -> str | None:
        """
        Find the customer owning ``phone`` or ``nid``.

        Returns:
            The matching customer's ID, or None if nobody matches.
        """
        matches = view.find_customers_by_phone_or_nid(phone, nid)
        if not matches:
            return None

        if len(matches) > 1:
            logger.warning(
                "phone %s / nid %s match %d customers (%s); using the earliest",
                phone,
                nid,
                len(matches),
                ", ".join(c.id for c in matches),
            )
        return matches[0].id

    def resolve_or_create(
        self, txn: Transaction, fields: CustomerFields
    ) -> tuple[Customer, bool]:
        """
        Resolve a customer inside ``txn``, inserting one if nobody matches.

        Returns:
            Tuple of (customer, created).
        """
        customer_id = self.resolve(txn, fields.phone, fields.nid)
        if customer_id is not None:
            return txn.get_customer(customer_id), False

        customer = Customer.create(fields)
        txn.insert_customer(customer)
        logger.info("Created customer %s (%s)", customer.id, customer.name)
        return customer, True
