"""Pytest fixtures for bikestock tests."""

import tempfile
from pathlib import Path

import pytest

from bikestock.entity_store import EntityStore
from bikestock.inventory import InventoryService
from bikestock.models import CustomerFields
from bikestock.sales import SaleCoordinator
from bikestock.utils import BikeRow


@pytest.fixture
def temp_dir():
    """Create a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def store(temp_dir):
    """An empty store in a temporary data directory."""
    return EntityStore(temp_dir / "data", lock_timeout=5)


@pytest.fixture
def inventory(store):
    return InventoryService(store)


@pytest.fixture
def coordinator(store):
    return SaleCoordinator(store)


@pytest.fixture
def lot(inventory):
    """Container "Lot-1" with three bikes; CHAS003 has no buying price."""
    container = inventory.create_container("Lot-1", "Osaka Motors", "2024-02-01T00:00:00Z")
    inventory.import_bikes(
        container.id,
        [
            BikeRow("Suzuki Gixxer", "CHAS001", "ENG001", "Red", 400000),
            BikeRow("Yamaha FZ", "CHAS002", "ENG002", "Blue", 350000),
            BikeRow("Honda CB", "CHAS003", "ENG003", "Black"),
        ],
    )
    return inventory.store.get_container(container.id)


@pytest.fixture
def make_fields():
    """Factory for customer particulars with sensible defaults."""

    def _make(**overrides) -> CustomerFields:
        values = {
            "name": "Rahim Uddin",
            "phone": "01711111111",
            "nid": "N1",
            "father_name": "Karim Uddin",
            "mother_name": "Amena Begum",
            "dob": "1990-05-17",
            "address": "Mirpur, Dhaka",
        }
        values.update(overrides)
        return CustomerFields(**values)

    return _make
