"""bikestock - motorcycle dealership inventory and sales."""

__version__ = "0.1.0"
