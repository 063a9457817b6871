"""Custom exceptions for bikestock."""


class BikestockError(Exception):
    """Base exception for all bikestock errors."""

    pass


# --- Store ---


class StoreUnavailableError(BikestockError):
    """Raised when the inventory store cannot be read, written or locked.

    Transient: nothing was committed, so the whole operation may be retried.
    """

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Inventory store unavailable at {path}: {reason}")


class InvalidSchemaVersionError(BikestockError):
    """Raised when the store file has an unsupported schema version."""

    def __init__(self, found: int, supported: int):
        self.found = found
        self.supported = supported
        super().__init__(
            f"Unsupported schema version {found}. This tool supports version {supported}."
        )


# --- Not found ---


class NotFoundError(BikestockError):
    """Base for lookups that matched nothing."""

    pass


class MotorcycleNotFoundError(NotFoundError):
    """Raised when no motorcycle matches a chassis number or ID."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Motorcycle not found: {key}")


class ContainerNotFoundError(NotFoundError):
    """Raised when a container ID doesn't exist."""

    def __init__(self, container_id: str):
        self.container_id = container_id
        super().__init__(f"Container not found: {container_id}")


class CustomerNotFoundError(NotFoundError):
    """Raised when a customer ID doesn't exist."""

    def __init__(self, customer_id: str):
        self.customer_id = customer_id
        super().__init__(f"Customer not found: {customer_id}")


class SaleNotFoundError(NotFoundError):
    """Raised when a sale ID doesn't exist."""

    def __init__(self, sale_id: str):
        self.sale_id = sale_id
        super().__init__(f"Sale not found: {sale_id}")


# --- Validation ---


class InvalidInputError(BikestockError):
    """Raised when submitted values are rejected before touching the store."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


# --- Referential integrity ---


class ReferentialIntegrityError(BikestockError):
    """Raised when a write references a row that doesn't exist."""

    pass


class UnknownContainerError(ReferentialIntegrityError):
    """Raised when motorcycles are written against a missing container."""

    def __init__(self, container_id: str):
        self.container_id = container_id
        super().__init__(f"Container does not exist: {container_id}")


# --- Conflicts ---


class ConflictError(BikestockError):
    """Base for operations refused because of the current entity state."""

    pass


class MotorcycleNotAvailableError(ConflictError):
    """Raised when a motorcycle is already sold at the time of a sale."""

    def __init__(self, chassis: str):
        self.chassis = chassis
        super().__init__(
            f"Motorcycle {chassis} is no longer available. Search stock again."
        )


class MotorcycleAlreadySoldError(ConflictError):
    """Raised when removing a motorcycle that has a sale on record."""

    def __init__(self, chassis: str):
        self.chassis = chassis
        super().__init__(f"Motorcycle {chassis} is sold and cannot be removed from stock")


class MotorcycleNotSoldError(ConflictError):
    """Raised when registering a motorcycle that hasn't been sold."""

    def __init__(self, chassis: str):
        self.chassis = chassis
        super().__init__(
            f"Motorcycle {chassis} is not sold; registration number can be set only after sale"
        )


class DuplicateChassisError(ConflictError):
    """Raised when a chassis number is already in stock."""

    def __init__(self, chassis: str):
        self.chassis = chassis
        super().__init__(f"Chassis number already exists: {chassis}")
