"""
Exceptions raised by the storage services.
"""


class BikeChargingError(Exception):
    """Base class for service errors."""


class StoreUnavailableError(BikeChargingError):
    """A statement against the store failed (connection, lock, missing table...)."""


class BatteryExistsError(BikeChargingError, ValueError):
    """A battery with this id is already stored."""

    def __init__(self, battery_id: str):
        super().__init__(f"Battery '{battery_id}' already exists")
        self.battery_id = battery_id


class BatteryNotFoundError(BikeChargingError, LookupError):
    """No battery with this id is stored."""

    def __init__(self, battery_id: str):
        super().__init__(f"Battery '{battery_id}' not found")
        self.battery_id = battery_id
