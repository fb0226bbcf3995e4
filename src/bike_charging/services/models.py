"""
Pydantic Data Models for the HTTP API
=====================================

Models:
    ChargeOutcome    Result of a start/stop charge request
    Battery          Stored battery row
    BatteryCreate    POST /battery body
    BatteryUpdate    PUT /battery/{id} body
    ChargingStation  Stored charging station row
    MessageResponse  {"message": ...} body of the charge endpoints
"""

from pydantic import BaseModel, Field, ConfigDict
from enum import Enum


class ChargeOutcome(str, Enum):
    """Outcomes of ChargeController.start / ChargeController.stop."""
    STARTED = "started"
    ALREADY_CHARGING = "already_charging"
    STOPPED = "stopped"
    NOT_CHARGING = "not_charging"
    NOT_FOUND = "not_found"
    TRANSIENT_FAILURE = "transient_failure"


class Battery(BaseModel):
    """Battery as stored. Values are reported as-is, without range checks."""
    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "BBP_1",
                "level": 50.0,
                "is_charging": False,
                "charging_speed": 0.5,
            }
        }
    )

    id: str
    level: float
    is_charging: bool
    charging_speed: float


class BatteryCreate(BaseModel):
    """New battery. charging_speed must be positive so charging always progresses."""
    id: str = Field(..., min_length=1, max_length=50, examples=["BBP_1"])
    level: float = Field(default=0.0, description="Charge level (%), checked against the configured range")
    is_charging: bool = Field(default=False)
    charging_speed: float = Field(..., gt=0, description="Percent gained per tick")


class BatteryUpdate(BaseModel):
    """Full replacement of a battery's mutable fields."""
    level: float = Field(..., description="Charge level (%), checked against the configured range")
    is_charging: bool
    charging_speed: float = Field(..., gt=0, description="Percent gained per tick")


class ChargingStation(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    address: str
    latitude: float
    longitude: float
    battery_level: int


class MessageResponse(BaseModel):
    message: str
