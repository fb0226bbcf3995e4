import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from . import env_config as config
from .utils.config_loader import ConfigLoader
from .config.charging_config import (
    ChargingConfig,
    RecoveryPolicy,
    get_charging_config,
    get_config_summary,
    get_recovery_policy,
)
from .services.battery import BatteryService
from .services.charging import ChargeController
from .services.database import build_engine, init_db
from .services.errors import BatteryExistsError, BatteryNotFoundError, StoreUnavailableError
from .services.models import (
    Battery,
    BatteryCreate,
    BatteryUpdate,
    ChargeOutcome,
    ChargingStation,
    MessageResponse,
)
from .services.station import StationService

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Dependencies
# ============================================================================

def get_battery_service(request: Request) -> BatteryService:
    return request.app.state.battery_service

def get_station_service(request: Request) -> StationService:
    return request.app.state.station_service

def get_controller(request: Request) -> ChargeController:
    return request.app.state.charge_controller

def get_settings(request: Request) -> ChargingConfig:
    return request.app.state.charging_config


def _check_level(level: float, settings: ChargingConfig) -> None:
    if not (settings.floor <= level <= settings.full_mark):
        raise HTTPException(
            status_code=422,
            detail=f"level must be in [{settings.floor}, {settings.full_mark}]",
        )


# ============================================================================
# Health & Root
# ============================================================================

@router.get("/")
def read_root():
    return {"message": "Welcome to the Bike Charging API"}

@router.get("/health")
def health_check():
    return {"status": "ok"}


# ============================================================================
# Battery Endpoints
# ============================================================================

@router.get("/batteries", response_model=List[Battery], tags=["Batteries"])
def list_batteries(batteries: BatteryService = Depends(get_battery_service)):
    """List every battery of the fleet."""
    try:
        return batteries.list_batteries()
    except StoreUnavailableError:
        raise HTTPException(status_code=500, detail="Error reading batteries.")

@router.get("/battery/{battery_id}", response_model=Battery, tags=["Batteries"])
def get_battery(battery_id: str, batteries: BatteryService = Depends(get_battery_service)):
    try:
        return batteries.get_battery(battery_id)
    except BatteryNotFoundError:
        raise HTTPException(status_code=404, detail="battery not found")
    except StoreUnavailableError:
        raise HTTPException(status_code=500, detail="Error reading battery.")

@router.post("/battery", response_model=Battery, status_code=201, tags=["Batteries"])
def create_battery(
    battery: BatteryCreate,
    batteries: BatteryService = Depends(get_battery_service),
    settings: ChargingConfig = Depends(get_settings),
):
    """Register a new battery."""
    _check_level(battery.level, settings)
    try:
        return batteries.create_battery(battery)
    except BatteryExistsError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StoreUnavailableError:
        raise HTTPException(status_code=500, detail="Error inserting battery.")

@router.put("/battery/{battery_id}", response_model=Battery, tags=["Batteries"])
def update_battery(
    battery_id: str,
    changes: BatteryUpdate,
    batteries: BatteryService = Depends(get_battery_service),
    settings: ChargingConfig = Depends(get_settings),
):
    """
    Overwrite a battery's level, charging flag and charging speed.

    Writing is_charging directly bypasses the charge endpoints; a running
    activity picks up the new level on its next tick.
    """
    _check_level(changes.level, settings)
    try:
        return batteries.update_battery(battery_id, changes)
    except BatteryNotFoundError:
        raise HTTPException(status_code=404, detail="battery not found")
    except StoreUnavailableError:
        raise HTTPException(status_code=500, detail="Error updating battery.")

@router.delete("/battery/{battery_id}", response_model=Battery, tags=["Batteries"])
def remove_battery(battery_id: str, batteries: BatteryService = Depends(get_battery_service)):
    try:
        return batteries.delete_battery(battery_id)
    except BatteryNotFoundError:
        raise HTTPException(status_code=404, detail="battery not found")
    except StoreUnavailableError:
        raise HTTPException(status_code=500, detail="Error deleting battery.")


# ============================================================================
# Charge Control Endpoints
# ============================================================================

START_RESPONSES = {
    ChargeOutcome.STARTED: (201, "Charging started."),
    ChargeOutcome.ALREADY_CHARGING: (200, "Charging already in progress."),
    ChargeOutcome.NOT_FOUND: (404, "battery not found"),
    ChargeOutcome.TRANSIENT_FAILURE: (500, "Error starting charging."),
}

STOP_RESPONSES = {
    ChargeOutcome.STOPPED: (200, "Charging stopped."),
    ChargeOutcome.NOT_CHARGING: (200, "Bike is not currently charging."),
    ChargeOutcome.NOT_FOUND: (404, "battery not found"),
    ChargeOutcome.TRANSIENT_FAILURE: (500, "Error stopping charging."),
}


@router.post("/charge/{battery_id}", response_model=MessageResponse, tags=["Charging"])
def start_charging(battery_id: str, controller: ChargeController = Depends(get_controller)):
    """Put a battery in charging mode. Returns as soon as the activity is spawned."""
    status_code, message = START_RESPONSES[controller.start(battery_id)]
    return JSONResponse(status_code=status_code, content={"message": message})

@router.delete("/charge/{battery_id}", response_model=MessageResponse, tags=["Charging"])
def stop_charging(battery_id: str, controller: ChargeController = Depends(get_controller)):
    """Stop charging a battery. The activity exits within one tick."""
    status_code, message = STOP_RESPONSES[controller.stop(battery_id)]
    return JSONResponse(status_code=status_code, content={"message": message})


# ============================================================================
# Charging Station Endpoints
# ============================================================================

@router.get("/charging-stations", response_model=List[ChargingStation], tags=["Stations"])
def list_charging_stations(stations: StationService = Depends(get_station_service)):
    try:
        return stations.list_stations()
    except StoreUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.get("/charging-stations/{station_id}", response_model=ChargingStation, tags=["Stations"])
def get_charging_station(station_id: str, stations: StationService = Depends(get_station_service)):
    try:
        station_pk = int(station_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid ID")

    try:
        station = stations.get_station(station_pk)
    except StoreUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))
    if station is None:
        raise HTTPException(status_code=404, detail="Charging station not found")
    return station


# ============================================================================
# Application
# ============================================================================

def create_app(
    database_url: Optional[str] = None,
    charging_config: Optional[ChargingConfig] = None,
    recovery: Optional[RecoveryPolicy] = None,
) -> FastAPI:
    """
    Build the API application.

    Args:
        database_url: SQLAlchemy URL (defaults to DATABASE_URL from the environment)
        charging_config: Charging loop parameters (defaults to Config.yml)
        recovery: What to do with batteries left charging by a previous process
    """
    if config.CHARGING_CONFIG_PATH:
        ConfigLoader.set_config_path(config.CHARGING_CONFIG_PATH)
    settings = charging_config or get_charging_config()
    policy = recovery or get_recovery_policy()
    engine = build_engine(database_url or config.DATABASE_URL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_db(engine)
        battery_service = BatteryService(engine)
        controller = ChargeController(battery_service, settings)
        app.state.battery_service = battery_service
        app.state.station_service = StationService(engine)
        app.state.charge_controller = controller
        app.state.charging_config = settings

        if policy is RecoveryPolicy.RESUME:
            controller.resume_all()
        else:
            cleared = battery_service.clear_all_charging()
            if cleared:
                logger.info(f"Cleared stale charging flag on {cleared} batteries")

        logger.info(f"Charging config: {get_config_summary(settings)}")
        yield
        engine.dispose()

    app = FastAPI(
        title="Bike Charging API",
        description="Bike battery fleet, charging stations and background charging control",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app
