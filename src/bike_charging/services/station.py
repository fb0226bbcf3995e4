"""
Station Service
===============

Read-only access to the charging station catalogue.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .database import stations
from .errors import StoreUnavailableError
from .models import ChargingStation

logger = logging.getLogger(__name__)


class StationService:
    def __init__(self, engine: Engine):
        self.engine = engine

    def list_stations(self) -> List[ChargingStation]:
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(select(stations).order_by(stations.c.id)).mappings().all()
        except SQLAlchemyError as e:
            logger.warning(f"Station query failed: {e}")
            raise StoreUnavailableError(str(e)) from e
        return [ChargingStation(**row) for row in rows]

    def get_station(self, station_id: int) -> Optional[ChargingStation]:
        """Station by id, or None if unknown."""
        try:
            with self.engine.connect() as conn:
                row = conn.execute(
                    select(stations).where(stations.c.id == station_id)
                ).mappings().first()
        except SQLAlchemyError as e:
            logger.warning(f"Station query failed: {e}")
            raise StoreUnavailableError(str(e)) from e
        return None if row is None else ChargingStation(**row)
