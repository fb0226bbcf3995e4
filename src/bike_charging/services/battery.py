"""
Battery Service
===============

All reads and writes of the `batteries` table.

Besides plain CRUD, this module provides the row-level primitives the
charging loop relies on. Each of them is a single statement whose
"affected rows" count tells the caller whether it won:

- acquire_permit   is_charging false -> true
- release_permit   is_charging true -> false
- increment_level  level += charging_speed, only while is_charging is true
"""

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from sqlalchemy import case, select, update, delete, insert
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .database import batteries
from .errors import BatteryExistsError, BatteryNotFoundError, StoreUnavailableError
from .models import Battery, BatteryCreate, BatteryUpdate

logger = logging.getLogger(__name__)


class BatteryService:
    """Store access for bike batteries."""

    def __init__(self, engine: Engine):
        self.engine = engine

    @contextmanager
    def _transaction(self) -> Iterator[Connection]:
        try:
            with self.engine.begin() as conn:
                yield conn
        except SQLAlchemyError as e:
            logger.warning(f"Battery store statement failed: {e}")
            raise StoreUnavailableError(str(e)) from e

    # ==========================================================================
    # CRUD
    # ==========================================================================

    def list_batteries(self) -> List[Battery]:
        with self._transaction() as conn:
            rows = conn.execute(select(batteries).order_by(batteries.c.id)).mappings().all()
        return [Battery(**row) for row in rows]

    def get_battery(self, battery_id: str) -> Battery:
        """
        Fetch one battery.

        Raises:
            BatteryNotFoundError: If no row has this id.
        """
        with self._transaction() as conn:
            row = conn.execute(
                select(batteries).where(batteries.c.id == battery_id)
            ).mappings().first()
        if row is None:
            raise BatteryNotFoundError(battery_id)
        return Battery(**row)

    def create_battery(self, battery: BatteryCreate) -> Battery:
        """
        Insert a new battery.

        Raises:
            BatteryExistsError: If the id is already taken.
        """
        values = battery.model_dump()
        with self._transaction() as conn:
            try:
                conn.execute(insert(batteries).values(**values))
            except IntegrityError as e:
                raise BatteryExistsError(battery.id) from e
        logger.info(f"Battery {battery.id} created")
        return Battery(**values)

    def update_battery(self, battery_id: str, changes: BatteryUpdate) -> Battery:
        """
        Overwrite level, is_charging and charging_speed of a battery.

        Raises:
            BatteryNotFoundError: If no row has this id.
        """
        values = changes.model_dump()
        with self._transaction() as conn:
            result = conn.execute(
                update(batteries).where(batteries.c.id == battery_id).values(**values)
            )
        if result.rowcount == 0:
            raise BatteryNotFoundError(battery_id)
        return Battery(id=battery_id, **values)

    def delete_battery(self, battery_id: str) -> Battery:
        """
        Remove a battery and return the deleted row.

        Raises:
            BatteryNotFoundError: If no row has this id.
        """
        with self._transaction() as conn:
            row = conn.execute(
                select(batteries).where(batteries.c.id == battery_id)
            ).mappings().first()
            if row is None:
                raise BatteryNotFoundError(battery_id)
            conn.execute(delete(batteries).where(batteries.c.id == battery_id))
        logger.info(f"Battery {battery_id} deleted")
        return Battery(**row)

    # ==========================================================================
    # Charging primitives
    # ==========================================================================

    def get_level(self, battery_id: str) -> Optional[float]:
        """Current level, or None if the row is gone."""
        with self._transaction() as conn:
            return conn.execute(
                select(batteries.c.level).where(batteries.c.id == battery_id)
            ).scalar_one_or_none()

    def get_is_charging(self, battery_id: str) -> Optional[bool]:
        """Current permit flag, or None if the row is gone."""
        with self._transaction() as conn:
            value = conn.execute(
                select(batteries.c.is_charging).where(batteries.c.id == battery_id)
            ).scalar_one_or_none()
        return None if value is None else bool(value)

    def acquire_permit(self, battery_id: str) -> bool:
        """SET is_charging = true WHERE id = ? AND is_charging = false"""
        with self._transaction() as conn:
            result = conn.execute(
                update(batteries)
                .where(batteries.c.id == battery_id, batteries.c.is_charging.is_(False))
                .values(is_charging=True)
            )
        return result.rowcount == 1

    def release_permit(self, battery_id: str) -> bool:
        """SET is_charging = false WHERE id = ? AND is_charging = true"""
        with self._transaction() as conn:
            result = conn.execute(
                update(batteries)
                .where(batteries.c.id == battery_id, batteries.c.is_charging.is_(True))
                .values(is_charging=False)
            )
        return result.rowcount == 1

    def clear_charging(self, battery_id: str) -> None:
        """Unconditionally drop the permit (used once the battery is full)."""
        with self._transaction() as conn:
            conn.execute(
                update(batteries).where(batteries.c.id == battery_id).values(is_charging=False)
            )

    def increment_level(self, battery_id: str, full_mark: Optional[float] = None) -> bool:
        """
        Add charging_speed to level while the permit is held.

        Args:
            battery_id: Battery to charge
            full_mark: If given, the new level is capped at this value

        Returns:
            False if no row was updated (permit lost or row deleted).
        """
        new_level = batteries.c.level + batteries.c.charging_speed
        if full_mark is not None:
            new_level = case((new_level > full_mark, full_mark), else_=new_level)
        with self._transaction() as conn:
            result = conn.execute(
                update(batteries)
                .where(batteries.c.id == battery_id, batteries.c.is_charging.is_(True))
                .values(level=new_level)
            )
        return result.rowcount == 1

    def list_charging_ids(self) -> List[str]:
        with self._transaction() as conn:
            return list(conn.execute(
                select(batteries.c.id).where(batteries.c.is_charging.is_(True)).order_by(batteries.c.id)
            ).scalars())

    def clear_all_charging(self) -> int:
        """Drop every permit. Returns the number of rows that were charging."""
        with self._transaction() as conn:
            result = conn.execute(
                update(batteries).where(batteries.c.is_charging.is_(True)).values(is_charging=False)
            )
        return result.rowcount
