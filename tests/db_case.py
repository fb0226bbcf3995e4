"""Shared fixtures: a throw-away SQLite database per test."""

import tempfile
import threading
import time
import unittest
from pathlib import Path
from typing import Callable, List

from sqlalchemy import insert

from bike_charging.services.battery import BatteryService
from bike_charging.services.database import batteries, build_engine, init_db, stations


def wait_for(predicate: Callable[[], bool], timeout: float = 3.0, interval: float = 0.01) -> bool:
    """Poll until predicate() is true or the timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


def charging_threads(battery_id: str) -> List[threading.Thread]:
    return [t for t in threading.enumerate() if t.name == f"charge-{battery_id}"]


class DatabaseTestCase(unittest.TestCase):
    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.database_url = f"sqlite:///{Path(self._tmpdir.name) / 'test.db'}"
        self.engine = build_engine(self.database_url)
        init_db(self.engine)
        self.batteries = BatteryService(self.engine)

    def tearDown(self):
        self.engine.dispose()
        self._tmpdir.cleanup()

    def add_battery(self, battery_id: str, level: float = 50.0, is_charging: bool = False,
                    charging_speed: float = 0.5) -> None:
        with self.engine.begin() as conn:
            conn.execute(insert(batteries).values(
                id=battery_id, level=level, is_charging=is_charging, charging_speed=charging_speed,
            ))

    def add_station(self, station_id: int, name: str = "Central", battery_level: int = 80) -> None:
        with self.engine.begin() as conn:
            conn.execute(insert(stations).values(
                id=station_id, name=name, address="1 Main Street",
                latitude=48.1374, longitude=11.5755, battery_level=battery_level,
            ))

    def join_activity(self, battery_id: str, timeout: float = 2.0) -> None:
        for thread in charging_threads(battery_id):
            thread.join(timeout)
