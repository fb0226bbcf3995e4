"""
Charging Service
================

Background charging of bike batteries.

ChargeController
    Start/stop requests. The `is_charging` column is the lock: a start only
    spawns an activity when its conditional update flipped the flag from
    false to true, so at most one activity runs per battery.

ChargingActivity
    One thread per charging battery. Each tick reads the level, stops when
    the battery is full, otherwise increments the level with an update
    guarded by `is_charging = true`, then sleeps until the next tick or until
    a stop wakes it. Clearing the flag (stop, row deletion) makes the next
    tick miss and the thread exits.

Activities hold no state of their own and never raise: any store failure
ends the activity, and a new start request picks up from the stored row.
"""

import logging
import threading
import time
from enum import Enum
from typing import Callable, Dict, List, NamedTuple, Optional

from ..config.charging_config import ChargingConfig
from .battery import BatteryService
from .errors import StoreUnavailableError
from .models import ChargeOutcome

logger = logging.getLogger(__name__)


class ActivityExit(str, Enum):
    """Why a charging activity terminated."""
    COMPLETED = "completed"          # level reached the full mark
    PERMIT_LOST = "permit_lost"      # is_charging cleared by a stop
    ROW_GONE = "row_gone"            # battery deleted
    STORE_FAILURE = "store_failure"  # statement failed


class ChargingActivity:
    """Periodically advances one battery's level while it holds the permit."""

    def __init__(
        self,
        battery_id: str,
        batteries: BatteryService,
        config: ChargingConfig,
        sleep: Callable[[float], object] = time.sleep,
        stopped: Optional[threading.Event] = None,
    ):
        self.battery_id = battery_id
        self.batteries = batteries
        self.config = config
        self.stopped = stopped
        self._sleep = sleep

    def tick(self) -> Optional[ActivityExit]:
        """
        Run one read-update cycle.

        Returns:
            None if the activity should keep going, otherwise the exit reason.
        """
        if self.stopped is not None and self.stopped.is_set():
            return ActivityExit.PERMIT_LOST
        try:
            level = self.batteries.get_level(self.battery_id)
            if level is None:
                return ActivityExit.ROW_GONE

            if level >= self.config.full_mark:
                self.batteries.clear_charging(self.battery_id)
                return ActivityExit.COMPLETED

            cap = self.config.full_mark if self.config.clamp_to_full else None
            if not self.batteries.increment_level(self.battery_id, full_mark=cap):
                return ActivityExit.PERMIT_LOST
        except StoreUnavailableError:
            return ActivityExit.STORE_FAILURE
        return None

    def run(self) -> ActivityExit:
        """Tick until the activity terminates."""
        while True:
            reason = self.tick()
            if reason is not None:
                if reason is ActivityExit.COMPLETED:
                    logger.info(f"Battery {self.battery_id} fully charged")
                else:
                    logger.debug(f"Charging of {self.battery_id} ended: {reason.value}")
                return reason
            self._sleep(self.config.tick_interval_seconds)


class _RunningActivity(NamedTuple):
    thread: threading.Thread
    stopped: threading.Event


class ChargeController:
    """
    Start/stop arbitration for charging activities.

    The store's conditional updates decide who may charge. The controller
    also remembers the thread it spawned per battery, so that a stop wakes
    the sleeping thread and a restart waits for the previous thread to exit
    before spawning a new one. A permit taken while an old thread sleeps
    would otherwise be honoured by both threads.
    """

    def __init__(self, batteries: BatteryService, config: ChargingConfig):
        self.batteries = batteries
        self.config = config
        self._running: Dict[str, _RunningActivity] = {}
        self._lock = threading.Lock()
        self._spawn_lock = threading.Lock()

    def start(self, battery_id: str) -> ChargeOutcome:
        """
        Take the permit for a battery and spawn its activity.

        Returns:
            STARTED, ALREADY_CHARGING, NOT_FOUND or TRANSIENT_FAILURE
        """
        try:
            if self.batteries.acquire_permit(battery_id):
                try:
                    self._spawn(battery_id)
                except RuntimeError as e:
                    logger.error(f"Could not spawn charging thread for {battery_id}: {e}")
                    self.batteries.release_permit(battery_id)
                    return ChargeOutcome.TRANSIENT_FAILURE
                logger.info(f"Charging started for {battery_id}")
                return ChargeOutcome.STARTED
            # Nothing updated: either no such row or someone else holds the permit.
            is_charging = self.batteries.get_is_charging(battery_id)
        except StoreUnavailableError:
            return ChargeOutcome.TRANSIENT_FAILURE

        if is_charging is None:
            return ChargeOutcome.NOT_FOUND
        return ChargeOutcome.ALREADY_CHARGING

    def stop(self, battery_id: str) -> ChargeOutcome:
        """
        Drop the permit and wake the running activity so it exits now.

        Returns:
            STOPPED, NOT_CHARGING, NOT_FOUND or TRANSIENT_FAILURE
        """
        try:
            if self.batteries.release_permit(battery_id):
                self._signal_stop(battery_id)
                logger.info(f"Charging stopped for {battery_id}")
                return ChargeOutcome.STOPPED
            is_charging = self.batteries.get_is_charging(battery_id)
        except StoreUnavailableError:
            return ChargeOutcome.TRANSIENT_FAILURE

        if is_charging is None:
            return ChargeOutcome.NOT_FOUND
        return ChargeOutcome.NOT_CHARGING

    def resume_all(self) -> List[str]:
        """
        Spawn an activity for every battery still flagged as charging.

        Meant for startup, before any request is served.
        """
        battery_ids = self.batteries.list_charging_ids()
        for battery_id in battery_ids:
            self._spawn(battery_id)
        if battery_ids:
            logger.info(f"Resumed charging for {len(battery_ids)} batteries")
        return battery_ids

    def _signal_stop(self, battery_id: str) -> Optional[threading.Thread]:
        with self._lock:
            running = self._running.get(battery_id)
        if running is None:
            return None
        running.stopped.set()
        return running.thread

    def _spawn(self, battery_id: str) -> threading.Thread:
        with self._spawn_lock:
            # The permit is ours now; a thread left from an earlier permit must exit first.
            previous = self._signal_stop(battery_id)
            if previous is not None:
                previous.join()

            stopped = threading.Event()
            activity = ChargingActivity(
                battery_id, self.batteries, self.config, sleep=stopped.wait, stopped=stopped,
            )
            thread = threading.Thread(
                target=self._run_activity, args=(activity,), name=f"charge-{battery_id}", daemon=True,
            )
            with self._lock:
                self._running[battery_id] = _RunningActivity(thread, stopped)
            try:
                thread.start()
            except RuntimeError:
                with self._lock:
                    del self._running[battery_id]
                raise
            return thread

    def _run_activity(self, activity: ChargingActivity) -> None:
        try:
            activity.run()
        finally:
            with self._lock:
                running = self._running.get(activity.battery_id)
                if running is not None and running.stopped is activity.stopped:
                    del self._running[activity.battery_id]
