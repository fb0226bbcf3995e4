"""
Charging Configuration
======================

Static parameters of the charging loop, with the YAML file
(config/Config.yml) layered on top of the built-in defaults.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, model_validator

from ..utils.config_loader import ConfigLoader


# ==============================================================================
# Defaults
# ==============================================================================

CHARGING_DEFAULTS = {
    "tick_interval_seconds": 1.0,   # one increment per second
    "full_mark": 100.0,             # %
    "floor": 0.0,                   # %
    "clamp_to_full": True,
}


class RecoveryPolicy(str, Enum):
    """What to do at startup with rows still flagged is_charging."""
    CLEAR = "clear"
    RESUME = "resume"


class ChargingConfig(BaseModel):
    """Validated charging loop parameters."""
    tick_interval_seconds: float = Field(default=1.0, gt=0, description="Seconds between two ticks")
    full_mark: float = Field(default=100.0, description="Level at which charging terminates")
    floor: float = Field(default=0.0, description="Lowest valid level")
    clamp_to_full: bool = Field(default=True, description="Cap the last increment at full_mark")

    @model_validator(mode='after')
    def floor_below_full_mark(self) -> 'ChargingConfig':
        if self.floor >= self.full_mark:
            raise ValueError('floor must be lower than full_mark')
        return self


# ==============================================================================
# Helpers
# ==============================================================================

def get_charging_config(overrides: Optional[Dict[str, Any]] = None) -> ChargingConfig:
    """
    Build the charging configuration.

    Args:
        overrides: Values taking precedence over Config.yml and the defaults

    Returns:
        ChargingConfig instance
    """
    values = dict(CHARGING_DEFAULTS)
    values.update(ConfigLoader.get_charging_config())
    if overrides:
        values.update(overrides)
    return ChargingConfig(**values)


def get_recovery_policy() -> RecoveryPolicy:
    """Startup recovery policy from Config.yml (defaults to clear)."""
    return RecoveryPolicy(ConfigLoader.get_startup_config().get("recovery", RecoveryPolicy.CLEAR.value))


def get_config_summary(config: Optional[ChargingConfig] = None) -> str:
    """Human readable summary, logged at startup."""
    cfg = config or get_charging_config()
    return (
        f"tick={cfg.tick_interval_seconds}s, "
        f"range={cfg.floor}-{cfg.full_mark}%, "
        f"clamp_to_full={cfg.clamp_to_full}"
    )
