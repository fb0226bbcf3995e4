"""
Config module for the Bike Charging Service
"""

from .charging_config import (
    CHARGING_DEFAULTS,
    ChargingConfig,
    RecoveryPolicy,
    get_charging_config,
    get_config_summary,
    get_recovery_policy,
)

__all__ = [
    "CHARGING_DEFAULTS",
    "ChargingConfig",
    "RecoveryPolicy",
    "get_charging_config",
    "get_config_summary",
    "get_recovery_policy",
]
