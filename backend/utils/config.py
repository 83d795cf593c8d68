"""Environment-driven runtime settings."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class SimulatedDoctor:
    name: str
    start_time: str
    end_time: str
    slot_duration_minutes: int
    max_patients_per_slot: int


def _default_simulation_doctors() -> tuple[SimulatedDoctor, ...]:
    return (
        SimulatedDoctor("Dr. A - General Physician", "09:00", "11:00", 15, 4),
        SimulatedDoctor("Dr. B - Orthopedics", "09:00", "11:00", 15, 3),
        SimulatedDoctor("Dr. C - Pediatrics", "10:00", "12:00", 15, 4),
    )


@dataclass(frozen=True)
class Settings:
    app_name: str = "OPD Token Allocation Engine"
    app_version: str = "1.0.0"
    log_level: str = "INFO"
    database_path: Path = PROJECT_ROOT / "data" / "opd.db"
    persistence_enabled: bool = True
    time_of_day_regex: str = r"^([01]\d|2[0-3]):[0-5]\d$"
    simulation_default_doctors: tuple[SimulatedDoctor, ...] = field(
        default_factory=_default_simulation_doctors
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings once; tests override with ``dataclasses.replace``."""
    database_path = os.getenv("OPD_DATABASE_PATH")
    return Settings(
        app_name=os.getenv("APP_NAME", Settings.app_name),
        app_version=os.getenv("APP_VERSION", Settings.app_version),
        log_level=os.getenv("LOG_LEVEL", Settings.log_level),
        database_path=Path(database_path) if database_path else Settings.database_path,
        persistence_enabled=_env_bool("OPD_PERSISTENCE_ENABLED", True),
    )
