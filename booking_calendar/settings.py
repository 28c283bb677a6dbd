"""Environment-driven configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from .resources import ResourceRegistry
from .store import InMemoryReservationStore, ReservationStore
from .yaml_store import ReservationYamlRepository

STORE_BACKENDS = ("yaml", "memory")


@dataclass(frozen=True)
class Settings:
    data_dir: Path = Path("data")
    store_backend: str = "yaml"
    resources_file: Path | None = None
    holiday_country: str = "KR"
    log_level: str = "INFO"
    log_file: Path | None = None
    host: str = "127.0.0.1"
    port: int = 5000


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ

    store_backend = env.get("BOOKING_STORE", "yaml").strip().lower()
    if store_backend not in STORE_BACKENDS:
        raise ValueError(f"BOOKING_STORE must be one of {', '.join(STORE_BACKENDS)}: {store_backend!r}")

    raw_port = env.get("BOOKING_PORT", "5000").strip()
    try:
        port = int(raw_port)
    except ValueError as error:
        raise ValueError(f"BOOKING_PORT must be an integer: {raw_port!r}") from error
    if not 0 < port < 65536:
        raise ValueError(f"BOOKING_PORT out of range: {port}")

    resources_file = env.get("BOOKING_RESOURCES_FILE", "").strip()
    log_file = env.get("BOOKING_LOG_FILE", "").strip()

    return Settings(
        data_dir=Path(env.get("BOOKING_DATA_DIR", "data").strip() or "data"),
        store_backend=store_backend,
        resources_file=Path(resources_file) if resources_file else None,
        holiday_country=env.get("BOOKING_HOLIDAY_COUNTRY", "KR").strip().upper() or "KR",
        log_level=env.get("BOOKING_LOG_LEVEL", "INFO").strip().upper() or "INFO",
        log_file=Path(log_file) if log_file else None,
        host=env.get("BOOKING_HOST", "127.0.0.1").strip() or "127.0.0.1",
        port=port,
    )


def build_registry(settings: Settings) -> ResourceRegistry:
    if settings.resources_file is not None:
        return ResourceRegistry.from_yaml(settings.resources_file)
    return ResourceRegistry()


def build_store(settings: Settings, registry: ResourceRegistry | None = None) -> ReservationStore:
    registry = registry or build_registry(settings)
    if settings.store_backend == "memory":
        return InMemoryReservationStore(registry)
    return ReservationYamlRepository(settings.data_dir, registry=registry)
