"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from typing import Callable

from ordercore.domain.repository.unit_of_work import UnitOfWork
from ordercore.infrastructure.logging import configure_logging
from ordercore.infrastructure.persistence.json_store import JsonFileBackend
from ordercore.infrastructure.persistence.unit_of_work import StoreUnitOfWork
from ordercore.infrastructure.settings import Settings


def load_settings() -> Settings:
    settings = Settings()
    configure_logging(settings.log_level, json=settings.log_json)
    return settings


def store_backend(settings: Settings) -> JsonFileBackend:
    return JsonFileBackend(settings.data_dir, lock_timeout=settings.lock_timeout_seconds)


def uow_factory(settings: Settings) -> Callable[[], UnitOfWork]:
    backend = store_backend(settings)
    return lambda: StoreUnitOfWork(backend)
