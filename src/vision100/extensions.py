"""Service wiring for the Flask application.

The storage backend, credential store, goal facade and advisory gateway are
built once per process and handed to request handlers through
``app.extensions`` rather than module globals.
"""

from __future__ import annotations

import atexit
import weakref
from dataclasses import dataclass

from flask import Flask, current_app

from .config import BaseConfig
from .domain.repositories import StorageBackend
from .infra.repositories import build_store
from .services.advisor import AdvisoryGateway
from .services.auth import CredentialStore
from .services.goals import GoalService

EXTENSION_KEY = "vision100"

_open_stores: weakref.WeakSet[StorageBackend] = weakref.WeakSet()


@atexit.register
def _close_open_stores() -> None:
    for store in list(_open_stores):
        _open_stores.discard(store)
        store.close()


@dataclass(slots=True)
class AppServices:
    """Everything a request handler needs, constructed at startup."""

    config: BaseConfig
    store: StorageBackend
    credentials: CredentialStore
    goals: GoalService
    advisor: AdvisoryGateway


def build_advisor(config: BaseConfig) -> AdvisoryGateway:
    return AdvisoryGateway(
        config.ADVISOR_API_KEY,
        model=config.ADVISOR_MODEL,
        base_url=config.ADVISOR_BASE_URL,
        timeout=config.ADVISOR_TIMEOUT,
    )


def init_services(
    app: Flask,
    config: BaseConfig,
    *,
    store: StorageBackend | None = None,
    advisor: AdvisoryGateway | None = None,
) -> AppServices:
    """Construct services, create the schema, and attach them to ``app``."""

    store = store or build_store(config)
    store.init_schema()
    services = AppServices(
        config=config,
        store=store,
        credentials=CredentialStore(store),
        goals=GoalService(store, max_goals=config.MAX_GOALS_PER_USER),
        advisor=advisor or build_advisor(config),
    )
    app.extensions[EXTENSION_KEY] = services
    _open_stores.add(store)
    return services


def get_services() -> AppServices:
    """Return the services bound to the current application."""

    services = current_app.extensions.get(EXTENSION_KEY)
    if services is None:  # pragma: no cover - misconfigured app
        raise RuntimeError("Application services not initialized")
    return services
