"""Vision100 goal tracker application factory."""

from __future__ import annotations

from importlib import import_module
from typing import Iterable

from flask import Flask

from . import cli as _cli
from .config import BaseConfig, DevConfig, TestConfig
from .domain.repositories import StorageBackend
from .extensions import init_services
from .logging_config import setup_logging
from .services.advisor import AdvisoryGateway

_CONFIG_MAP = {
    "development": DevConfig,
    "testing": TestConfig,
    "default": BaseConfig,
}


def _resolve_config(name: str | None) -> type[BaseConfig]:
    """Return the config class for the provided environment name."""

    if not name:
        return BaseConfig
    return _CONFIG_MAP.get(name.lower(), BaseConfig)


def _blueprint_paths() -> Iterable[str]:
    # api first so the SPA catch-all never shadows it
    yield "vision100.blueprints.api"
    yield "vision100.blueprints.web"


def create_app(
    config_name: str | None = None,
    *,
    config: BaseConfig | None = None,
    store: StorageBackend | None = None,
    advisor: AdvisoryGateway | None = None,
) -> Flask:
    """Create and configure the Flask application instance.

    ``store`` and ``advisor`` may be injected (tests do); otherwise they are
    built from configuration.
    """

    app = Flask(__name__)
    config_obj = config or _resolve_config(config_name)()
    app.config.from_object(config_obj)
    app.config["VISION100_CONFIG"] = config_obj
    app.json.sort_keys = False

    setup_logging(config_obj)
    init_services(app, config_obj, store=store, advisor=advisor)
    _register_blueprints(app)
    _cli.init_app(app)
    return app


def _register_blueprints(app: Flask) -> None:
    """Import and register all blueprints declared in `_blueprint_paths`."""

    for dotted_path in _blueprint_paths():
        module = import_module(dotted_path)
        app.register_blueprint(getattr(module, "bp"))


__all__ = ["BaseConfig", "DevConfig", "TestConfig", "create_app"]
