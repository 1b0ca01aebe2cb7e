"""Flask extension instances.

``db`` owns the engine (pooling, URI, engine options from app config);
``mapper`` hands each request a :class:`MapperContext` bound to that engine
and to the Flask session. Both are initialized in ``create_app()``.
"""

from flask import current_app, g, has_request_context
from flask_sqlalchemy import SQLAlchemy

from .alerts import FlaskSessionStore
from .context import MapperContext
from .errors import ConnectionNotConfiguredError
from .utils.logging_utils import get_logger

db = SQLAlchemy()


class RecordMapper:
    def __init__(self, app=None):
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        app.config.setdefault("RECORD_MAPPER_SESSION_KEY", "alerts")
        app.extensions["record_mapper"] = self

    def context(self) -> MapperContext:
        """Return the context of the current request, creating it on first use."""

        if not has_request_context():
            raise ConnectionNotConfiguredError("no active request; build a MapperContext explicitly")

        ctx = g.get("record_mapper_context")
        if ctx is None:
            ctx = MapperContext(
                db.engine,
                FlaskSessionStore(),
                flash_key=current_app.config["RECORD_MAPPER_SESSION_KEY"],
            )
            g.record_mapper_context = ctx
            get_logger("mapper").debug("request context created dialect=%s", db.engine.dialect.name)
        return ctx


mapper = RecordMapper()
