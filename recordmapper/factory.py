import os

from flask import Flask

from .config import Config, config
from .extensions import db, mapper
from .utils.logging_utils import get_logger, init_logger


def create_app(config_name=None):
    """Build a host Flask app with the database and record mapper wired in."""
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'default')

    config_class = config.get(config_name, Config)

    app = Flask("recordmapper")
    app.config.from_object(config_class)
    config_class.init_app(app)

    init_logger(app)
    get_logger("app").info("Application startup with config %s", config_class.__name__)

    db.init_app(app)
    mapper.init_app(app)

    return app
