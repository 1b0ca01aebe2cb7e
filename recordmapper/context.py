"""Explicit context passed to every data-access call.

A ``MapperContext`` carries what a model needs at call time: the shared
database engine, the session store used for flash alerts, and the transient
alert buffers of each model class. Nothing is kept on the model classes
themselves.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.engine import Engine

from .alerts import AlertBook, SessionStore
from .errors import ConnectionNotConfiguredError
from .utils.logging_utils import get_logger


class MapperContext:
    def __init__(
        self,
        connection: Optional[Engine] = None,
        session: Optional[SessionStore] = None,
        *,
        flash_key: str = "alerts",
    ) -> None:
        self._connection = connection
        self.alerts = AlertBook(session, flash_key=flash_key)

    def set_connection(self, connection: Engine) -> None:
        """Store the shared engine, replacing any previous one.

        Not synchronized: configure once at startup before requests are served.
        """

        replaced = self._connection is not None
        self._connection = connection
        get_logger("mapper").info(
            "connection %s dialect=%s",
            "replaced" if replaced else "configured",
            connection.dialect.name,
        )

    @property
    def connection(self) -> Engine:
        if self._connection is None:
            raise ConnectionNotConfiguredError()
        return self._connection

    @property
    def has_connection(self) -> bool:
        return self._connection is not None

    @property
    def session(self) -> Optional[SessionStore]:
        return self.alerts.session

    def set_session(self, session: Optional[SessionStore]) -> None:
        self.alerts.session = session
