"""Alert bookkeeping for models.

Two stores are kept. Transient alerts live in memory, one buffer per model
class, for the current request. Flash alerts are written to an injected
session store so they survive into the next request; the consumer clears
them explicitly, usually through :meth:`AlertBook.drain`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Hashable, List, Optional, Protocol

from .errors import SessionNotConfiguredError
from .utils.logging_utils import get_logger


@dataclass(frozen=True)
class Alert:
    kind: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"type": self.kind, "message": self.message}


class SessionStore(Protocol):
    """Key-value store scoped to one client session."""

    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class MemorySessionStore:
    """Dict-backed session store, for scripts and tests."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self.data: Dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class FlaskSessionStore:
    """Adapter over ``flask.session`` (or any mapping-like session object)."""

    def __init__(self, session=None) -> None:
        self._session = session

    @property
    def session(self):
        if self._session is not None:
            return self._session
        from flask import session

        return session

    def get(self, key: str, default: Any = None) -> Any:
        return self.session.get(key, default)

    def set(self, key: str, value: Any) -> None:
        # Assign a fresh object so the cookie session notices the change.
        self.session[key] = list(value) if isinstance(value, list) else value

    def delete(self, key: str) -> None:
        self.session.pop(key, None)


class AlertBook:
    """Transient per-owner alert buffers plus the flash slot of a session."""

    def __init__(self, session: Optional[SessionStore] = None, *, flash_key: str = "alerts") -> None:
        self.session = session
        self.flash_key = flash_key
        self._transient: Dict[Hashable, Dict[str, List[str]]] = {}

    def _require_session(self) -> SessionStore:
        if self.session is None:
            raise SessionNotConfiguredError()
        return self.session

    def add(self, owner: Hashable, kind: str, message: str, *, flash: bool = False) -> None:
        logger = get_logger("alerts")
        if flash:
            store = self._require_session()
            current = store.get(self.flash_key)
            if not isinstance(current, list):
                current = []
            store.set(self.flash_key, current + [{"type": kind, "message": message}])
            logger.debug("flash alert added kind=%s owner=%s", kind, _owner_name(owner))
            return

        self._transient.setdefault(owner, {}).setdefault(kind, []).append(message)
        logger.debug("alert added kind=%s owner=%s", kind, _owner_name(owner))

    def transient(self, owner: Hashable) -> Dict[str, List[str]]:
        return {kind: list(messages) for kind, messages in self._transient.get(owner, {}).items()}

    def clear_transient(self, owner: Hashable) -> None:
        self._transient.pop(owner, None)

    def flash(self) -> List[Dict[str, Any]]:
        if self.session is None:
            return []
        current = self.session.get(self.flash_key)
        return list(current) if isinstance(current, list) else []

    def clear_flash(self) -> None:
        if self.session is not None:
            self.session.delete(self.flash_key)

    def drain(self, owner: Hashable) -> List[Alert]:
        """Return flash alerts then the owner's transient alerts, clearing both."""

        flashed = self.flash()
        self.clear_flash()
        memory = self._transient.pop(owner, {})

        out: List[Alert] = []
        for entry in flashed:
            if isinstance(entry, dict) and "type" in entry and "message" in entry:
                out.append(Alert(entry["type"], entry["message"]))

        for kind, messages in memory.items():
            for message in messages:
                out.append(Alert(kind, message))

        get_logger("alerts").debug(
            "drained alerts owner=%s flash=%s transient=%s",
            _owner_name(owner),
            len(flashed),
            sum(len(messages) for messages in memory.values()),
        )
        return out


def _owner_name(owner: Hashable) -> str:
    return getattr(owner, "__name__", str(owner))
