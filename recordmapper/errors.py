"""Exceptions raised by recordmapper for configuration and programming errors.

Database failures are not represented here: the mapper logs them and hands
the caller a failure value instead.
"""

from typing import Iterable, Optional


class RecordMapperError(Exception):
    """Base exception for all recordmapper errors."""

    pass


class ConnectionNotConfiguredError(RecordMapperError):
    """Raised when a data-access call runs before a connection was set."""

    def __init__(self, detail: Optional[str] = None):
        msg = "No database connection configured. Call MapperContext.set_connection() first."
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)


class ModelDefinitionError(RecordMapperError):
    """Raised when a model class is missing its table or schema declarations."""

    def __init__(self, model_name: str, reason: str):
        self.model_name = model_name
        self.reason = reason
        super().__init__(f"Model {model_name} is not usable: {reason}")


class UnknownColumnError(RecordMapperError, ValueError):
    """Raised when a query helper names a column the model does not declare."""

    def __init__(self, table: str, column: str, declared: Iterable[str]):
        self.table = table
        self.column = column
        self.declared = list(declared)
        super().__init__(
            f"Column {column!r} is not declared on {table}; expected one of {', '.join(self.declared)}"
        )


class RowDecodeError(RecordMapperError):
    """Raised when a result row does not satisfy the model schema."""

    def __init__(self, table: str, messages):
        self.table = table
        self.messages = messages
        super().__init__(f"Row from {table} failed schema validation: {messages}")


class SessionNotConfiguredError(RecordMapperError):
    """Raised when a flash alert is used on a context without a session store."""

    def __init__(self):
        super().__init__("Flash alerts need a session store; pass session= to MapperContext.")
