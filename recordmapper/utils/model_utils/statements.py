from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Delete,
    Float,
    Insert,
    Integer,
    Select,
    String,
    Update,
    column,
    delete,
    insert,
    literal,
    or_,
    select,
    table,
    update,
)
from sqlalchemy.sql.expression import TableClause
from sqlalchemy.types import TypeEngine

_SENSITIVE_TOKENS = ("password", "secret", "token", "otp", "key", "passcode", "credential")

# Compiled only by dialects that understand it (MySQL, MariaDB); ignored elsewhere.
_SINGLE_ROW = {"mysql_limit": 1, "mariadb_limit": 1}


def _serialize_value(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def _sanitize_payload(data: Mapping[str, Any]) -> Dict[str, Any]:
    sanitized: Dict[str, Any] = {}
    for key, value in data.items():
        lower = key.lower()
        if any(token in lower for token in _SENSITIVE_TOKENS):
            sanitized[key] = "***REDACTED***"
        else:
            sanitized[key] = _serialize_value(value)
    return sanitized


def bind_type(value: Any) -> TypeEngine:
    """Pick the SQL type a value is bound with: whole numbers as integers, the rest as text."""

    if isinstance(value, bool):
        return Boolean()
    if isinstance(value, int):
        return Integer()
    if isinstance(value, float):
        return Float()
    if isinstance(value, datetime):
        return DateTime()
    if isinstance(value, date):
        return Date()
    return String()


def _typed(value: Any):
    return literal(value, type_=bind_type(value))


def record_table(name: str, columns: Iterable[str]) -> TableClause:
    """Lightweight table construct; the dialect quotes the names it needs to."""

    return table(name, *(column(column_name) for column_name in columns))


def build_select(
    source: TableClause,
    *,
    equals: Optional[Tuple[str, Any]] = None,
    like_any: Optional[Mapping[str, Any]] = None,
    limit: Optional[int] = None,
) -> Select:
    """SELECT with an optional equality predicate, OR-ed substring predicates and a row limit."""

    statement = select(source)

    if equals is not None:
        name, value = equals
        target = source.c[name]
        statement = statement.where(target.is_(None) if value is None else target == _typed(value))
    elif like_any:
        # None searches for the empty string, so it matches every non-null value.
        statement = statement.where(
            or_(
                *(
                    source.c[name].contains("" if value is None else str(value), autoescape=True)
                    for name, value in like_any.items()
                )
            )
        )

    if limit is not None:
        statement = statement.limit(int(limit))
    return statement


def build_insert(
    source: TableClause,
    values: Mapping[str, Any],
    primary_key: str,
    *,
    returning: bool = False,
) -> Insert:
    statement = insert(source).values({source.c[name]: _typed(value) for name, value in values.items()})
    if returning:
        statement = statement.returning(source.c[primary_key])
    return statement


def build_update(
    source: TableClause,
    values: Mapping[str, Any],
    primary_key: str,
    key_value: int,
) -> Update:
    return (
        update(source)
        .where(source.c[primary_key] == _typed(int(key_value)))
        .values({source.c[name]: _typed(value) for name, value in values.items()})
        .with_dialect_options(**_SINGLE_ROW)
    )


def build_delete(source: TableClause, primary_key: str, key_value: int) -> Delete:
    return (
        delete(source)
        .where(source.c[primary_key] == _typed(int(key_value)))
        .with_dialect_options(**_SINGLE_ROW)
    )
