from __future__ import annotations

import warnings
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Tuple, Type, TypeVar, Union

from marshmallow import ValidationError
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql import Executable
from sqlalchemy.sql.elements import TextClause
from sqlalchemy.sql.expression import TableClause

from ..alerts import Alert
from ..context import MapperContext
from ..errors import ModelDefinitionError, RowDecodeError, UnknownColumnError
from ..schemas import RecordSchema
from ..utils.logging_utils import get_logger, log_context
from ..utils.model_utils.statements import (
    _sanitize_payload,
    build_delete,
    build_insert,
    build_select,
    build_update,
    record_table,
)

RecordType = TypeVar("RecordType", bound="ActiveRecord")

_COLUMNS: Dict[type, Tuple[str, ...]] = {}
_SCHEMAS: Dict[type, RecordSchema] = {}
_TABLES: Dict[type, TableClause] = {}


def _coerce_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


class ActiveRecord:
    """
    Base class for models where one instance maps to one table row.

    Subclasses declare ``__tablename__`` and ``__schema__``, a
    :class:`RecordSchema` whose fields are the table's columns (primary key
    included). Every data-access call takes the :class:`MapperContext` that
    carries the engine and alert stores.

    Database errors are logged and reported as ``False``, ``None`` or an
    empty list; they are never raised to the caller.
    """

    __tablename__: ClassVar[str] = ""
    __schema__: ClassVar[Optional[Type[RecordSchema]]] = None
    __primary_key__: ClassVar[str] = "id"
    __created_at__: ClassVar[Optional[str]] = "created_at"
    __updated_at__: ClassVar[Optional[str]] = "updated_at"

    def __init__(self, **attributes: Any) -> None:
        pk = self.primary_key()
        setattr(self, pk, None)
        for column in self.columns():
            if column == pk:
                continue
            setattr(self, column, attributes.get(column))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.primary_key()}={self.key!r}>"

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    @classmethod
    def table_name(cls) -> str:
        if not cls.__tablename__:
            raise ModelDefinitionError(cls.__name__, "__tablename__ is not declared")
        return cls.__tablename__

    @classmethod
    def schema(cls) -> RecordSchema:
        schema = _SCHEMAS.get(cls)
        if schema is None:
            if cls.__schema__ is None:
                raise ModelDefinitionError(cls.__name__, "__schema__ is not declared")
            schema = cls.__schema__()
            _SCHEMAS[cls] = schema
        return schema

    @classmethod
    def columns(cls) -> Tuple[str, ...]:
        """Declared column names in schema order, primary key included."""

        columns = _COLUMNS.get(cls)
        if columns is None:
            columns = tuple(cls.schema().fields.keys())
            if cls.__primary_key__ not in columns:
                raise ModelDefinitionError(
                    cls.__name__, f"schema does not declare the primary key {cls.__primary_key__!r}"
                )
            _COLUMNS[cls] = columns
        return columns

    @classmethod
    def table_clause(cls) -> TableClause:
        source = _TABLES.get(cls)
        if source is None:
            source = record_table(cls.table_name(), cls.columns())
            _TABLES[cls] = source
        return source

    @classmethod
    def primary_key(cls) -> str:
        return cls.__primary_key__

    @classmethod
    def _declared(cls, column: Optional[str]) -> bool:
        return bool(column) and column in cls.columns()

    @classmethod
    def _check_column(cls, column: str) -> str:
        if column not in cls.columns():
            raise UnknownColumnError(cls.table_name(), column, cls.columns())
        return column

    @property
    def key(self) -> Any:
        return getattr(self, self.primary_key(), None)

    # ------------------------------------------------------------------
    # Marshaling
    # ------------------------------------------------------------------

    @classmethod
    def from_row(cls: Type[RecordType], row: Mapping[str, Any]) -> RecordType:
        """Decode one result row through the schema and build an instance."""

        try:
            data = cls.schema().load(dict(row))
        except ValidationError as exc:
            raise RowDecodeError(cls.table_name(), exc.messages) from exc

        instance = cls()
        for column in cls.columns():
            if column in data:
                setattr(instance, column, data[column])
        return instance

    def attributes(self) -> Dict[str, Any]:
        """Declared columns and their values, without the primary key."""

        pk = self.primary_key()
        return {column: getattr(self, column, None) for column in self.columns() if column != pk}

    def sync(self: RecordType, data: Optional[Mapping[str, Any]] = None) -> RecordType:
        """Copy declared, non-``None`` values from ``data`` (form input, payloads)."""

        for key, value in (data or {}).items():
            if key in self.columns() and value is not None:
                setattr(self, key, value)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return self.schema().dump(self)

    # ------------------------------------------------------------------
    # Connection & alerts
    # ------------------------------------------------------------------

    @classmethod
    def get_connection(cls, ctx: MapperContext) -> Engine:
        return ctx.connection

    @classmethod
    def add_alert(cls, ctx: MapperContext, kind: str, message: str, flash: bool = False) -> None:
        ctx.alerts.add(cls, kind, message, flash=flash)

    @classmethod
    def get_alerts(cls, ctx: MapperContext) -> Dict[str, List[str]]:
        return ctx.alerts.transient(cls)

    @classmethod
    def clear_alerts(cls, ctx: MapperContext) -> None:
        ctx.alerts.clear_transient(cls)

    @classmethod
    def get_flash_alerts(cls, ctx: MapperContext) -> List[Dict[str, Any]]:
        return ctx.alerts.flash()

    @classmethod
    def clear_flash_alerts(cls, ctx: MapperContext) -> None:
        ctx.alerts.clear_flash()

    @classmethod
    def get_all_alerts_and_clear(cls, ctx: MapperContext) -> List[Alert]:
        return ctx.alerts.drain(cls)

    def validate(self, ctx: MapperContext) -> Dict[str, List[str]]:
        """Hook for subclasses: reset this model's alerts, add new ones, return them."""

        type(self).clear_alerts(ctx)
        return type(self).get_alerts(ctx)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @classmethod
    def _fetch(cls: Type[RecordType], ctx: MapperContext, action: str, statement: Executable) -> List[RecordType]:
        logger = get_logger("mapper")
        engine = ctx.connection

        with log_context(model=cls.__name__, table=cls.table_name(), action=action):
            try:
                with engine.connect() as conn:
                    rows = conn.execute(statement).mappings().all()
            except SQLAlchemyError:
                logger.exception("Query failed for %s action=%s", cls.__name__, action)
                return []

            records = [cls.from_row(row) for row in rows]
            logger.debug("Fetched %s action=%s count=%s", cls.__name__, action, len(records))
            return records

    @classmethod
    def raw_query(
        cls: Type[RecordType],
        ctx: MapperContext,
        sql: Union[str, Executable],
        params: Optional[Mapping[str, Any]] = None,
    ) -> List[RecordType]:
        """Run a complete SELECT and map its rows. Escaping inside ``sql`` is the caller's job."""

        statement = text(sql) if isinstance(sql, str) else sql
        if params:
            if isinstance(statement, TextClause):
                statement = statement.bindparams(**params)
            else:
                statement = statement.params(**params)
        return cls._fetch(ctx, "raw_query", statement)

    @classmethod
    def sql(cls: Type[RecordType], ctx: MapperContext, query: Union[str, Executable]) -> List[RecordType]:
        return cls.raw_query(ctx, query)

    @classmethod
    def all(cls: Type[RecordType], ctx: MapperContext) -> List[RecordType]:
        return cls._fetch(ctx, "all", build_select(cls.table_clause()))

    @classmethod
    def find(cls: Type[RecordType], ctx: MapperContext, id: Any) -> Optional[RecordType]:
        pk_value = _coerce_int(id)
        if pk_value is None:
            get_logger("mapper").warning("find on %s skipped: id %r is not an integer", cls.__name__, id)
            return None

        statement = build_select(cls.table_clause(), equals=(cls.primary_key(), pk_value), limit=1)
        found = cls._fetch(ctx, "find", statement)
        return found[0] if found else None

    @classmethod
    def get(cls: Type[RecordType], ctx: MapperContext, limit: Any) -> List[RecordType]:
        row_limit = max(_coerce_int(limit, 0), 0)
        return cls._fetch(ctx, "get", build_select(cls.table_clause(), limit=row_limit))

    @classmethod
    def find_by(cls: Type[RecordType], ctx: MapperContext, column: str, value: Any) -> Optional[RecordType]:
        statement = build_select(cls.table_clause(), equals=(cls._check_column(column), value), limit=1)
        found = cls._fetch(ctx, "find_by", statement)
        return found[0] if found else None

    @classmethod
    def where(cls: Type[RecordType], ctx: MapperContext, column: str, value: Any) -> Optional[RecordType]:
        warnings.warn(
            f"{cls.__name__}.where() is deprecated; use find_by() or where_all()",
            DeprecationWarning,
            stacklevel=2,
        )
        return cls.find_by(ctx, column, value)

    @classmethod
    def where_all(cls: Type[RecordType], ctx: MapperContext, column: str, value: Any) -> List[RecordType]:
        statement = build_select(cls.table_clause(), equals=(cls._check_column(column), value))
        return cls._fetch(ctx, "where_all", statement)

    @classmethod
    def where_like_multiple(
        cls: Type[RecordType],
        ctx: MapperContext,
        fields_to_values: Mapping[str, Any],
    ) -> List[RecordType]:
        """Rows where any listed column contains its value as a substring.

        ``%`` and ``_`` match literally. A ``None`` value matches every
        non-null value of its column.
        """

        like_any = {cls._check_column(column): value for column, value in fields_to_values.items()}
        if not like_any:
            return []
        return cls._fetch(ctx, "where_like_multiple", build_select(cls.table_clause(), like_any=like_any))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save(self, ctx: MapperContext) -> bool:
        """Insert when the primary key is unset, update otherwise."""

        if self.key is None:
            return self.create(ctx)
        return self.update(ctx)

    def create(self, ctx: MapperContext) -> bool:
        cls = type(self)
        logger = get_logger("mapper")
        values = {column: value for column, value in self.attributes().items() if value is not None}

        with log_context(model=cls.__name__, table=cls.table_name(), action="create"):
            if not values:
                logger.warning("Create skipped for %s: no attributes to insert", cls.__name__)
                return False

            engine = ctx.connection
            returning = bool(getattr(engine.dialect, "insert_returning", False))
            sanitized = _sanitize_payload(values)
            try:
                statement = build_insert(cls.table_clause(), values, self.primary_key(), returning=returning)
                with engine.begin() as conn:
                    result = conn.execute(statement)
                    new_id = result.scalar_one() if returning else result.lastrowid
            except SQLAlchemyError:
                logger.exception("Failed to create %s attributes=%s", cls.__name__, sanitized)
                return False

            setattr(self, self.primary_key(), new_id)
            logger.info("Created %s id=%s attributes=%s", cls.__name__, new_id, sanitized)
            return True

    def update(self, ctx: MapperContext) -> bool:
        cls = type(self)
        logger = get_logger("mapper")
        pk_value = _coerce_int(self.key)

        with log_context(model=cls.__name__, table=cls.table_name(), action="update"):
            if pk_value is None:
                logger.warning("Update skipped for %s: id %r is not an integer", cls.__name__, self.key)
                return False

            if cls._declared(cls.__updated_at__):
                # Stored and read back as naive UTC.
                setattr(self, cls.__updated_at__, datetime.now(timezone.utc).replace(tzinfo=None))

            values = {
                column: value
                for column, value in self.attributes().items()
                if column != cls.__created_at__
            }
            if not values:
                logger.warning("Update skipped for %s id=%s: no columns to set", cls.__name__, pk_value)
                return False

            engine = ctx.connection
            sanitized = _sanitize_payload(values)
            try:
                statement = build_update(cls.table_clause(), values, self.primary_key(), pk_value)
                with engine.begin() as conn:
                    matched = conn.execute(statement).rowcount
            except SQLAlchemyError:
                logger.exception("Failed to update %s id=%s attributes=%s", cls.__name__, pk_value, sanitized)
                return False

            if not matched:
                logger.warning("Update matched no row for %s id=%s", cls.__name__, pk_value)
                return False

            logger.info("Updated %s id=%s attributes=%s", cls.__name__, pk_value, sanitized)
            return True

    def delete(self, ctx: MapperContext) -> bool:
        cls = type(self)
        logger = get_logger("mapper")
        pk_value = _coerce_int(self.key)

        with log_context(model=cls.__name__, table=cls.table_name(), action="delete"):
            if pk_value is None:
                logger.warning("Delete skipped for %s: id %r is not an integer", cls.__name__, self.key)
                return False

            engine = ctx.connection
            try:
                with engine.begin() as conn:
                    removed = conn.execute(
                        build_delete(cls.table_clause(), self.primary_key(), pk_value)
                    ).rowcount
            except SQLAlchemyError:
                logger.exception("Failed to delete %s id=%s", cls.__name__, pk_value)
                return False

            if not removed:
                logger.warning("Delete matched no row for %s id=%s", cls.__name__, pk_value)
                return False

            setattr(self, self.primary_key(), None)
            logger.info("Deleted %s id=%s", cls.__name__, pk_value)
            return True
