"""Active-record data access over SQLAlchemy engines.

    from recordmapper import ActiveRecord, MapperContext, RecordSchema
    from marshmallow import fields

    class UserSchema(RecordSchema):
        name = fields.String(allow_none=True)
        email = fields.String(allow_none=True)

    class User(ActiveRecord):
        __tablename__ = "users"
        __schema__ = UserSchema

    ctx = MapperContext(engine)
    user = User(name="Ada", email="ada@x.io")
    user.save(ctx)
"""

from .alerts import Alert, AlertBook, FlaskSessionStore, MemorySessionStore, SessionStore
from .context import MapperContext
from .errors import (
    ConnectionNotConfiguredError,
    ModelDefinitionError,
    RecordMapperError,
    RowDecodeError,
    SessionNotConfiguredError,
    UnknownColumnError,
)
from .models import ActiveRecord
from .schemas import RecordSchema, Timestamp

__all__ = [
    "ActiveRecord",
    "Alert",
    "AlertBook",
    "ConnectionNotConfiguredError",
    "FlaskSessionStore",
    "MapperContext",
    "MemorySessionStore",
    "ModelDefinitionError",
    "RecordMapperError",
    "RecordSchema",
    "RowDecodeError",
    "SessionNotConfiguredError",
    "SessionStore",
    "Timestamp",
    "UnknownColumnError",
]
