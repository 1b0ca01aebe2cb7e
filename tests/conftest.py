import os
import tempfile

import pytest

# Category loggers write files; keep them out of the default /tmp location.
os.environ.setdefault("LOGGING_BASE_DIR", os.path.join(tempfile.gettempdir(), "recordmapper_test_logs"))

from marshmallow import fields
from sqlalchemy import create_engine, event, text

from recordmapper import ActiveRecord, MapperContext, MemorySessionStore, RecordSchema, Timestamp

USERS_DDL = """
CREATE TABLE users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name VARCHAR(120),
    email VARCHAR(120),
    age INTEGER,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP
)
"""

NOTES_DDL = """
CREATE TABLE notes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title VARCHAR(200),
    body TEXT
)
"""


class UserSchema(RecordSchema):
    name = fields.String(allow_none=True)
    email = fields.String(allow_none=True)
    age = fields.Integer(allow_none=True)
    created_at = Timestamp(allow_none=True)
    updated_at = Timestamp(allow_none=True)


class User(ActiveRecord):
    __tablename__ = "users"
    __schema__ = UserSchema


class NoteSchema(RecordSchema):
    title = fields.String(allow_none=True)
    body = fields.String(allow_none=True)


class Note(ActiveRecord):
    __tablename__ = "notes"
    __schema__ = NoteSchema


def create_tables(engine):
    with engine.begin() as conn:
        conn.execute(text(USERS_DDL))
        conn.execute(text(NOTES_DDL))


@pytest.fixture(scope='function')
def engine(tmp_path):
    """File-backed SQLite engine with the test tables created."""
    engine = create_engine(f"sqlite:///{tmp_path / 'records.db'}")
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope='function')
def session_store():
    return MemorySessionStore()


@pytest.fixture(scope='function')
def ctx(engine, session_store):
    return MapperContext(engine, session_store)


@pytest.fixture(scope='function')
def executed(engine):
    """Collect every SQL statement sent to the engine after the fixture is set up."""
    statements = []

    def _record(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    event.listen(engine, "before_cursor_execute", _record)
    yield statements
    event.remove(engine, "before_cursor_execute", _record)


@pytest.fixture(scope='function')
def create_user(ctx):
    """Persist a user and return it."""
    def _create_user(name='Ada', email='ada@x.io', age=None):
        user = User(name=name, email=email, age=age)
        assert user.save(ctx) is True
        return user
    return _create_user
