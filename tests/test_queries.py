import pytest
from sqlalchemy import text

from recordmapper import RowDecodeError, UnknownColumnError
from tests.conftest import Note, User


@pytest.fixture(scope='function')
def people(create_user):
    return [
        create_user(name="Ada", email="ada@x.io", age=36),
        create_user(name="Grace", email="grace@navy.mil", age=45),
        create_user(name="Alan", email="alan@x.io", age=41),
    ]


class TestAllAndGet:
    def test_all_returns_every_row_as_instances(self, ctx, people):
        rows = User.all(ctx)

        assert isinstance(rows, list)
        assert all(isinstance(row, User) for row in rows)
        assert sorted(u.name for u in rows) == ["Ada", "Alan", "Grace"]

    def test_all_on_empty_table(self, ctx):
        assert User.all(ctx) == []

    def test_get_limits_rows(self, ctx, people):
        assert len(User.get(ctx, 2)) == 2
        assert len(User.get(ctx, "1")) == 1

    def test_get_with_invalid_limit_returns_nothing(self, ctx, people):
        assert User.get(ctx, "abc") == []
        assert User.get(ctx, -5) == []

    def test_query_error_returns_empty_list(self, ctx):
        class Ghost(Note):
            __tablename__ = "ghosts"

        assert Ghost.all(ctx) == []
        assert Ghost.find(ctx, 1) is None


class TestFindBy:
    def test_find_by_returns_first_match(self, ctx, people):
        found = User.find_by(ctx, "email", "grace@navy.mil")

        assert found.name == "Grace"

    def test_find_by_no_match(self, ctx, people):
        assert User.find_by(ctx, "email", "nobody@x.io") is None

    def test_find_by_integer_value(self, ctx, people):
        assert User.find_by(ctx, "age", 41).name == "Alan"

    def test_find_by_none_matches_null(self, ctx, people):
        Note(title="untitled body").save(ctx)

        assert Note.find_by(ctx, "body", None).title == "untitled body"

    def test_find_by_binds_injection_attempts(self, ctx, people):
        assert User.find_by(ctx, "name", "x' OR '1'='1") is None
        assert User.find_by(ctx, "name", "Ada'; DROP TABLE users; --") is None
        assert len(User.all(ctx)) == 3

    def test_value_with_quotes_matches_literally(self, ctx):
        note = Note(title="O'Brien's notes")
        note.save(ctx)

        assert Note.find_by(ctx, "title", "O'Brien's notes").id == note.id

    def test_unknown_column_is_rejected(self, ctx, executed):
        with pytest.raises(UnknownColumnError) as excinfo:
            User.find_by(ctx, "name = name OR 1", "x")

        assert excinfo.value.table == "users"
        assert executed == []

    def test_where_is_deprecated_alias(self, ctx, people):
        with pytest.warns(DeprecationWarning):
            found = User.where(ctx, "name", "Ada")

        assert found.email == "ada@x.io"


class TestWhereAll:
    def test_where_all_returns_every_match(self, ctx, create_user):
        create_user(name="Ada", email="shared@x.io")
        create_user(name="Grace", email="shared@x.io")
        create_user(name="Alan", email="alan@x.io")

        rows = User.where_all(ctx, "email", "shared@x.io")

        assert sorted(u.name for u in rows) == ["Ada", "Grace"]

    def test_where_all_without_matches(self, ctx, people):
        assert User.where_all(ctx, "name", "Linus") == []

    def test_where_all_unknown_column(self, ctx):
        with pytest.raises(UnknownColumnError):
            User.where_all(ctx, "password", "x")


class TestWhereLikeMultiple:
    def test_fields_are_combined_with_or(self, ctx, people):
        rows = User.where_like_multiple(ctx, {"name": "Gra", "email": "alan@"})

        assert sorted(u.name for u in rows) == ["Alan", "Grace"]

    def test_substring_match(self, ctx, people):
        rows = User.where_like_multiple(ctx, {"email": "x.io"})

        assert sorted(u.name for u in rows) == ["Ada", "Alan"]

    def test_wildcards_are_literal(self, ctx, people):
        Note(title="100% done").save(ctx)
        Note(title="1000 done").save(ctx)

        assert [n.title for n in Note.where_like_multiple(ctx, {"title": "0%"})] == ["100% done"]
        assert User.where_like_multiple(ctx, {"name": "_"}) == []

    def test_none_value_matches_every_non_null_value(self, ctx):
        Note(title="None of it").save(ctx)
        Note(title="other").save(ctx)
        Note(body="no title").save(ctx)

        rows = Note.where_like_multiple(ctx, {"title": None})

        assert sorted(n.title for n in rows) == ["None of it", "other"]

    def test_empty_mapping_skips_query(self, ctx, executed):
        assert User.where_like_multiple(ctx, {}) == []
        assert executed == []

    def test_unknown_field_is_rejected(self, ctx):
        with pytest.raises(UnknownColumnError):
            User.where_like_multiple(ctx, {"name": "Ada", "nickname": "A"})


class TestRawQuery:
    def test_raw_query_maps_rows(self, ctx, people):
        rows = User.raw_query(ctx, "SELECT * FROM users WHERE age > 40 ORDER BY age")

        assert [u.name for u in rows] == ["Alan", "Grace"]

    def test_raw_query_with_bound_params(self, ctx, people):
        rows = User.raw_query(ctx, "SELECT * FROM users WHERE name = :name", {"name": "Ada"})

        assert [u.age for u in rows] == [36]

    def test_raw_query_accepts_sqlalchemy_statements(self, ctx, people):
        statement = text("SELECT * FROM users WHERE age < :age").bindparams(age=40)

        assert [u.name for u in User.raw_query(ctx, statement)] == ["Ada"]

    def test_raw_query_ignores_undeclared_columns(self, ctx, people):
        rows = User.raw_query(ctx, "SELECT id, name, 'extra' AS nickname FROM users WHERE name = 'Ada'")

        assert rows[0].name == "Ada"
        assert rows[0].email is None
        assert not hasattr(rows[0], "nickname")

    def test_raw_query_error_returns_empty_list(self, ctx):
        assert User.raw_query(ctx, "SELECT * FROM no_such_table") == []

    def test_row_failing_schema_raises(self, ctx, people):
        with pytest.raises(RowDecodeError):
            User.raw_query(ctx, "SELECT id, name, 'old' AS age FROM users")

    def test_sql_alias(self, ctx, people):
        assert len(User.sql(ctx, "SELECT * FROM users")) == 3

