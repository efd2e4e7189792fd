"""Tests for SQL grammars (descriptor -> SQL + bindings)."""

from __future__ import annotations

import pytest

from quarry.core.errors import ConfigurationError
from quarry.core.query.descriptor import (
    BasicWhere,
    BetweenWhere,
    InWhere,
    Join,
    NestedWhere,
    NullWhere,
    Order,
    QueryDescriptor,
)
from quarry.core.query.grammar import (
    BaseGrammar,
    Grammar,
    MySQLGrammar,
    PostgreSQLGrammar,
    SQLiteGrammar,
    get_grammar,
    register_grammar,
)


@pytest.fixture()
def sqlite() -> SQLiteGrammar:
    return SQLiteGrammar()


@pytest.fixture()
def mysql() -> MySQLGrammar:
    return MySQLGrammar()


@pytest.fixture()
def pg() -> PostgreSQLGrammar:
    return PostgreSQLGrammar()


# ── Registry ─────────────────────────────────────────────────────────


class TestGrammarRegistry:
    @pytest.mark.parametrize(
        ("name", "cls"),
        [
            ("sqlite", SQLiteGrammar),
            ("mysql", MySQLGrammar),
            ("mariadb", MySQLGrammar),
            ("postgresql", PostgreSQLGrammar),
            ("postgres", PostgreSQLGrammar),
            ("SQLite", SQLiteGrammar),
        ],
    )
    def test_get_grammar(self, name, cls):
        assert isinstance(get_grammar(name), cls)

    def test_unknown_grammar(self):
        with pytest.raises(ConfigurationError, match="Unknown grammar"):
            get_grammar("oracle")

    def test_register_custom(self):
        class DuckGrammar(SQLiteGrammar):
            @property
            def name(self) -> str:
                return "duck"

        register_grammar("duck", DuckGrammar())
        assert get_grammar("duck").name == "duck"

    def test_grammars_satisfy_protocol(self, sqlite, mysql, pg):
        for g in (sqlite, mysql, pg):
            assert isinstance(g, Grammar)
            assert isinstance(g, BaseGrammar)


# ── Identifier wrapping ──────────────────────────────────────────────


class TestWrapIdentifier:
    def test_plain(self, sqlite, mysql):
        assert sqlite.wrap_identifier("users") == '"users"'
        assert mysql.wrap_identifier("users") == "`users`"

    def test_dotted(self, mysql):
        assert mysql.wrap_identifier("users.id") == "`users`.`id`"

    def test_alias(self, sqlite):
        assert sqlite.wrap_identifier("name as n") == '"name" AS "n"'

    def test_wildcard_and_functions_untouched(self, mysql):
        assert mysql.wrap_identifier("*") == "*"
        assert mysql.wrap_identifier("users.*") == "users.*"
        assert mysql.wrap_identifier("COUNT(*) AS total") == "COUNT(*) AS total"

    def test_already_quoted_is_not_doubled(self, mysql):
        assert mysql.wrap_identifier("`users`") == "`users`"


# ── SELECT ───────────────────────────────────────────────────────────


class TestCompileSelect:
    def test_select_all(self, sqlite):
        assert sqlite.compile_select(QueryDescriptor(table="users")).sql == 'SELECT * FROM "users"'

    def test_columns_and_alias(self, sqlite):
        q = QueryDescriptor(table="users", alias="u", columns=["u.id", "u.name"])
        assert sqlite.compile_select(q).sql == 'SELECT "u"."id", "u"."name" FROM "users" AS "u"'

    def test_in_expands_placeholders(self, sqlite):
        q = QueryDescriptor(table="users", wheres=[InWhere("id", (1, 2))])
        compiled = sqlite.compile_select(q)
        assert compiled.sql == 'SELECT * FROM "users" WHERE "id" IN (?, ?)'
        assert compiled.bindings == [1, 2]

    def test_empty_in_matches_nothing(self, sqlite):
        q = QueryDescriptor(table="users", wheres=[InWhere("id", ())])
        compiled = sqlite.compile_select(q)
        assert compiled.sql == 'SELECT * FROM "users" WHERE 1 = 0'
        assert compiled.bindings == []

    def test_empty_not_in_matches_everything(self, sqlite):
        q = QueryDescriptor(table="users", wheres=[InWhere("id", (), negated=True)])
        assert sqlite.compile_select(q).sql == 'SELECT * FROM "users" WHERE 1 = 1'

    def test_nested_group_and_connectives(self, sqlite):
        q = QueryDescriptor(
            table="users",
            wheres=[
                BasicWhere("a", "=", 1),
                NestedWhere((BasicWhere("b", "=", 2), BasicWhere("c", ">", 3, "OR"))),
                NullWhere("deleted_at", boolean="OR"),
            ],
        )
        compiled = sqlite.compile_select(q)
        assert compiled.sql == (
            'SELECT * FROM "users" WHERE "a" = ? AND ("b" = ? OR "c" > ?) OR "deleted_at" IS NULL'
        )
        assert compiled.bindings == [1, 2, 3]

    def test_between_and_not_null(self, pg):
        q = QueryDescriptor(
            table="users",
            wheres=[BetweenWhere("age", 18, 30), NullWhere("email", negated=True)],
        )
        compiled = pg.compile_select(q)
        assert compiled.sql == 'SELECT * FROM "users" WHERE "age" BETWEEN ? AND ? AND "email" IS NOT NULL'
        assert compiled.bindings == [18, 30]

    def test_join_group_order_limit(self, mysql):
        q = QueryDescriptor(
            table="posts",
            columns=["users.name", "COUNT(*) AS total"],
            joins=[Join("LEFT", "users", "users.id", "=", "posts.user_id")],
            groups=["users.name"],
            orders=[Order("total", "DESC")],
            limit=5,
            offset=10,
        )
        assert mysql.compile_select(q).sql == (
            "SELECT `users`.`name`, COUNT(*) AS total FROM `posts` "
            "LEFT JOIN `users` ON `users`.`id` = `posts`.`user_id` "
            "GROUP BY `users`.`name` ORDER BY `total` DESC LIMIT 5 OFFSET 10"
        )

    def test_cross_join_has_no_on(self, sqlite):
        q = QueryDescriptor(table="a", joins=[Join("CROSS", "b", "", "", "")])
        assert sqlite.compile_select(q).sql == 'SELECT * FROM "a" CROSS JOIN "b"'

    def test_compilation_is_deterministic(self, sqlite):
        q = QueryDescriptor(
            table="users",
            wheres=[BasicWhere("status", "=", 1), InWhere("role", ("a", "b"), boolean="OR")],
            orders=[Order("id")],
        )
        assert sqlite.compile_select(q) == sqlite.compile_select(q)


class TestCompileLimit:
    def test_offset_only_per_dialect(self, sqlite, mysql, pg):
        assert sqlite.compile_limit(None, 10) == "LIMIT -1 OFFSET 10"
        assert mysql.compile_limit(None, 10) == "LIMIT 18446744073709551615 OFFSET 10"
        assert pg.compile_limit(None, 10) == "OFFSET 10"

    def test_limit_only(self, pg):
        assert pg.compile_limit(3, None) == "LIMIT 3"

    def test_neither(self, sqlite):
        assert sqlite.compile_limit(None, None) == ""


class TestCompileCount:
    def test_wraps_select_without_limit(self, sqlite):
        q = QueryDescriptor(table="users", wheres=[BasicWhere("status", "=", 1)], limit=5, offset=5)
        compiled = sqlite.compile_count(q)
        assert compiled.sql == (
            'SELECT COUNT(*) AS aggregate FROM (SELECT * FROM "users" WHERE "status" = ?) AS sub'
        )
        assert compiled.bindings == [1]
        # The descriptor itself keeps its pagination
        assert q.limit == 5


# ── DML / DDL ────────────────────────────────────────────────────────


class TestCompileWrites:
    def test_insert_single(self, sqlite):
        compiled = sqlite.compile_insert("users", ["name", "age"], [["Ada", 36]], returning="id")
        assert compiled.sql == 'INSERT INTO "users" ("name", "age") VALUES (?, ?)'
        assert compiled.bindings == ["Ada", 36]

    def test_insert_returning_on_postgres(self, pg):
        compiled = pg.compile_insert("users", ["name"], [["Ada"]], returning="id")
        assert compiled.sql == 'INSERT INTO "users" ("name") VALUES (?) RETURNING "id"'

    def test_insert_many(self, mysql):
        compiled = mysql.compile_insert("t", ["a", "b"], [[1, 2], [3, 4]])
        assert compiled.sql == "INSERT INTO `t` (`a`, `b`) VALUES (?, ?), (?, ?)"
        assert compiled.bindings == [1, 2, 3, 4]

    def test_update_binds_set_values_first(self, sqlite):
        q = QueryDescriptor(table="users", wheres=[BasicWhere("id", "=", 5)])
        compiled = sqlite.compile_update(q, {"name": "x", "age": 3})
        assert compiled.sql == 'UPDATE "users" SET "name" = ?, "age" = ? WHERE "id" = ?'
        assert compiled.bindings == ["x", 3, 5]

    def test_delete(self, pg):
        q = QueryDescriptor(table="users", wheres=[InWhere("id", (1, 2), negated=True)])
        compiled = pg.compile_delete(q)
        assert compiled.sql == 'DELETE FROM "users" WHERE "id" NOT IN (?, ?)'
        assert compiled.bindings == [1, 2]

    def test_ledger_ddl(self, sqlite, mysql, pg):
        assert sqlite.compile_create_ledger("schema_migrations") == (
            'CREATE TABLE "schema_migrations" ("version" TEXT PRIMARY KEY, '
            '"applied_at" DATETIME NOT NULL)'
        )
        assert mysql.compile_create_ledger("schema_migrations").endswith(
            "ENGINE=InnoDB DEFAULT CHARSET=utf8mb4"
        )
        assert '"applied_at" TIMESTAMP NOT NULL' in pg.compile_create_ledger("schema_migrations")
