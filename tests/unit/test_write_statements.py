"""Tests for compiling INSERT, UPDATE, DELETE and raw statements."""

import pytest

from fluentdb.exceptions import InvalidArgumentError
from fluentdb.query.statements import Delete, Insert, RawStatement, Update


class TestInsert:
    """Tests for the Insert builder."""

    def test_single_row(self):
        query = Insert({"name": "Ada", "age": 36}, dialect="pgsql", table="users")
        assert query.to_sql() == (
            'INSERT INTO "users" ("name", "age") VALUES (:users_name_0, :users_age_1)'
        )
        assert query.get_parameters() == {":users_name_0": "Ada", ":users_age_1": 36}

    def test_many_rows(self):
        query = Insert(dialect="mysql").into("users").values(
            [{"name": "Ada", "age": 36}, {"name": "Grace", "age": 45}]
        )
        assert query.to_sql() == (
            "INSERT INTO `users` (`name`, `age`) VALUES "
            "(:users_name_0, :users_age_1), (:users_name_2, :users_age_3)"
        )
        assert list(query.get_parameters().values()) == ["Ada", 36, "Grace", 45]

    def test_values_replace_previous_rows(self):
        query = Insert({"name": "Ada"}, dialect="pgsql", table="users").values({"email": "x@y.z"})
        assert query.to_sql() == 'INSERT INTO "users" ("email") VALUES (:users_email_0)'

    def test_without_table_compiles_to_empty_string(self):
        assert Insert({"name": "Ada"}).to_sql() == ""

    @pytest.mark.parametrize("data", [[], [{}], {}, ["name"], [{"name": "Ada"}, 3]])
    def test_rejects_empty_or_malformed_rows(self, data):
        with pytest.raises(InvalidArgumentError):
            Insert(data, table="users")

    def test_rejects_non_string_columns(self):
        with pytest.raises(InvalidArgumentError):
            Insert({1: "Ada"}, table="users")

    def test_table_without_rows(self):
        with pytest.raises(InvalidArgumentError, match="Nothing to insert"):
            Insert(dialect="pgsql").into("users").to_sql()

    def test_clean(self):
        query = Insert({"name": "Ada"}, dialect="pgsql", table="users")
        query.clean().into("posts").values({"title": "Hi"})
        assert query.to_sql() == 'INSERT INTO "posts" ("title") VALUES (:posts_title_0)'


class TestUpdate:
    """Tests for the Update builder."""

    def test_set_and_where(self):
        query = (
            Update(dialect="pgsql", table="users")
            .set({"name": "Ada", "age": 37})
            .where("id", 1)
        )
        assert query.to_sql() == (
            'UPDATE "users" SET "name" = :users_name_0, "age" = :users_age_1 '
            'WHERE "id" = :users_id_2'
        )
        assert query.get_parameters() == {
            ":users_name_0": "Ada",
            ":users_age_1": 37,
            ":users_id_2": 1,
        }

    def test_set_merges_calls(self):
        query = Update(dialect="pgsql", table="users").set({"name": "A"}).set({"age": 1, "name": "B"})
        assert query.to_sql() == 'UPDATE "users" SET "name" = :users_name_0, "age" = :users_age_1'
        assert query.get_parameters()[":users_name_0"] == "B"

    def test_set_null(self):
        query = Update(dialect="pgsql", table="users").set({"deleted_at": None})
        assert query.get_parameters() == {":users_deleted_at_0": None}

    def test_join_update(self):
        query = (
            Update(dialect="mysql", table="users")
            .inner_join("posts")
            .set({"users.active": False})
            .where("posts.views", ">", 100)
        )
        assert query.to_sql() == (
            "UPDATE `users` INNER JOIN `posts` ON `users`.`id` = `posts`.`user_id` "
            "SET `users`.`active` = :users_users_active_0 "
            "WHERE `posts`.`views` > :users_posts_views_1"
        )

    def test_where_group(self):
        query = (
            Update(dialect="pgsql", table="users")
            .set({"active": False})
            .where(lambda q: q.where_null("email").or_where("age", "<", 13))
        )
        assert query.to_sql() == (
            'UPDATE "users" SET "active" = :users_active_0 '
            'WHERE ("email" IS NULL OR "age" < :users_age_1)'
        )

    def test_positional_data_is_rejected(self):
        with pytest.raises(InvalidArgumentError, match="positional"):
            Update(table="users").set(["Ada", 36])

    def test_non_string_keys_are_rejected(self):
        with pytest.raises(InvalidArgumentError):
            Update(table="users").set({0: "Ada"})

    def test_missing_set(self):
        with pytest.raises(InvalidArgumentError, match="set"):
            Update(dialect="pgsql", table="users").where("id", 1).to_sql()

    def test_without_table_compiles_to_empty_string(self):
        assert Update().set({"a": 1}).to_sql() == ""

    def test_clean(self):
        query = Update(dialect="pgsql", table="users").set({"a": 1}).where("id", 1).inner_join("posts")
        query.clean()
        assert query.to_sql() == ""
        assert query.get_parameters() == {}


class TestDelete:
    """Tests for the Delete builder."""

    def test_where(self):
        query = Delete(dialect="pgsql").from_("users").where("id", 1)
        assert query.to_sql() == 'DELETE FROM "users" WHERE "id" = :users_id_0'

    def test_without_where(self):
        assert Delete(dialect="sqlite", table="users").to_sql() == "DELETE FROM `users`"

    def test_join_delete_names_the_target(self):
        query = Delete(dialect="mysql").from_("users").inner_join("posts").where("posts.views", 0)
        assert query.to_sql() == (
            "DELETE `users` FROM `users` "
            "INNER JOIN `posts` ON `users`.`id` = `posts`.`user_id` "
            "WHERE `posts`.`views` = :users_posts_views_0"
        )

    def test_where_in(self):
        query = Delete(dialect="pgsql", table="posts").where_in("id", [4, 5])
        assert query.to_sql() == 'DELETE FROM "posts" WHERE "id" IN (:posts_id_0, :posts_id_1)'

    def test_clean(self):
        query = Delete(dialect="pgsql", table="users").where("id", 1)
        query.clean().from_("posts")
        assert query.to_sql() == 'DELETE FROM "posts"'
        assert query.get_parameters() == {}


class TestRawStatement:
    """Tests for verbatim SQL statements."""

    def test_sql_is_verbatim(self):
        sql = "SELECT * FROM users WHERE id = :id"
        query = RawStatement(sql, {"id": 5})
        assert query.to_sql() == sql
        assert query.get_parameters() == {":id": 5}

    def test_bind_adds_parameters(self):
        query = RawStatement("SELECT :a, :b").bind("a", 1).bind(":b", 2)
        assert query.get_parameters() == {":a": 1, ":b": 2}
        assert query.to_raw_sql() == "SELECT 1, 2"

    def test_query_replaces_sql(self):
        query = RawStatement("SELECT 1", {"x": 1}).query("SELECT :y", {"y": 2})
        assert query.to_sql() == "SELECT :y"
        assert query.get_parameters() == {":y": 2}

    def test_query_keeps_parameters_when_none_given(self):
        query = RawStatement("SELECT :x", {"x": 1}).query("SELECT :x + 1")
        assert query.get_parameters() == {":x": 1}

    def test_clean(self):
        query = RawStatement("SELECT :x", {"x": 1}).clean()
        assert query.to_sql() == ""
        assert query.get_parameters() == {}
