"""Tests for word inflection and case conversion."""

import pytest

from fluentdb.core.inflector import InflectEngine, WordInflector, default_inflector, snake_case


class TestInflectEngine:
    """Tests for the inflect-backed inflector."""

    @pytest.fixture
    def inflector(self):
        return InflectEngine()

    @pytest.mark.parametrize(
        "plural,singular",
        [("users", "user"), ("tasks", "task"), ("categories", "category"), ("people", "person")],
    )
    def test_singularize(self, inflector, plural, singular):
        assert inflector.singularize(plural) == singular

    def test_singularize_singular_word_is_unchanged(self, inflector):
        assert inflector.singularize("user") == "user"

    @pytest.mark.parametrize(
        "singular,plural",
        [("user", "users"), ("category", "categories"), ("person", "people")],
    )
    def test_pluralize(self, inflector, singular, plural):
        assert inflector.pluralize(singular) == plural

    def test_pluralize_plural_word_is_unchanged(self, inflector):
        assert inflector.pluralize("users") == "users"

    def test_empty_word(self, inflector):
        assert inflector.singularize("") == ""
        assert inflector.pluralize("") == ""

    def test_satisfies_protocol(self, inflector):
        assert isinstance(inflector, WordInflector)

    def test_default_is_shared(self):
        assert default_inflector() is default_inflector()


class TestSnakeCase:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("User", "user"),
            ("BlogPost", "blog_post"),
            ("HTTPRequest", "http_request"),
            ("userProfile", "user_profile"),
            ("order-item", "order_item"),
        ],
    )
    def test_snake_case(self, name, expected):
        assert snake_case(name) == expected
