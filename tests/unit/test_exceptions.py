"""Tests for FluentDB exceptions."""

import pytest

from fluentdb.exceptions import (
    BadMethodCallError,
    ConnectionError,
    FluentDBError,
    InvalidArgumentError,
    ModelNotFoundError,
)


class TestFluentDBError:
    def test_to_dict(self):
        error = InvalidArgumentError("bad", {"column": "id"})
        assert error.to_dict() == {
            "error": "InvalidArgumentError",
            "message": "bad",
            "context": {"column": "id"},
        }

    def test_context_defaults_to_empty(self):
        assert ConnectionError("down").context == {}

    @pytest.mark.parametrize(
        "error",
        [
            ConnectionError("x"),
            InvalidArgumentError("x"),
            BadMethodCallError("x", "Select"),
            ModelNotFoundError("User", "id", 1),
        ],
    )
    def test_hierarchy(self, error):
        assert isinstance(error, FluentDBError)

    def test_invalid_argument_is_value_error(self):
        assert isinstance(InvalidArgumentError("x"), ValueError)


class TestBadMethodCallError:
    """Tests for the suggestion on unknown method calls."""

    def test_close_match_is_suggested(self):
        error = BadMethodCallError("ordr_desc", "Select", ["order_asc", "order_desc", "limit"])
        assert error.suggestion == "order_desc"
        assert str(error) == "Call to undefined method `ordr_desc` on `Select`. Did you mean `order_desc`?"
        assert error.context["suggestion"] == "order_desc"

    def test_no_suggestion_when_nothing_is_close(self):
        error = BadMethodCallError("frobnicate", "Select", ["where", "limit"])
        assert error.suggestion is None
        assert "Did you mean" not in str(error)

    def test_custom_message(self):
        error = BadMethodCallError("post", "User", ["posts"], message="Unknown relationship method `post`.")
        assert str(error) == "Unknown relationship method `post`. Did you mean `posts`?"

    def test_is_attribute_error(self):
        assert isinstance(BadMethodCallError("x", "Select"), AttributeError)


class TestModelNotFoundError:
    def test_message_and_fields(self):
        error = ModelNotFoundError("User", "email", "a@b.c")
        assert str(error) == "No `User` found where email = 'a@b.c'."
        assert (error.model_name, error.key, error.value) == ("User", "email", "a@b.c")
