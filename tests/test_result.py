"""
Tests for the Ok/Err tagged results.
"""

import pytest

from rdf_transform.exceptions import TransformError, TransformNotFound
from rdf_transform.result import Err, Ok, attempt


class TestOk:

    def test_unwrap(self):
        assert Ok(3).unwrap() == 3
        assert Ok(3).is_ok()
        assert not Ok(3).is_err()

    def test_fmap_and_bind(self):
        assert Ok(3).fmap(lambda v: v + 1) == Ok(4)
        assert Ok(3).bind(lambda v: Err(str(v))) == Err("3")

    def test_map_err_is_noop(self):
        assert Ok(3).map_err(lambda e: "changed") == Ok(3)


class TestErr:

    def test_unwrap_reraises_exception(self):
        error = TransformNotFound("x")
        with pytest.raises(TransformNotFound) as exc_info:
            Err(error).unwrap()
        assert exc_info.value is error

    def test_unwrap_plain_value(self):
        with pytest.raises(ValueError):
            Err("bad").unwrap()

    def test_unwrap_or(self):
        assert Err("bad").unwrap_or(7) == 7

    def test_fmap_skipped(self):
        assert Err("bad").fmap(lambda v: v + 1) == Err("bad")

    def test_map_err(self):
        assert Err("bad").map_err(str.upper) == Err("BAD")


class TestAttempt:

    def test_success(self):
        assert attempt(lambda a, b: a + b, 1, b=2) == Ok(3)

    def test_transform_error_is_captured(self):
        def fail():
            raise TransformNotFound("x")

        outcome = attempt(fail)
        assert outcome.is_err()
        assert isinstance(outcome.error, TransformError)

    def test_other_errors_propagate(self):
        def fail():
            raise KeyError("x")

        with pytest.raises(KeyError):
            attempt(fail)
