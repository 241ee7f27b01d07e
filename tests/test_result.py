"""Unit tests for the Result type."""
import pytest

from perplexity import Err, ErrorCode, Ok, PerplexityError

ERROR = PerplexityError(ErrorCode.TRANSPORT_ERROR, "Request failed: boom")


class TestOk:
    def test_accessors(self):
        result = Ok("Paris")
        assert result.is_ok()
        assert not result.is_err()
        assert result.unwrap() == "Paris"
        assert result.unwrap_or("fallback") == "Paris"

    def test_map(self):
        assert Ok(2).map(lambda v: v * 3) == Ok(6)


class TestErr:
    def test_accessors(self):
        result = Err(ERROR)
        assert result.is_err()
        assert not result.is_ok()
        assert result.unwrap_or("fallback") == "fallback"

    def test_unwrap_raises(self):
        with pytest.raises(ValueError, match="TRANSPORT_ERROR"):
            Err(ERROR).unwrap()

    def test_map_is_skipped(self):
        assert Err(ERROR).map(lambda v: v * 3) == Err(ERROR)

    def test_repr(self):
        assert repr(Err("x")) == "Err('x')"
        assert repr(Ok(1)) == "Ok(1)"
