"""Tests for relsync.core.result module."""

import pytest

from relsync.core.result import Err, Ok, Result, is_err, is_ok


class TestOk:
    def test_ok_holds_value(self) -> None:
        result = Ok(42)
        assert result.value == 42
        assert result.is_ok() is True
        assert result.is_err() is False

    def test_ok_unwrap_ignores_default(self) -> None:
        result = Ok("v1.0.0")
        assert result.unwrap() == "v1.0.0"
        assert result.unwrap_or("fallback") == "v1.0.0"

    def test_ok_map(self) -> None:
        assert Ok(2).map(lambda x: x * 3) == Ok(6)

    def test_ok_repr(self) -> None:
        assert repr(Ok("a")) == "Ok('a')"


class TestErr:
    def test_err_holds_error(self) -> None:
        result = Err("boom")
        assert result.error == "boom"
        assert result.is_ok() is False
        assert result.is_err() is True

    def test_err_unwrap_raises(self) -> None:
        with pytest.raises(ValueError, match="called unwrap on Err"):
            Err("boom").unwrap()

    def test_err_unwrap_or_returns_default(self) -> None:
        assert Err("boom").unwrap_or(7) == 7

    def test_err_map_passes_through(self) -> None:
        err: Err[str] = Err("boom")
        assert err.map(lambda x: x) is err


class TestGuards:
    def test_is_ok_is_err(self) -> None:
        ok: Result[int, str] = Ok(1)
        err: Result[int, str] = Err("x")
        assert is_ok(ok) and not is_err(ok)
        assert is_err(err) and not is_ok(err)

    def test_pattern_matching(self) -> None:
        def describe(result: Result[int, str]) -> str:
            match result:
                case Ok(value):
                    return f"ok {value}"
                case Err(error):
                    return f"err {error}"

        assert describe(Ok(1)) == "ok 1"
        assert describe(Err("no")) == "err no"
