from __future__ import annotations

import dataclasses

import pytest

from modforge.core.result import Err, Ok, Result


def _halve(n: int) -> Result[int, str]:
    if n % 2:
        return Err(f"{n} is odd")
    return Ok(n // 2)


def test_ok_and_err_compare_by_value() -> None:
    assert Ok(1) == Ok(1)
    assert Err("x") == Err("x")
    assert Ok("x") != Err("x")


def test_match_narrows_result() -> None:
    seen: list[str] = []
    for n in (4, 3):
        match _halve(n):
            case Ok(value):
                seen.append(f"ok {value}")
            case Err(error):
                seen.append(f"err {error}")

    assert seen == ["ok 2", "err 3 is odd"]


def test_frozen() -> None:
    with pytest.raises(dataclasses.FrozenInstanceError):
        Ok(1).value = 2  # type: ignore[misc]
