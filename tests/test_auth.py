"""Tests for :class:`intake_bot.auth.StaffGate`."""

import pytest

from intake_bot.auth import StaffGate
from intake_bot.errors import AuthorizationError


def test_login_and_logout() -> None:
    gate = StaffGate("letmein")
    gate.login(42, " letmein ")
    assert gate.is_staff(42)
    assert not gate.is_staff(7)

    gate.logout(42)
    assert not gate.is_staff(42)


def test_wrong_code_is_refused() -> None:
    gate = StaffGate("letmein")
    with pytest.raises(AuthorizationError, match="Invalid staff code."):
        gate.login(42, "guess")
    assert not gate.is_staff(42)


def test_empty_code_never_matches() -> None:
    gate = StaffGate("")
    assert not gate.check("")
    assert not gate.check(None)
