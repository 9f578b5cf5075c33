"""Shared-secret staff gate used by the Discord command layer."""

from __future__ import annotations

import hmac

from .errors import AuthorizationError


class StaffGate:
    """Checks the staff code and remembers who logged in with it.

    The logged-in set lives in memory only; a restart logs everyone out.
    """

    def __init__(self, code: str) -> None:
        self._code = code
        self._staff: set[int] = set()

    def check(self, credential: str) -> bool:
        if not self._code:
            return False
        return hmac.compare_digest(
            (credential or "").strip().encode(), self._code.encode()
        )

    def require(self, credential: str) -> None:
        if not self.check(credential):
            raise AuthorizationError("Invalid staff code.")

    def login(self, user_id: int, credential: str) -> None:
        self.require(credential)
        self._staff.add(user_id)

    def logout(self, user_id: int) -> None:
        self._staff.discard(user_id)

    def is_staff(self, user_id: int) -> bool:
        return user_id in self._staff
