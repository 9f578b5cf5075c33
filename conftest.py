"""Shared fixtures and test configuration."""

from __future__ import annotations

import os
import sys
from typing import Any

import pytest

# Add the repository root (the directory containing this file) to ``sys.path``
# so the tests import the working tree rather than an installed copy.
ROOT_DIR = os.path.abspath(os.path.dirname(__file__))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from intake_bot.adapters.base import AuthorityAdapter  # noqa: E402
from intake_bot.config import Settings  # noqa: E402
from intake_bot.data import Services, build_services  # noqa: E402

GUILD_ID = "111111111111111111"
ROLE_ID = "222222222222222222"


class StubAuthority(AuthorityAdapter):
    """Records calls; raises ``grant_error`` / ``notify_error`` when set."""

    def __init__(self) -> None:
        self.grants: list[Any] = []
        self.notices: list[tuple[Any, str, str]] = []
        self.grant_error: Exception | None = None
        self.notify_error: Exception | None = None
        self.grant_body: dict[str, Any] = {"ok": True, "granted": True}

    async def grant_role(self, application):
        self.grants.append(application)
        if self.grant_error is not None:
            raise self.grant_error
        return dict(self.grant_body)

    async def notify_decision(self, application, status, note=""):
        self.notices.append((application, status, note))
        if self.notify_error is not None:
            raise self.notify_error
        return {"ok": True}


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        data_dir=str(tmp_path / "data"),
        guild_id=GUILD_ID,
        base_member_role_id=ROLE_ID,
        authority_secret="s3cret",
    )


@pytest.fixture
def authority() -> StubAuthority:
    return StubAuthority()


@pytest.fixture
def services(settings, authority) -> Services:
    return build_services(settings, authority)
