"""Base interface for the external authority that performs privileged actions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from ..core.models import Application, ApplicationStatus


class AuthorityAdapter(ABC):
    """Abstract client for the service that grants roles and messages users."""

    @abstractmethod
    async def grant_role(self, application: Application) -> dict[str, Any]:
        """Grant the application's target role and return the response body."""

    @abstractmethod
    async def notify_decision(
        self, application: Application, status: ApplicationStatus, note: str = ""
    ) -> dict[str, Any]:
        """Tell the applicant about the review decision."""

    async def close(self) -> None:
        """Release any held resources."""
