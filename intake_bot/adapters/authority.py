"""HTTP client for the bot's internal authority API.

The authority is a separate process that holds the Discord permissions to
grant roles and send direct messages. This adapter uses :mod:`httpx` so calls
stay asynchronous and every request is bounded by a timeout.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..config import Settings
from ..core.models import Application, ApplicationStatus
from ..errors import (
    ConfigurationError,
    RemoteError,
    TargetResolutionError,
    TransportError,
)
from .base import AuthorityAdapter

log = logging.getLogger("intake.authority")

SECRET_HEADER = "x-internal-secret"


class HttpAuthority(AuthorityAdapter):
    """Adapter that posts JSON to the configured grant and notify endpoints."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        """Store ``settings`` and an optional HTTP ``client``."""
        self.settings = settings
        self.client = client or httpx.AsyncClient(timeout=settings.authority_timeout)

    # ------------------------------------------------------------------
    def _target_guild(self, application: Application) -> str:
        return application.target_guild_id or self.settings.guild_id

    def _target_role(self, application: Application) -> str:
        return application.target_role_id or self.settings.base_member_role_id

    async def _post(self, url: str, payload: dict[str, Any], label: str) -> dict[str, Any]:
        headers = {SECRET_HEADER: self.settings.authority_secret}
        try:
            response = await self.client.post(
                url,
                json=payload,
                headers=headers,
                timeout=self.settings.authority_timeout,
            )
        except httpx.RequestError as exc:
            log.warning("Authority %s request to %s failed: %s", label, url, exc)
            raise TransportError(f"Bot {label} connection failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = None

        if not response.is_success or not isinstance(body, dict) or body.get("ok") is not True:
            error = body.get("error") if isinstance(body, dict) else None
            reason = str(error) if error else f"Bot {label} HTTP {response.status_code}"
            log.warning("Authority %s rejected: %s", label, reason)
            raise RemoteError(reason)
        return body

    # ------------------------------------------------------------------
    async def grant_role(self, application: Application) -> dict[str, Any]:
        """Ask the authority to grant the application's role.

        Parameters
        ----------
        application:
            The application being approved; its ``target_*`` fields should
            already reflect the current form.

        Returns the authority's response body, kept for audit.

        """
        if not self.settings.grant_url or not self.settings.authority_secret:
            raise ConfigurationError(
                "Missing BOT_APPROVE_URL or BOT_INTERNAL_API_SECRET in the environment."
            )
        guild_id = self._target_guild(application)
        if not guild_id:
            raise TargetResolutionError("Missing target guild for this application/form.")

        payload: dict[str, Any] = {
            "guildId": guild_id,
            "userId": application.discord_user_id,
            "applicationId": application.id,
            "formName": application.form_name,
        }
        role_id = self._target_role(application)
        if role_id:
            payload["roleId"] = role_id
        return await self._post(self.settings.grant_url, payload, "API")

    async def notify_decision(
        self, application: Application, status: ApplicationStatus, note: str = ""
    ) -> dict[str, Any]:
        """Ask the authority to message the applicant about ``status``."""
        if not self.settings.notify_url or not self.settings.authority_secret:
            raise ConfigurationError(
                "Missing BOT_NOTIFY_URL or BOT_INTERNAL_API_SECRET in the environment."
            )
        payload = {
            "userId": application.discord_user_id,
            "status": ApplicationStatus(status).value,
            "guildId": self._target_guild(application),
            "roleId": self._target_role(application),
            "applicationId": application.id,
            "formName": application.form_name,
            "note": note,
        }
        return await self._post(self.settings.notify_url, payload, "notify")

    async def close(self) -> None:
        """Close the underlying :class:`httpx.AsyncClient`."""
        await self.client.aclose()
