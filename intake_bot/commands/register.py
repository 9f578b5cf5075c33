"""Registration of slash commands for the bot."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any

import discord
from discord import app_commands
from discord.ext import commands

from ..auth import StaffGate
from ..core.models import (
    BASE_STATE_LABELS,
    Applicant,
    ApplicationForm,
    ApplicationSource,
    ApplicationStatus,
    ReviewDecision,
)
from ..data import Services
from ..errors import IntakeError
from ..ui.modals import ApplicationDraft, ApplicationModal, submit_draft
from ..ui.views import applications_embed, bases_embed, forms_embed, run_review
from .utils import has_staff_access, reply

Handler = Callable[..., Awaitable[None]]


def split_questions(raw: str | None) -> list[str]:
    """Split ``"Q1 | Q2"`` into ``["Q1", "Q2"]``."""
    return [q.strip() for q in (raw or "").split("|") if q.strip()]


def _form_choices(forms: list[ApplicationForm], current: str) -> list[app_commands.Choice[str]]:
    current_lower = current.lower()
    return [
        app_commands.Choice(name=f"{f.name} ({f.id})"[:100], value=f.id)
        for f in forms
        if current_lower in f.id.lower() or current_lower in f.name.lower()
    ][:25]


def register_commands(bot: commands.Bot, services: Services, gate: StaffGate) -> None:
    """Register the public, staff-session and staff-only commands."""
    tree = bot.tree

    def staff_only(func: Handler) -> Handler:
        """Reject non-staff callers and turn ``IntakeError`` into a reply."""

        @wraps(func)
        async def wrapper(interaction: discord.Interaction, *args: Any, **kwargs: Any) -> None:
            if not has_staff_access(interaction, gate):
                await reply(interaction, "Staff only. Use `/staff_login` first.")
                return
            try:
                await func(interaction, *args, **kwargs)
            except IntakeError as exc:
                await reply(interaction, exc.reason)

        return wrapper

    async def start_application(
        interaction: discord.Interaction,
        form: ApplicationForm,
        applicant: Applicant,
        source: ApplicationSource,
    ) -> None:
        draft = ApplicationDraft(form=form, applicant=applicant, source=source)
        if not form.questions:
            await submit_draft(interaction, services, gate, draft)
            return
        await interaction.response.send_modal(ApplicationModal(services, gate, draft))

    # ------------------------------------------------------------------
    # Public commands
    # ------------------------------------------------------------------
    @tree.command(name="apply", description="Apply for a role")
    @app_commands.describe(
        form="Application type",
        minecraft_ign="Your Minecraft username",
        reason="Anything you want staff to know",
    )
    async def apply(
        interaction: discord.Interaction,
        form: str,
        minecraft_ign: str | None = None,
        reason: str | None = None,
    ) -> None:
        selected = services.forms.find(form)
        if selected is None or not selected.active:
            await reply(interaction, "Invalid application type.")
            return
        try:
            applicant = Applicant(
                discord_user_id=str(interaction.user.id),
                discord_tag=str(interaction.user),
                minecraft_ign=minecraft_ign or "",
                reason=reason or "",
            )
        except ValueError:
            await reply(interaction, "Invalid application details.")
            return
        await start_application(interaction, selected, applicant, ApplicationSource.PUBLIC)

    @apply.autocomplete("form")
    async def apply_form_autocomplete(
        interaction: discord.Interaction, current: str
    ) -> list[app_commands.Choice[str]]:
        return _form_choices(services.forms.list_active(), current)

    @tree.command(name="bases", description="Show the state of every base")
    async def bases(interaction: discord.Interaction) -> None:
        await reply(interaction, embed=bases_embed(services.bases.list()))

    # ------------------------------------------------------------------
    # Staff session
    # ------------------------------------------------------------------
    @tree.command(name="staff_login", description="Unlock staff commands")
    @app_commands.describe(code="Staff code")
    async def staff_login(interaction: discord.Interaction, code: str) -> None:
        try:
            gate.login(interaction.user.id, code)
        except IntakeError as exc:
            await reply(interaction, exc.reason)
            return
        await reply(interaction, "Staff commands unlocked.")

    @tree.command(name="staff_logout", description="Lock staff commands again")
    async def staff_logout(interaction: discord.Interaction) -> None:
        gate.logout(interaction.user.id)
        await reply(interaction, "Logged out.")

    # ------------------------------------------------------------------
    # Application types
    # ------------------------------------------------------------------
    @tree.command(name="forms", description="List application types")
    @staff_only
    async def forms(interaction: discord.Interaction) -> None:
        await reply(interaction, embed=forms_embed(services.forms.list()))

    @tree.command(name="form_create", description="Create an application type")
    @app_commands.describe(
        name="Display name",
        guild_id="Guild (server) ID",
        role_id="Role granted on approval",
        questions="Questions separated by |",
    )
    @staff_only
    async def form_create(
        interaction: discord.Interaction,
        name: str,
        guild_id: str,
        role_id: str,
        questions: str | None = None,
    ) -> None:
        form = services.forms.create(name, guild_id, role_id, split_questions(questions))
        await reply(interaction, f"Application type `{form.id}` created.")

    @tree.command(name="form_update", description="Edit an application type")
    @app_commands.describe(
        form_id="Application type",
        name="Display name",
        guild_id="Guild (server) ID",
        role_id="Role granted on approval",
        questions="Questions separated by | (leave out to keep the current ones)",
    )
    @staff_only
    async def form_update(
        interaction: discord.Interaction,
        form_id: str,
        name: str,
        guild_id: str,
        role_id: str,
        questions: str | None = None,
    ) -> None:
        # Leaving the option out keeps the current questions.
        new_questions = split_questions(questions) if questions is not None else None
        form = services.forms.update(form_id, name, guild_id, role_id, new_questions)
        await reply(interaction, f"Application type `{form.id}` updated.")

    @tree.command(name="form_toggle", description="Enable or disable an application type")
    @staff_only
    async def form_toggle(interaction: discord.Interaction, form_id: str) -> None:
        form = services.forms.toggle_active(form_id)
        state = "active" if form.active else "inactive"
        await reply(interaction, f"Application type `{form.id}` is now {state}.")

    @tree.command(name="form_delete", description="Delete an application type")
    @staff_only
    async def form_delete(interaction: discord.Interaction, form_id: str) -> None:
        form = services.forms.delete(form_id)
        await reply(interaction, f"Application type `{form.id}` deleted.")

    async def any_form_autocomplete(
        interaction: discord.Interaction, current: str
    ) -> list[app_commands.Choice[str]]:
        return _form_choices(services.forms.list(), current)

    for command in (form_update, form_toggle, form_delete):
        command.autocomplete("form_id")(any_form_autocomplete)

    # ------------------------------------------------------------------
    # Applications
    # ------------------------------------------------------------------
    @tree.command(name="applications", description="List submitted applications")
    @app_commands.choices(
        status=[app_commands.Choice(name=s.value.title(), value=s.value) for s in ApplicationStatus]
    )
    @staff_only
    async def applications(
        interaction: discord.Interaction,
        status: app_commands.Choice[str] | None = None,
    ) -> None:
        wanted = ApplicationStatus(status.value) if status else None
        apps = services.applications.list(wanted)
        title = f"{wanted.value.title()} applications" if wanted else "Applications"
        await reply(interaction, embed=applications_embed(apps, title))

    @tree.command(name="application_create", description="Create an application for a member")
    @app_commands.describe(
        form="Application type (inactive types allowed)",
        user="Applicant",
        minecraft_ign="Applicant's Minecraft username",
        reason="Notes",
    )
    @staff_only
    async def application_create(
        interaction: discord.Interaction,
        form: str,
        user: discord.User,
        minecraft_ign: str | None = None,
        reason: str | None = None,
    ) -> None:
        selected = services.forms.find(form)
        if selected is None:
            await reply(interaction, "Invalid application type.")
            return
        applicant = Applicant(
            discord_user_id=str(user.id),
            discord_tag=str(user),
            minecraft_ign=minecraft_ign or "",
            reason=reason or "",
        )
        await start_application(interaction, selected, applicant, ApplicationSource.STAFF)

    application_create.autocomplete("form")(any_form_autocomplete)

    @tree.command(name="approve", description="Approve an application and grant its role")
    @staff_only
    async def approve(interaction: discord.Interaction, application_id: str) -> None:
        await run_review(interaction, services, application_id, ReviewDecision.APPROVE)

    @tree.command(name="reject", description="Reject an application and notify the applicant")
    @staff_only
    async def reject(interaction: discord.Interaction, application_id: str) -> None:
        await run_review(interaction, services, application_id, ReviewDecision.REJECT)

    async def pending_autocomplete(
        interaction: discord.Interaction, current: str
    ) -> list[app_commands.Choice[str]]:
        current_lower = current.lower()
        return [
            app_commands.Choice(name=f"{a.id} {a.form_name} {a.discord_tag}"[:100], value=a.id)
            for a in services.applications.list(ApplicationStatus.PENDING)
            if current_lower in a.id.lower() or current_lower in a.discord_tag.lower()
        ][:25]

    for command in (approve, reject):
        command.autocomplete("application_id")(pending_autocomplete)

    # ------------------------------------------------------------------
    # Bases
    # ------------------------------------------------------------------
    @tree.command(name="base_create", description="Add a base")
    @staff_only
    async def base_create(interaction: discord.Interaction, name: str) -> None:
        entry = services.bases.create(name)
        await reply(interaction, f"Base `{entry.id}` created.")

    @tree.command(name="base_set", description="Change the state of a base")
    @app_commands.choices(
        state=[
            app_commands.Choice(name=label, value=state.value)
            for state, label in BASE_STATE_LABELS.items()
        ]
    )
    @staff_only
    async def base_set(
        interaction: discord.Interaction,
        base_id: str,
        state: app_commands.Choice[str],
    ) -> None:
        entry = services.bases.set_state(base_id, state.value)
        await reply(interaction, f"{entry.name} is now {BASE_STATE_LABELS[entry.state]}.")

    @base_set.autocomplete("base_id")
    async def base_id_autocomplete(
        interaction: discord.Interaction, current: str
    ) -> list[app_commands.Choice[str]]:
        current_lower = current.lower()
        return [
            app_commands.Choice(name=b.name, value=b.id)
            for b in services.bases.list()
            if current_lower in b.id or current_lower in b.name.lower()
        ][:25]
