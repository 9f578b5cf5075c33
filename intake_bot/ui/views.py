from __future__ import annotations

import logging

import discord

from ..auth import StaffGate
from ..commands.utils import has_staff_access, reply
from ..core.models import (
    BASE_STATE_LABELS,
    Application,
    ApplicationForm,
    ApplicationStatus,
    BaseEntry,
    BaseState,
    ReviewDecision,
)
from ..data import Services
from ..errors import IntakeError

log = logging.getLogger("intake.ui")

STATUS_COLORS = {
    ApplicationStatus.PENDING: discord.Color.blurple(),
    ApplicationStatus.APPROVED: discord.Color.green(),
    ApplicationStatus.REJECTED: discord.Color.red(),
}

BASE_STATE_ICONS = {
    BaseState.OPEN: "🟢",
    BaseState.OPEN_LESS: "🟡",
    BaseState.CLOSED: "🔴",
}


# Discord rejects embeds whose text adds up to more than this.
EMBED_CHAR_LIMIT = 6000
# Room kept for the "more answers" field.
OVERFLOW_RESERVE = 64
MIN_ANSWER_ROOM = 16


def _clip(text: str, limit: int = 1024) -> str:
    text = text or "-"
    return text if len(text) <= limit else text[: limit - 1] + "…"


def application_embed(app: Application) -> discord.Embed:
    e = discord.Embed(
        title=_clip(f"{app.form_name or app.form_id} application", 256),
        color=STATUS_COLORS[app.status],
    )
    applicant = f"<@{app.discord_user_id}>"
    if app.discord_tag:
        applicant += f" ({app.discord_tag})"
    e.add_field(name="Applicant", value=applicant, inline=True)
    e.add_field(name="Minecraft IGN", value=_clip(app.minecraft_ign), inline=True)
    e.add_field(name="Role To Grant", value=app.target_role_id or "-", inline=True)
    if app.reason:
        e.add_field(name="Reason", value=_clip(app.reason), inline=False)
    footer = f"{app.id} • {app.status.value} • {app.source.value}"
    if app.reviewed_by:
        footer += f" • reviewed by {app.reviewed_by}"
    e.set_footer(text=footer)
    e.timestamp = app.created_at

    # Embeds hold at most 25 fields.
    pairs = app.answered_questions()[:20]
    for shown, (question, answer) in enumerate(pairs):
        name = _clip(question, 256)
        room = EMBED_CHAR_LIMIT - OVERFLOW_RESERVE - len(e) - len(name)
        if room < MIN_ANSWER_ROOM:
            e.add_field(
                name="More answers",
                value=f"{len(pairs) - shown} answer(s) not shown.",
                inline=False,
            )
            break
        e.add_field(name=name, value=_clip(answer, min(1024, room)), inline=False)
    return e


def applications_embed(apps: list[Application], title: str = "Applications") -> discord.Embed:
    e = discord.Embed(title=title)
    if not apps:
        e.description = "No applications."
        return e
    for app in apps[:25]:
        e.add_field(
            name=f"{app.id} | {app.status.value}",
            value=f"{app.form_name} • <@{app.discord_user_id}> • {app.created_at:%Y-%m-%d %H:%M}Z",
            inline=False,
        )
    return e


def forms_embed(forms: list[ApplicationForm]) -> discord.Embed:
    e = discord.Embed(title="Application types")
    if not forms:
        e.description = "No application types configured."
        return e
    for form in forms[:25]:
        state = "active" if form.active else "inactive"
        e.add_field(
            name=f"{form.name} (`{form.id}`, {state})",
            value=(
                f"Guild: {form.guild_id or '-'} | Role: {form.role_id or '-'}\n"
                f"Questions: {len(form.questions)}"
            ),
            inline=False,
        )
    return e


def bases_embed(bases: list[BaseEntry]) -> discord.Embed:
    lines = [
        f"{BASE_STATE_ICONS[b.state]} **{b.name}** (`{b.id}`) | {BASE_STATE_LABELS[b.state]}"
        for b in bases
    ]
    return discord.Embed(
        title="State of bases", description="\n".join(lines) or "No bases."
    )


async def run_review(
    interaction: discord.Interaction,
    services: Services,
    application_id: str,
    decision: ReviewDecision,
) -> Application | None:
    """Review an application on behalf of ``interaction.user`` and report back."""
    await interaction.response.defer(ephemeral=True, thinking=True)
    reviewer = getattr(interaction.user, "display_name", None) or str(interaction.user)
    try:
        outcome = await services.applications.review(application_id, decision, reviewer)
    except IntakeError as exc:
        verb = "Role grant failed" if decision is ReviewDecision.APPROVE else "Rejection failed"
        await reply(interaction, f"{verb}: {exc.reason}")
        return None
    if outcome.warning:
        await reply(interaction, outcome.warning)
    elif decision is ReviewDecision.APPROVE:
        await reply(interaction, "Application approved and role granted.")
    else:
        await reply(interaction, "Application rejected and user notified.")
    return outcome.application


class ReviewView(discord.ui.View):
    """Approve/Reject buttons attached to a posted application."""

    def __init__(self, services: Services, gate: StaffGate, application_id: str) -> None:
        super().__init__(timeout=None)
        self.services = services
        self.gate = gate
        self.application_id = application_id

    async def _review(self, interaction: discord.Interaction, decision: ReviewDecision) -> None:
        if not has_staff_access(interaction, self.gate):
            await reply(interaction, "Only staff can review applications.")
            return
        app = await run_review(interaction, self.services, self.application_id, decision)
        if app is None or interaction.message is None:
            return
        try:
            await interaction.message.edit(embed=application_embed(app), view=None)
        except discord.HTTPException:
            log.warning("Could not update review message for %s", app.id)

    @discord.ui.button(label="Approve", style=discord.ButtonStyle.success)
    async def approve(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        await self._review(interaction, ReviewDecision.APPROVE)

    @discord.ui.button(label="Reject", style=discord.ButtonStyle.danger)
    async def reject(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        await self._review(interaction, ReviewDecision.REJECT)
