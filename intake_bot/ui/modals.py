from __future__ import annotations

import logging
from dataclasses import dataclass, field

import discord

from ..auth import StaffGate
from ..commands.utils import ensure_review_channel, reply
from ..core.models import ANSWER_MAX, Applicant, Application, ApplicationForm, ApplicationSource
from ..data import Services
from ..errors import IntakeError
from .views import ReviewView, application_embed

log = logging.getLogger("intake.ui")

# Discord allows five text inputs per modal.
QUESTIONS_PER_PAGE = 5


@dataclass
class ApplicationDraft:
    """Answers collected so far across the pages of one submission."""

    form: ApplicationForm
    applicant: Applicant
    source: ApplicationSource = ApplicationSource.PUBLIC
    answers: list[str] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return max(1, -(-len(self.form.questions) // QUESTIONS_PER_PAGE))

    def page_questions(self, page: int) -> list[str]:
        start = page * QUESTIONS_PER_PAGE
        return self.form.questions[start : start + QUESTIONS_PER_PAGE]

    def record_page(self, page: int, values: list[str]) -> None:
        start = page * QUESTIONS_PER_PAGE
        needed = start + len(values)
        if len(self.answers) < needed:
            self.answers.extend([""] * (needed - len(self.answers)))
        self.answers[start:needed] = values


async def submit_draft(
    interaction: discord.Interaction,
    services: Services,
    gate: StaffGate,
    draft: ApplicationDraft,
) -> Application | None:
    """Store the drafted application and post it for review."""
    try:
        app = services.applications.submit(
            draft.form.id, draft.applicant, draft.answers, draft.source
        )
    except IntakeError as exc:
        await reply(interaction, exc.reason)
        return None
    await reply(interaction, f"Application submitted (`{app.id}`).")

    if interaction.guild is None:
        return app

    try:
        channel = await ensure_review_channel(interaction.guild, services.settings.review_channel)
        await channel.send(
            embed=application_embed(app), view=ReviewView(services, gate, app.id)
        )
    except discord.HTTPException:
        log.warning("Could not post application %s to the review channel", app.id)
    return app


class ContinueView(discord.ui.View):
    """Single button that opens the next page of questions."""

    def __init__(self, services: Services, gate: StaffGate, draft: ApplicationDraft, page: int) -> None:
        super().__init__(timeout=900)
        self.services = services
        self.gate = gate
        self.draft = draft
        self.page = page

    @discord.ui.button(label="Continue", style=discord.ButtonStyle.primary)
    async def next_page(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        await interaction.response.send_modal(
            ApplicationModal(self.services, self.gate, self.draft, self.page)
        )


class ApplicationModal(discord.ui.Modal):
    def __init__(self, services: Services, gate: StaffGate, draft: ApplicationDraft, page: int = 0) -> None:
        title = draft.form.name
        if draft.page_count > 1:
            title = f"{title} ({page + 1}/{draft.page_count})"
        super().__init__(title=title[:45])
        self.services = services
        self.gate = gate
        self.draft = draft
        self.page = page
        self.inputs: list[discord.ui.TextInput] = []
        offset = page * QUESTIONS_PER_PAGE
        for n, question in enumerate(draft.page_questions(page), start=offset + 1):
            text_input = discord.ui.TextInput(
                label=f"{n}. {question}"[:45],
                placeholder=question[:100],
                style=discord.TextStyle.long,
                required=True,
                max_length=ANSWER_MAX,
            )
            self.inputs.append(text_input)
            self.add_item(text_input)

    async def on_submit(self, interaction: discord.Interaction) -> None:
        self.draft.record_page(self.page, [i.value for i in self.inputs])
        next_page = self.page + 1
        if next_page < self.draft.page_count:
            await interaction.response.send_message(
                f"Page {self.page + 1} of {self.draft.page_count} saved.",
                view=ContinueView(self.services, self.gate, self.draft, next_page),
                ephemeral=True,
            )
            return
        await submit_draft(interaction, self.services, self.gate, self.draft)
