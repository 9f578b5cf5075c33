"""Submitted applications and their review state machine.

An application starts ``PENDING`` and moves exactly once to ``APPROVED`` or
``REJECTED``. Approval is only recorded after the external authority confirms
the role grant; rejection is recorded first and the applicant is notified
afterwards on a best-effort basis.
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from ..adapters.base import AuthorityAdapter
from ..config import Settings
from ..core.models import (
    ANSWER_MAX,
    Applicant,
    Application,
    ApplicationForm,
    ApplicationSource,
    ApplicationStatus,
    ReviewDecision,
    clean_text,
    is_snowflake,
    utcnow,
)
from ..core.storage import CollectionStore
from ..errors import (
    AlreadyReviewedError,
    AuthorityError,
    IncompleteAnswersError,
    InvalidFormError,
    NotFoundError,
    ValidationError,
)
from .forms import FormRegistry

log = logging.getLogger("intake.applications")

APPLICATIONS_KEY = "base_member_applications"
REJECTION_NOTE = "Contact staff if you need more details."


def new_application_id(taken: set[str] | None = None) -> str:
    """Return a time-ordered id such as ``APP-1718000000000-123``."""
    taken = taken or set()
    while True:
        candidate = f"APP-{int(time.time() * 1000)}-{random.randint(100, 999)}"
        if candidate not in taken:
            return candidate


@dataclass
class ReviewOutcome:
    """Result of :meth:`ApplicationLifecycle.review`.

    ``warning`` is set when the decision was committed but a follow-up step
    (notifying the applicant) failed.
    """

    application: Application
    warning: str | None = None


class ApplicationLifecycle:
    """Owns the applications collection and its review transitions."""

    def __init__(
        self,
        store: CollectionStore,
        forms: FormRegistry,
        authority: AuthorityAdapter,
        settings: Settings,
    ) -> None:
        self.forms = forms
        self.authority = authority
        self.settings = settings
        self._collection = store.collection(APPLICATIONS_KEY, Application)
        # Applications whose review is waiting on the authority.
        self._in_flight: set[str] = set()

    # ------------------------------------------------------------------
    # Queries
    def get(self, application_id: str) -> Application | None:
        application_id = clean_text(application_id)
        return next((a for a in self._collection.load() if a.id == application_id), None)

    def list(self, status: ApplicationStatus | None = None) -> list[Application]:
        """Return applications newest first, optionally filtered by ``status``."""
        apps = self._collection.load()
        if status is not None:
            apps = [a for a in apps if a.status is ApplicationStatus(status)]
        return sorted(apps, key=lambda a: a.created_at, reverse=True)

    # ------------------------------------------------------------------
    # Submission
    def _resolve_form(self, form_id: str, source: ApplicationSource) -> ApplicationForm:
        form = self.forms.find(form_id)
        if form is None:
            raise InvalidFormError("Invalid application type.")
        if not form.active and source is not ApplicationSource.STAFF:
            raise InvalidFormError("Invalid application type.")
        return form

    @staticmethod
    def _checked_answers(questions: Sequence[str], answers: Sequence[Any]) -> list[str]:
        cleaned = [clean_text(a, ANSWER_MAX) for a in answers]
        if any(idx >= len(cleaned) or not cleaned[idx] for idx in range(len(questions))):
            raise IncompleteAnswersError("Please answer all custom questions.")
        cleaned = cleaned[: len(questions)]
        cleaned += [""] * (len(questions) - len(cleaned))
        return cleaned

    def submit(
        self,
        form_id: str,
        applicant: Applicant,
        answers: Sequence[Any] = (),
        source: ApplicationSource = ApplicationSource.PUBLIC,
    ) -> Application:
        """Validate and store a new ``PENDING`` application.

        Raises :class:`InvalidFormError` for an unknown form, or an inactive
        one unless ``source`` is staff, :class:`ValidationError` for a bad
        Discord user id and :class:`IncompleteAnswersError` when any of the
        form's questions is left blank. Nothing is written on failure.
        """
        source = ApplicationSource(source)
        form = self._resolve_form(form_id, source)
        if not is_snowflake(applicant.discord_user_id):
            raise ValidationError("Invalid Discord User ID.")
        questions = list(form.questions)
        custom_answers = self._checked_answers(questions, answers)

        with self._collection.mutate() as apps:
            now = utcnow()
            taken = {a.id for a in apps} | {
                str(r.get("id")) for r in self._collection.unparsed if isinstance(r, dict)
            }
            application = Application(
                **applicant.model_dump(),
                id=new_application_id(taken),
                form_id=form.id,
                form_name=form.name,
                target_guild_id=form.guild_id or self.settings.guild_id,
                target_role_id=form.role_id or self.settings.base_member_role_id,
                custom_questions=questions,
                custom_answers=custom_answers,
                status=ApplicationStatus.PENDING,
                source=source,
                created_at=now,
                updated_at=now,
            )
            apps.append(application)
        log.info(
            "Application %s submitted for form %s by %s (%s)",
            application.id,
            form.id,
            application.discord_user_id,
            source.value,
        )
        return application

    # ------------------------------------------------------------------
    # Review
    def _pending(self, application_id: str) -> Application:
        application = self.get(application_id)
        if application is None:
            raise NotFoundError("Application not found.")
        if not application.is_pending:
            raise AlreadyReviewedError("Application already reviewed.")
        if application.id in self._in_flight:
            raise AlreadyReviewedError("Application review already in progress.")
        return application

    def _commit(self, application_id: str, changes: dict[str, Any]) -> Application:
        """Apply ``changes`` to a still-pending application and persist it."""
        with self._collection.mutate() as apps:
            for idx, current in enumerate(apps):
                if current.id == application_id:
                    break
            else:
                raise NotFoundError("Application not found.")
            if not current.is_pending:
                raise AlreadyReviewedError("Application already reviewed.")
            apps[idx] = current.model_copy(update={**changes, "updated_at": utcnow()})
            return apps[idx]

    def _refresh_targets(self, application: Application) -> Application:
        form = self.forms.find(application.form_id)
        if form is None:
            return application
        changes: dict[str, Any] = {"form_name": form.name}
        if form.role_id:
            changes["target_role_id"] = form.role_id
        if form.guild_id:
            changes["target_guild_id"] = form.guild_id
        return application.model_copy(update=changes)

    async def review(
        self, application_id: str, decision: ReviewDecision, reviewer: str
    ) -> ReviewOutcome:
        """Approve or reject a pending application.

        A second review of the same application raises
        :class:`AlreadyReviewedError` before anything is sent to the
        authority. :class:`AuthorityError` from the grant call propagates and
        leaves the application ``PENDING``.
        """
        decision = ReviewDecision(decision)
        reviewer = clean_text(reviewer, 64) or "Staff"
        if decision is ReviewDecision.APPROVE:
            return await self._approve(application_id, reviewer)
        return await self._reject(application_id, reviewer)

    async def _approve(self, application_id: str, reviewer: str) -> ReviewOutcome:
        application = self._pending(application_id)
        self._in_flight.add(application.id)
        try:
            application = self._refresh_targets(application)
            try:
                result = await self.authority.grant_role(application)
            except AuthorityError as exc:
                log.warning("Role grant for %s failed: %s", application.id, exc.reason)
                raise
            now = utcnow()
            approved = self._commit(
                application.id,
                {
                    "form_name": application.form_name,
                    "target_guild_id": application.target_guild_id,
                    "target_role_id": application.target_role_id,
                    "status": ApplicationStatus.APPROVED,
                    "reviewed_by": reviewer,
                    "approved_at": now,
                    "approval_result": result,
                },
            )
        finally:
            self._in_flight.discard(application.id)
        log.info("Application %s approved by %s", approved.id, reviewer)
        return ReviewOutcome(approved)

    async def _reject(self, application_id: str, reviewer: str) -> ReviewOutcome:
        application = self._pending(application_id)
        rejected = self._commit(
            application.id,
            {
                "status": ApplicationStatus.REJECTED,
                "reviewed_by": reviewer,
                "rejected_at": utcnow(),
            },
        )
        log.info("Application %s rejected by %s", rejected.id, reviewer)
        try:
            await self.authority.notify_decision(
                rejected, ApplicationStatus.REJECTED, REJECTION_NOTE
            )
        except AuthorityError as exc:
            log.warning("Rejection notice for %s failed: %s", rejected.id, exc.reason)
            return ReviewOutcome(
                rejected, f"Application rejected but DM failed: {exc.reason}"
            )
        return ReviewOutcome(rejected)

    async def approve(self, application_id: str, reviewer: str) -> ReviewOutcome:
        return await self.review(application_id, ReviewDecision.APPROVE, reviewer)

    async def reject(self, application_id: str, reviewer: str) -> ReviewOutcome:
        return await self.review(application_id, ReviewDecision.REJECT, reviewer)
