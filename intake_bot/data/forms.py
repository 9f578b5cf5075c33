"""Registry of application forms."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from typing import Any

from ..config import Settings
from ..core.models import (
    FORM_NAME_MAX,
    QUESTION_MAX,
    ApplicationForm,
    clean_list,
    clean_text,
    is_snowflake,
)
from ..core.storage import CollectionStore
from ..errors import NotFoundError, ValidationError

log = logging.getLogger("intake.forms")

FORMS_KEY = "application_forms"

BASE_MEMBER_QUESTIONS = [
    "When have you joined 2b2t for the first time?",
    "Have you leaked or griefed any base in the past?",
    "Do you own priority queue",
    "Were you part of any base that got griefed in the past?",
    "Is it okay for you to travel long distances on 2b2t?",
    "Why do you want to become a Base member",
    "Have you accidentally stumbled upon a major base in the past",
    "Add anything you want below",
]

VIP_QUESTIONS = [
    "Have you been a Base member for more than 2 months already",
    "Did you ever get warned by staff about something you did wrong at the base?",
    "Have you followed the rules of the group and never broke them?",
    "Add anything you will think that will increase your chances of becoming a VIP.",
]


def slugify(name: str, *, sep: str, fallback: str, used: Iterable[str]) -> str:
    """Derive an id from ``name`` that is not in ``used``.

    Collisions get a numeric suffix starting at 2 (``vip``, ``vip-2``, ...).
    """
    root = re.sub(r"[^a-z0-9]+", sep, name.lower()).strip(sep)[:40] or fallback
    taken = set(used)
    candidate = root
    n = 2
    while candidate in taken:
        candidate = f"{root}{sep}{n}"
        n += 1
    return candidate


def dedupe_ids(records: list[Any], *, sep: str) -> bool:
    """Rename records whose id repeats an earlier one. Returns ``True`` if any changed."""
    all_ids = {record.id for record in records}
    seen: set[str] = set()
    changed = False
    for record in records:
        if record.id in seen:
            record.id = slugify(record.id, sep=sep, fallback=record.id, used=all_ids | seen)
            changed = True
        seen.add(record.id)
    return changed


class FormRegistry:
    """Owns the ``application_forms`` collection."""

    def __init__(self, store: CollectionStore, settings: Settings) -> None:
        self.settings = settings
        self._collection = store.collection(
            FORMS_KEY,
            ApplicationForm,
            default=self.default_forms,
            normalize=self._normalize,
            seed_when_empty=True,
        )

    # ------------------------------------------------------------------
    # Normalisation
    def _normalize(self, raw: Any, idx: int) -> ApplicationForm:
        data = dict(raw) if isinstance(raw, dict) else {}
        if not clean_text(data.get("id")):
            data["id"] = f"form-{idx + 1}"
        if not clean_text(data.get("name")):
            data["name"] = f"Application {idx + 1}"
        if not clean_text(data.get("guildId")):
            data["guildId"] = self.settings.guild_id
        return ApplicationForm.model_validate(data)

    def default_forms(self) -> list[ApplicationForm]:
        """Built-in forms seeded on a fresh deployment."""
        guild_id = self.settings.guild_id
        return [
            ApplicationForm(
                id="base-member",
                name="Base Member",
                guild_id=guild_id,
                role_id=self.settings.base_member_role_id,
                questions=BASE_MEMBER_QUESTIONS,
            ),
            ApplicationForm(
                id="vip",
                name="VIP",
                guild_id=guild_id,
                role_id=self.settings.vip_role_id,
                questions=VIP_QUESTIONS,
            ),
        ]

    # ------------------------------------------------------------------
    # Queries
    def list(self) -> list[ApplicationForm]:
        with self._collection.mutate() as forms:
            if dedupe_ids(forms, sep="-"):
                log.warning("Renamed duplicate form ids in %s", FORMS_KEY)
            return list(forms)

    def list_active(self) -> list[ApplicationForm]:
        return [f for f in self.list() if f.active]

    def find(self, form_id: str) -> ApplicationForm | None:
        form_id = clean_text(form_id)
        return next((f for f in self.list() if f.id == form_id), None)

    # ------------------------------------------------------------------
    # Administrative operations
    @staticmethod
    def _validated(
        name: str, guild_id: str, role_id: str, questions: Sequence[str] | str
    ) -> tuple[str, str, str, list[str]]:
        name = clean_text(name, FORM_NAME_MAX)
        if not name:
            raise ValidationError("Form name is required.")
        if not is_snowflake(guild_id):
            raise ValidationError("Invalid Guild ID.")
        if not is_snowflake(role_id):
            raise ValidationError("Invalid Role ID.")
        return name, clean_text(guild_id), clean_text(role_id), clean_list(questions, QUESTION_MAX)

    def create(
        self,
        name: str,
        guild_id: str,
        role_id: str,
        questions: Sequence[str] | str = (),
    ) -> ApplicationForm:
        name, guild_id, role_id, cleaned = self._validated(name, guild_id, role_id, questions)
        with self._collection.mutate() as forms:
            form = ApplicationForm(
                id=slugify(name, sep="-", fallback="form", used=(f.id for f in forms)),
                name=name,
                guild_id=guild_id,
                role_id=role_id,
                questions=cleaned,
            )
            forms.append(form)
        log.info("Created application form %s (%s)", form.id, form.name)
        return form

    def _index(self, forms: list[ApplicationForm], form_id: str) -> int:
        form_id = clean_text(form_id)
        for idx, form in enumerate(forms):
            if form.id == form_id:
                return idx
        raise NotFoundError("Application type not found.")

    def update(
        self,
        form_id: str,
        name: str,
        guild_id: str,
        role_id: str,
        questions: Sequence[str] | str | None = None,
    ) -> ApplicationForm:
        """Replace a form's settings. ``questions=None`` keeps the current questions."""
        name, guild_id, role_id, cleaned = self._validated(name, guild_id, role_id, questions or ())
        with self._collection.mutate() as forms:
            idx = self._index(forms, form_id)
            changes: dict[str, Any] = {"name": name, "guild_id": guild_id, "role_id": role_id}
            if questions is not None:
                changes["questions"] = cleaned
            forms[idx] = forms[idx].model_copy(update=changes)
            form = forms[idx]
        log.info("Updated application form %s", form.id)
        return form

    def toggle_active(self, form_id: str) -> ApplicationForm:
        with self._collection.mutate() as forms:
            idx = self._index(forms, form_id)
            forms[idx] = forms[idx].model_copy(update={"active": not forms[idx].active})
            form = forms[idx]
        log.info("Form %s is now %s", form.id, "active" if form.active else "inactive")
        return form

    def delete(self, form_id: str) -> ApplicationForm:
        """Remove a form. Existing applications keep their snapshot."""
        with self._collection.mutate() as forms:
            form = forms.pop(self._index(forms, form_id))
        log.info("Deleted application form %s", form.id)
        return form
