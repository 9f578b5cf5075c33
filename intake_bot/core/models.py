"""Record models for application forms, applications and bases.

The models are implemented using :mod:`pydantic` so that every record read
from disk goes through a single normalisation pass: text is trimmed and
clamped, loosely typed values are coerced and missing timestamps are filled
in. Field aliases match the camelCase layout of the JSON collection files.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

SNOWFLAKE_RE = re.compile(r"^\d{17,20}$")

FORM_NAME_MAX = 80
QUESTION_MAX = 160
ANSWER_MAX = 500
BASE_NAME_MAX = 60
DISCORD_TAG_MAX = 64
MINECRAFT_IGN_MAX = 32
REASON_MAX = 1000


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


def is_snowflake(value: Any) -> bool:
    """Return ``True`` for a 17-20 digit Discord identifier."""
    return bool(SNOWFLAKE_RE.match(clean_text(value)))


def clean_text(value: Any, max_len: int | None = None) -> str:
    text = "" if value is None else str(value).strip()
    return text[:max_len] if max_len is not None else text


def sanitize_base_id(value: Any) -> str:
    return re.sub(r"[^a-z0-9_\-]", "", clean_text(value).lower())


def clean_list(value: Any, max_len: int, *, keep_blank: bool = False) -> list[str]:
    """Coerce a list or a single value to a list of clamped strings."""
    if isinstance(value, (list, tuple)):
        items = list(value)
    elif value:
        items = [value]
    else:
        items = []
    cleaned = [clean_text(item, max_len) for item in items]
    return cleaned if keep_blank else [item for item in cleaned if item]


def parse_timestamp(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).strip())
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


_RECORD_CONFIG = ConfigDict(populate_by_name=True, extra="ignore")


class ApplicationForm(BaseModel):
    """A configurable application type.

    Attributes
    ----------
    id:
        Slug, unique within the form registry.
    name:
        Display label shown to applicants.
    guild_id, role_id:
        The Discord guild and role granted on approval.
    questions:
        Ordered custom questions; answers pair with them by position.
    active:
        Inactive forms are hidden from public submission only.

    """

    model_config = _RECORD_CONFIG

    id: str
    name: str
    guild_id: str = Field("", alias="guildId")
    role_id: str = Field("", alias="roleId")
    questions: list[str] = Field(default_factory=list)
    active: bool = True
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")

    @model_validator(mode="before")
    @classmethod
    def _legacy_single_question(cls, data: Any) -> Any:
        if isinstance(data, dict) and "questions" not in data and data.get("question"):
            data = {**data, "questions": [data["question"]]}
        return data

    @field_validator("id", mode="before")
    @classmethod
    def _require_id(cls, value: Any) -> str:
        value = clean_text(value)
        if not value:
            raise ValueError("form id must not be blank")
        return value

    @field_validator("name", mode="before")
    @classmethod
    def _clamp_name(cls, value: Any) -> str:
        name = clean_text(value, FORM_NAME_MAX)
        if not name:
            raise ValueError("form name must not be blank")
        return name

    @field_validator("guild_id", "role_id", mode="before")
    @classmethod
    def _strip_ids(cls, value: Any) -> str:
        return clean_text(value)

    @field_validator("questions", mode="before")
    @classmethod
    def _clean_questions(cls, value: Any) -> list[str]:
        return clean_list(value, QUESTION_MAX)

    @field_validator("active", mode="before")
    @classmethod
    def _coerce_active(cls, value: Any) -> bool:
        # Only an explicit false disables a form.
        if value is False:
            return False
        return not (isinstance(value, str) and value.strip().lower() == "false")

    @field_validator("created_at", mode="before")
    @classmethod
    def _default_created(cls, value: Any) -> datetime:
        return parse_timestamp(value) or utcnow()


class BaseState(str, Enum):
    OPEN = "open"
    OPEN_LESS = "open_less"
    CLOSED = "closed"

    @classmethod
    def coerce(cls, value: Any) -> BaseState:
        try:
            return cls(clean_text(value).lower())
        except ValueError:
            return cls.OPEN


BASE_STATE_LABELS = {
    BaseState.OPEN: "Open",
    BaseState.OPEN_LESS: "Open but less likely to be used",
    BaseState.CLOSED: "Closed",
}


class BaseEntry(BaseModel):
    """A named base and its availability."""

    model_config = _RECORD_CONFIG

    id: str
    name: str
    state: BaseState = BaseState.OPEN

    @field_validator("id", mode="before")
    @classmethod
    def _sanitize_id(cls, value: Any) -> str:
        base_id = sanitize_base_id(value)
        if not base_id:
            raise ValueError("base id must contain [a-z0-9_-]")
        return base_id

    @field_validator("name", mode="before")
    @classmethod
    def _clamp_name(cls, value: Any) -> str:
        name = clean_text(value, BASE_NAME_MAX)
        if not name:
            raise ValueError("base name must not be blank")
        return name

    @field_validator("state", mode="before")
    @classmethod
    def _coerce_state(cls, value: Any) -> BaseState:
        return BaseState.coerce(value)


class ApplicationStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ApplicationSource(str, Enum):
    PUBLIC = "web"
    STAFF = "staff"


class ReviewDecision(str, Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"


class Applicant(BaseModel):
    """Identity and contact fields supplied with a submission."""

    model_config = _RECORD_CONFIG

    discord_user_id: str = Field(alias="discordUserId")
    discord_tag: str = Field("", alias="discordTag")
    minecraft_ign: str = Field("", alias="minecraftIgn")
    reason: str = ""

    @field_validator("discord_user_id", mode="before")
    @classmethod
    def _strip_user_id(cls, value: Any) -> str:
        return clean_text(value)

    @field_validator("discord_tag", mode="before")
    @classmethod
    def _clamp_tag(cls, value: Any) -> str:
        return clean_text(value, DISCORD_TAG_MAX)

    @field_validator("minecraft_ign", mode="before")
    @classmethod
    def _clamp_ign(cls, value: Any) -> str:
        return clean_text(value, MINECRAFT_IGN_MAX)

    @field_validator("reason", mode="before")
    @classmethod
    def _clamp_reason(cls, value: Any) -> str:
        return clean_text(value, REASON_MAX)


class Application(Applicant):
    """One applicant's submission against a form.

    ``form_name`` and the ``target_*`` ids are snapshots of the form taken at
    submission time and refreshed from the live form when it is approved.
    """

    id: str
    form_id: str = Field(alias="formId")
    form_name: str = Field("", alias="formName")
    target_guild_id: str = Field("", alias="targetGuildId")
    target_role_id: str = Field("", alias="targetRoleId")
    custom_questions: list[str] = Field(default_factory=list, alias="customQuestions")
    custom_answers: list[str] = Field(default_factory=list, alias="customAnswers")
    status: ApplicationStatus = ApplicationStatus.PENDING
    source: ApplicationSource = ApplicationSource.PUBLIC
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")
    approved_at: datetime | None = Field(None, alias="approvedAt")
    rejected_at: datetime | None = Field(None, alias="rejectedAt")
    reviewed_by: str = Field("", alias="reviewedBy")
    approval_result: dict[str, Any] | None = Field(None, alias="approvalResult")

    @field_validator("id", "form_id", mode="before")
    @classmethod
    def _require_ids(cls, value: Any) -> str:
        value = clean_text(value)
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("form_name", "target_guild_id", "target_role_id", "reviewed_by", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> str:
        return clean_text(value)

    @field_validator("custom_questions", mode="before")
    @classmethod
    def _clean_questions(cls, value: Any) -> list[str]:
        return clean_list(value, QUESTION_MAX)

    @field_validator("custom_answers", mode="before")
    @classmethod
    def _clean_answers(cls, value: Any) -> list[str]:
        # Blank answers are kept so that answers stay aligned with questions.
        return clean_list(value, ANSWER_MAX, keep_blank=True)

    @field_validator("status", mode="before")
    @classmethod
    def _upper_status(cls, value: Any) -> str:
        return clean_text(value).upper() or ApplicationStatus.PENDING.value

    @field_validator("source", mode="before")
    @classmethod
    def _coerce_source(cls, value: Any) -> ApplicationSource:
        try:
            return ApplicationSource(clean_text(value).lower())
        except ValueError:
            return ApplicationSource.PUBLIC

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _default_timestamp(cls, value: Any) -> datetime:
        return parse_timestamp(value) or utcnow()

    @field_validator("approved_at", "rejected_at", mode="before")
    @classmethod
    def _optional_timestamp(cls, value: Any) -> datetime | None:
        return parse_timestamp(value)

    @field_validator("approval_result", mode="before")
    @classmethod
    def _wrap_result(cls, value: Any) -> dict[str, Any] | None:
        if value is None or isinstance(value, dict):
            return value
        return {"raw": value}

    @property
    def is_pending(self) -> bool:
        return self.status is ApplicationStatus.PENDING

    def answered_questions(self) -> list[tuple[str, str]]:
        """Pair each captured question with its answer."""
        answers = self.custom_answers + [""] * (
            len(self.custom_questions) - len(self.custom_answers)
        )
        return list(zip(self.custom_questions, answers))
