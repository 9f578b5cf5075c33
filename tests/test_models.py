"""Tests for the record models and their normalisation rules."""

import pytest
from pydantic import ValidationError

from intake_bot.core.models import (
    ANSWER_MAX,
    FORM_NAME_MAX,
    Application,
    ApplicationForm,
    ApplicationSource,
    ApplicationStatus,
    BaseState,
    is_snowflake,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("12345678901234567", True),
        ("12345678901234567890", True),
        (" 123456789012345678 ", True),
        ("1234567890123456", False),
        ("123456789012345678901", False),
        ("12345678901234567a", False),
        (None, False),
    ],
)
def test_is_snowflake(value, expected) -> None:
    assert is_snowflake(value) is expected


def test_form_coercions() -> None:
    """Form records are trimmed, clamped and coerced from loose JSON."""
    form = ApplicationForm.model_validate(
        {
            "id": 7,
            "name": "x" * 200,
            "guildId": 111111111111111111,
            "questions": ["  Why?  ", "", None],
            "active": "false",
            "createdAt": "not a date",
        }
    )
    assert form.id == "7"
    assert len(form.name) == FORM_NAME_MAX
    assert form.guild_id == "111111111111111111"
    assert form.questions == ["Why?"]
    assert form.active is False
    assert form.created_at.tzinfo is not None


@pytest.mark.parametrize("raw", [True, None, "true", "yes", 0])
def test_form_active_unless_explicitly_false(raw) -> None:
    form = ApplicationForm.model_validate({"id": "f", "name": "F", "active": raw})
    assert form.active is True


def test_form_legacy_single_question() -> None:
    """Older records stored one ``question`` string instead of a list."""
    form = ApplicationForm.model_validate({"id": "f", "name": "F", "question": "Why?"})
    assert form.questions == ["Why?"]


def test_form_requires_name() -> None:
    with pytest.raises(ValidationError):
        ApplicationForm(id="f", name="   ")


def test_base_state_coerce() -> None:
    assert BaseState.coerce("CLOSED") is BaseState.CLOSED
    assert BaseState.coerce("open_less") is BaseState.OPEN_LESS
    assert BaseState.coerce("gone") is BaseState.OPEN
    assert BaseState.coerce(None) is BaseState.OPEN


def test_application_coercions() -> None:
    """Application records tolerate loose status, source and result values."""
    app = Application.model_validate(
        {
            "id": "APP-1",
            "formId": "vip",
            "discordUserId": 123456789012345678,
            "status": "approved",
            "source": "nonsense",
            "customQuestions": ["Q1", "Q2"],
            "customAnswers": ["a" * 600, ""],
            "approvalResult": "granted",
        }
    )
    assert app.discord_user_id == "123456789012345678"
    assert app.status is ApplicationStatus.APPROVED
    assert app.source is ApplicationSource.PUBLIC
    assert len(app.custom_answers[0]) == ANSWER_MAX
    assert app.custom_answers[1] == ""
    assert app.approval_result == {"raw": "granted"}
    assert not app.is_pending


def test_application_pairs_questions_with_answers() -> None:
    app = Application(
        id="APP-1",
        form_id="vip",
        discord_user_id="123456789012345678",
        custom_questions=["Q1", "Q2"],
        custom_answers=["A1"],
    )
    assert app.answered_questions() == [("Q1", "A1"), ("Q2", "")]


def test_application_serialises_with_camel_case_keys() -> None:
    app = Application(id="APP-1", form_id="vip", discord_user_id="123456789012345678")
    data = app.model_dump(mode="json", by_alias=True, exclude_none=True)
    assert data["formId"] == "vip"
    assert data["status"] == "PENDING"
    assert data["source"] == "web"
    assert "approvedAt" not in data
