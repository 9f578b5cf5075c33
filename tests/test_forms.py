"""Tests for :class:`intake_bot.data.forms.FormRegistry`."""

import json

import pytest

from intake_bot.core.storage import CollectionStore
from intake_bot.data.forms import FORMS_KEY, FormRegistry, slugify
from intake_bot.errors import NotFoundError, ValidationError

GUILD = "111111111111111111"
ROLE = "333333333333333333"


def test_seeds_default_forms(services, settings) -> None:
    """A fresh deployment gets the base-member and vip forms."""
    forms = services.forms.list()
    assert [f.id for f in forms] == ["base-member", "vip"]
    assert all(f.active for f in forms)
    assert forms[0].guild_id == settings.guild_id
    assert forms[0].role_id == settings.base_member_role_id
    assert len(forms[0].questions) == 8
    assert len(forms[1].questions) == 4


def test_create_derives_unique_slug(services) -> None:
    first = services.forms.create("Builder Team!", GUILD, ROLE, ["Why?", "  ", "When?"])
    second = services.forms.create("builder team", GUILD, ROLE)
    vip = services.forms.create("VIP", GUILD, ROLE)

    assert first.id == "builder-team"
    assert first.questions == ["Why?", "When?"]
    assert second.id == "builder-team-2"
    assert vip.id == "vip-2"


def test_slugify_falls_back_for_symbol_only_names() -> None:
    assert slugify("!!!", sep="-", fallback="form", used=[]) == "form"
    assert slugify("!!!", sep="-", fallback="form", used=["form"]) == "form-2"


@pytest.mark.parametrize(
    ("name", "guild_id", "role_id", "message"),
    [
        ("  ", GUILD, ROLE, "Form name is required."),
        ("Team", "123", ROLE, "Invalid Guild ID."),
        ("Team", GUILD, "abc", "Invalid Role ID."),
    ],
)
def test_create_validates_input(services, name, guild_id, role_id, message) -> None:
    with pytest.raises(ValidationError, match=message):
        services.forms.create(name, guild_id, role_id)
    assert len(services.forms.list()) == 2


def test_update_toggle_delete(services) -> None:
    updated = services.forms.update("vip", "VIP+", GUILD, ROLE, ["Only one?"])
    assert (updated.id, updated.name, updated.role_id) == ("vip", "VIP+", ROLE)
    assert services.forms.find("vip").questions == ["Only one?"]

    assert services.forms.toggle_active("vip").active is False
    assert [f.id for f in services.forms.list_active()] == ["base-member"]
    assert services.forms.toggle_active("vip").active is True

    services.forms.delete("vip")
    assert services.forms.find("vip") is None


@pytest.mark.parametrize("op", ["toggle", "delete", "update"])
def test_unknown_form_raises_not_found(services, op) -> None:
    with pytest.raises(NotFoundError, match="Application type not found."):
        if op == "toggle":
            services.forms.toggle_active("nope")
        elif op == "delete":
            services.forms.delete("nope")
        else:
            services.forms.update("nope", "Name", GUILD, ROLE)


def test_load_repairs_stored_forms(tmp_path, settings) -> None:
    """Blank ids, duplicate ids and legacy fields are repaired on read."""
    store = CollectionStore(tmp_path)
    path = store.path_for(FORMS_KEY)
    path.write_text(
        json.dumps(
            [
                {"id": "team", "name": "Team", "question": "Why?"},
                {"id": "team", "name": "Team again", "active": "false"},
                {"name": ""},
            ]
        )
    )
    registry = FormRegistry(store, settings)

    forms = registry.list()
    assert [f.id for f in forms] == ["team", "team-2", "form-3"]
    assert forms[0].questions == ["Why?"]
    assert forms[0].guild_id == settings.guild_id
    assert forms[1].active is False
    assert forms[2].name == "Application 3"
    assert [r["id"] for r in json.loads(path.read_text())] == ["team", "team-2", "form-3"]


def test_deleting_every_form_reseeds_defaults(services) -> None:
    for form in services.forms.list():
        services.forms.delete(form.id)
    assert [f.id for f in services.forms.list()] == ["base-member", "vip"]


def test_update_without_questions_keeps_them(services) -> None:
    before = services.forms.find("vip").questions
    updated = services.forms.update("vip", "VIP", GUILD, ROLE)
    assert updated.role_id == ROLE
    assert updated.questions == before

    cleared = services.forms.update("vip", "VIP", GUILD, ROLE, [])
    assert cleared.questions == []
