"""Tests for :class:`intake_bot.data.bases.BaseRegistry`."""

import json

import pytest

from intake_bot.core.models import BaseState
from intake_bot.core.storage import CollectionStore
from intake_bot.data.bases import BASES_KEY, BaseRegistry
from intake_bot.errors import NotFoundError, ValidationError


def test_six_open_bases_by_default(services) -> None:
    bases = services.bases.list()
    assert [b.id for b in bases] == [f"looooootybase_{i}" for i in range(1, 7)]
    assert [b.name for b in bases] == [f"LooooootyBase {i}" for i in range(1, 7)]
    assert {b.state for b in bases} == {BaseState.OPEN}


def test_set_all_defaults_missing_and_unknown_to_open(services) -> None:
    result = services.bases.set_all(
        {
            "looooootybase_1": "closed",
            "looooootybase_2": "open_less",
            "looooootybase_3": "bogus",
            "looooootybase_99": "closed",
        }
    )
    states = {b.id: b.state for b in result}
    assert states["looooootybase_1"] is BaseState.CLOSED
    assert states["looooootybase_2"] is BaseState.OPEN_LESS
    assert states["looooootybase_3"] is BaseState.OPEN
    assert states["looooootybase_4"] is BaseState.OPEN
    assert "looooootybase_99" not in states
    assert services.bases.list() == result


def test_set_state_touches_only_one_base(services) -> None:
    services.bases.set_all({"looooootybase_2": "closed"})
    updated = services.bases.set_state("looooootybase_1", "open_less")

    assert updated.state is BaseState.OPEN_LESS
    states = {b.id: b.state for b in services.bases.list()}
    assert states["looooootybase_1"] is BaseState.OPEN_LESS
    assert states["looooootybase_2"] is BaseState.CLOSED


def test_set_state_unknown_base(services) -> None:
    with pytest.raises(NotFoundError, match="Base not found."):
        services.bases.set_state("looooootybase_42", "closed")


def test_create_base_slug_collisions(services) -> None:
    first = services.bases.create("LooooootyBase 1")
    second = services.bases.create("Nether Hub")
    third = services.bases.create("nether hub")

    assert first.id == "looooootybase_1_2"
    assert second.id == "nether_hub"
    assert third.id == "nether_hub_2"
    assert third.state is BaseState.OPEN
    assert len(services.bases.list()) == 9


def test_create_requires_name(services) -> None:
    with pytest.raises(ValidationError, match="Base name is required."):
        services.bases.create("   ")


def test_load_repairs_stored_bases(tmp_path) -> None:
    store = CollectionStore(tmp_path)
    path = store.path_for(BASES_KEY)
    path.write_text(
        json.dumps(
            [
                {"id": "Main Base", "name": "Main", "state": "CLOSED"},
                {"id": "mainbase", "name": "Copy"},
                {"id": "$$$"},
            ]
        )
    )
    bases = BaseRegistry(store).list()

    assert [b.id for b in bases] == ["mainbase", "mainbase_2", "looooootybase_3"]
    assert bases[0].state is BaseState.CLOSED
    assert bases[1].state is BaseState.OPEN
    assert bases[2].name == "LooooootyBase 3"
