"""Tests for the ``JSONCollection`` persistence layer."""

import json
from pathlib import Path

import pytest

from intake_bot.core.models import BaseEntry, BaseState
from intake_bot.core.storage import CollectionStore, JSONCollection


def two_bases() -> list[BaseEntry]:
    return [BaseEntry(id="a", name="A"), BaseEntry(id="b", name="B")]


def test_missing_file_is_replaced_by_persisted_default(tmp_path: Path) -> None:
    """A missing collection yields the default, which is written to disk."""
    path = tmp_path / "bases.json"
    coll = JSONCollection(path, BaseEntry, default=two_bases)

    assert [b.id for b in coll.load()] == ["a", "b"]
    assert [r["id"] for r in json.loads(path.read_text())] == ["a", "b"]


@pytest.mark.parametrize("content", ["{not json", '{"id": "a"}', '"text"'])
def test_unreadable_or_non_array_file_is_reset(tmp_path: Path, content: str) -> None:
    """Corrupt files and non-array documents are replaced by the default."""
    path = tmp_path / "bases.json"
    path.write_text(content)
    coll = JSONCollection(path, BaseEntry, default=two_bases)

    assert len(coll.load()) == 2
    assert isinstance(json.loads(path.read_text()), list)


def test_empty_array_kept_unless_seeding(tmp_path: Path) -> None:
    """An empty array is a valid collection unless ``seed_when_empty`` is set."""
    plain = tmp_path / "plain.json"
    plain.write_text("[]")
    assert JSONCollection(plain, BaseEntry, default=two_bases).load() == []

    seeded = tmp_path / "seeded.json"
    seeded.write_text("[]")
    coll = JSONCollection(seeded, BaseEntry, default=two_bases, seed_when_empty=True)
    assert len(coll.load()) == 2


def test_load_normalises_and_rewrites_records(tmp_path: Path) -> None:
    """Loose values are coerced and the repaired form is persisted."""
    path = tmp_path / "bases.json"
    path.write_text(json.dumps([{"id": " My Base! ", "name": " Home ", "state": "weird"}]))
    coll = JSONCollection(path, BaseEntry)

    (entry,) = coll.load()
    assert entry.id == "mybase"
    assert entry.name == "Home"
    assert entry.state is BaseState.OPEN
    assert json.loads(path.read_text()) == [{"id": "mybase", "name": "Home", "state": "open"}]


def test_malformed_records_are_kept_on_disk(tmp_path: Path, caplog) -> None:
    """Records that cannot be normalised are hidden but written back unchanged."""
    path = tmp_path / "bases.json"
    bad = {"id": "", "name": ""}
    path.write_text(json.dumps([{"id": "ok", "name": "Ok"}, bad, 7]))
    coll = JSONCollection(path, BaseEntry)

    with caplog.at_level("WARNING", logger="intake.storage"):
        records = coll.load()

    assert [r.id for r in records] == ["ok"]
    assert coll.unparsed == [bad, 7]
    assert "Keeping malformed record" in caplog.text
    assert json.loads(path.read_text()) == [{"id": "ok", "name": "Ok", "state": "open"}, bad, 7]

    with coll.mutate() as records:
        records.append(BaseEntry(id="new", name="New"))
    stored = json.loads(path.read_text())
    assert [r["id"] for r in stored[:2]] == ["ok", "new"]
    assert stored[2:] == [bad, 7]


def test_save_leaves_no_temporary_file(tmp_path: Path) -> None:
    """Saving writes through a temp file that is renamed into place."""
    path = tmp_path / "nested" / "bases.json"
    coll = JSONCollection(path, BaseEntry)
    coll.save(two_bases())

    assert path.exists()
    assert list(path.parent.iterdir()) == [path]


def test_mutate_saves_only_on_success(tmp_path: Path) -> None:
    """Changes made inside ``mutate`` are discarded when the block raises."""
    coll = JSONCollection(tmp_path / "bases.json", BaseEntry, default=two_bases)

    with coll.mutate() as records:
        records.append(BaseEntry(id="c", name="C"))
    assert len(coll.load()) == 3

    with pytest.raises(RuntimeError):
        with coll.mutate() as records:
            records.clear()
            raise RuntimeError("boom")
    assert len(coll.load()) == 3


def test_store_returns_one_collection_per_key(tmp_path: Path) -> None:
    """The same key always yields the same collection object."""
    store = CollectionStore(tmp_path)
    first = store.collection("bases", BaseEntry)
    assert store.collection("bases", BaseEntry) is first
    assert first.path == tmp_path / "bases.json"
    assert store.collection("other", BaseEntry) is not first
