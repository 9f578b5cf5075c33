"""Registry of bases and their open/closed state."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from ..core.models import BASE_NAME_MAX, BaseEntry, BaseState, clean_text, sanitize_base_id
from ..core.storage import CollectionStore
from ..errors import NotFoundError, ValidationError
from .forms import dedupe_ids, slugify

log = logging.getLogger("intake.bases")

BASES_KEY = "base_states"
DEFAULT_BASE_COUNT = 6


def default_bases() -> list[BaseEntry]:
    return [
        BaseEntry(id=f"looooootybase_{i}", name=f"LooooootyBase {i}", state=BaseState.OPEN)
        for i in range(1, DEFAULT_BASE_COUNT + 1)
    ]


def _normalize(raw: Any, idx: int) -> BaseEntry:
    data = dict(raw) if isinstance(raw, dict) else {}
    return BaseEntry.model_validate(
        {
            "id": sanitize_base_id(data.get("id")) or f"looooootybase_{idx + 1}",
            "name": clean_text(data.get("name"), BASE_NAME_MAX) or f"LooooootyBase {idx + 1}",
            "state": data.get("state"),
        }
    )


class BaseRegistry:
    """Owns the ``base_states`` collection."""

    def __init__(self, store: CollectionStore) -> None:
        self._collection = store.collection(
            BASES_KEY,
            BaseEntry,
            default=default_bases,
            normalize=_normalize,
            seed_when_empty=True,
        )

    def list(self) -> list[BaseEntry]:
        with self._collection.mutate() as bases:
            if dedupe_ids(bases, sep="_"):
                log.warning("Renamed duplicate base ids in %s", BASES_KEY)
            return list(bases)

    def set_all(self, states: Mapping[str, Any]) -> list[BaseEntry]:
        """Replace the state of every known base.

        ``states`` maps base ids to their desired state; a base that is
        missing from the mapping, or mapped to an unknown value, becomes
        ``open``.
        """
        with self._collection.mutate() as bases:
            for idx, entry in enumerate(bases):
                bases[idx] = entry.model_copy(
                    update={"state": BaseState.coerce(states.get(entry.id))}
                )
            result = list(bases)
        log.info("Saved base states for %d bases", len(result))
        return result

    def set_state(self, base_id: str, state: str) -> BaseEntry:
        """Change one base, keeping every other base as it is."""
        base_id = clean_text(base_id)
        with self._collection.mutate() as bases:
            for idx, entry in enumerate(bases):
                if entry.id == base_id:
                    bases[idx] = entry.model_copy(update={"state": BaseState.coerce(state)})
                    updated = bases[idx]
                    break
            else:
                raise NotFoundError("Base not found.")
        log.info("Base %s is now %s", updated.id, updated.state.value)
        return updated

    def create(self, name: str) -> BaseEntry:
        name = clean_text(name, BASE_NAME_MAX)
        if not name:
            raise ValidationError("Base name is required.")
        with self._collection.mutate() as bases:
            entry = BaseEntry(
                id=slugify(name, sep="_", fallback="base", used=(b.id for b in bases)),
                name=name,
                state=BaseState.OPEN,
            )
            bases.append(entry)
        log.info("Created base %s (%s)", entry.id, entry.name)
        return entry
