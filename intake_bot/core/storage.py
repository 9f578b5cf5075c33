"""JSON-file collections with read-repair on every load."""

from __future__ import annotations

import json
import logging
import os
import threading
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

log = logging.getLogger("intake.storage")

M = TypeVar("M", bound=BaseModel)

Normalizer = Callable[[Any, int], M]


class JSONCollection(Generic[M]):
    """A named collection persisted as one JSON array.

    Every :meth:`load` normalises the stored records and writes the
    normalised form straight back, so malformed data heals on the next read.
    A missing file, a parse failure or anything that is not an array is
    replaced by ``default()`` which is persisted immediately.

    Stored items that cannot be normalised at all are left out of the
    returned records but written back unchanged after them, so a read never
    loses data.

    All mutations go through :meth:`mutate`, which holds the collection's
    lock for the whole load -> transform -> save cycle.
    """

    def __init__(
        self,
        path: Path,
        model: type[M],
        *,
        default: Callable[[], list[M]] = list,
        normalize: Normalizer | None = None,
        seed_when_empty: bool = False,
    ) -> None:
        """Initialise the collection stored at ``path``."""
        self.path = path
        self.model = model
        self._default = default
        self._normalize = normalize or (lambda raw, _idx: model.model_validate(raw))
        self._seed_when_empty = seed_when_empty
        self._lock = threading.RLock()
        # Raw items from the last load that failed validation.
        self._unparsed: list[Any] = []

    @property
    def name(self) -> str:
        return self.path.stem

    @property
    def unparsed(self) -> list[Any]:
        """Stored items kept on disk but hidden from :meth:`load`."""
        return list(self._unparsed)

    # ------------------------------------------------------------------
    # Internal helpers
    def _read_raw(self) -> list[Any] | None:
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError):
            log.warning("Collection %s is unreadable; resetting to default", self.name)
            return None
        if not isinstance(data, list):
            log.warning("Collection %s is not an array; resetting to default", self.name)
            return None
        return data

    def _serialise(self, records: Iterable[M]) -> list[Any]:
        data: list[Any] = [
            r.model_dump(mode="json", by_alias=True, exclude_none=True) for r in records
        ]
        return data + self._unparsed

    # ------------------------------------------------------------------
    def load(self) -> list[M]:
        """Return the normalised records, repairing the file on disk."""
        with self._lock:
            raw = self._read_raw()
            if raw is None or (self._seed_when_empty and not raw):
                self._unparsed = []
                defaults = list(self._default())
                self.save(defaults)
                return defaults

            records: list[M] = []
            unparsed: list[Any] = []
            for idx, item in enumerate(raw):
                try:
                    records.append(self._normalize(item, idx))
                except SchemaError as exc:
                    if item not in self._unparsed:
                        log.warning(
                            "Keeping malformed record %d of %s as stored: %r (%s)",
                            idx,
                            self.name,
                            item,
                            exc,
                        )
                    unparsed.append(item)
            self._unparsed = unparsed
            self.save(records)
            return records

    def save(self, records: Iterable[M]) -> None:
        """Persist ``records`` atomically, followed by any unparsed items."""
        with self._lock:
            data = self._serialise(records)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_name(self.path.name + ".tmp")
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp, self.path)

    @contextmanager
    def mutate(self) -> Iterator[list[M]]:
        """Yield the loaded records and save them when the block succeeds."""
        with self._lock:
            records = self.load()
            yield records
            self.save(records)


class CollectionStore:
    """Directory of independently keyed JSON collections."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)
        self._collections: dict[str, JSONCollection[Any]] = {}

    def path_for(self, key: str) -> Path:
        return self.root / f"{key}.json"

    def collection(
        self,
        key: str,
        model: type[M],
        *,
        default: Callable[[], list[M]] = list,
        normalize: Normalizer | None = None,
        seed_when_empty: bool = False,
    ) -> JSONCollection[M]:
        """Return the collection registered under ``key``, creating it once.

        A key always maps to the same :class:`JSONCollection`, so every
        caller shares one lock per file.
        """
        existing = self._collections.get(key)
        if existing is not None:
            return existing
        coll = JSONCollection(
            self.path_for(key),
            model,
            default=default,
            normalize=normalize,
            seed_when_empty=seed_when_empty,
        )
        self._collections[key] = coll
        return coll
