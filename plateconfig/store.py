"""
Dimension and socket stores with pluggable persistence.

The stores are the authoritative in-memory state; a repository only loads
and saves it.  Persisted layout (one JSON document)::

  {
    "dimensions":  [{"width": "151.5", "height": "40"}, ...],
    "activeIndex": 0,
    "sockets":     [{"id": ..., "plate_index": 0, "count": 2, ...}, ...]
  }

Every socket-collection update replaces the whole tuple in one
assignment, so readers never see a half-applied change.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Iterable, Sequence

from plateconfig.config import DIMENSION_RULES, SOCKET_RULES, DimensionRules, SocketRules
from plateconfig.layout.dimensions import (
    DimensionValue, can_delete_plate, initial_dimension, parse_plate,
)
from plateconfig.layout.models import (
    PlateDimension, SocketGroup, SocketGroupError, Verdict,
)
from plateconfig.layout.serialization import (
    dimension_to_dict, parse_dimension, parse_socket_group, socket_group_to_dict,
)
from plateconfig.layout.validation import validate_socket_group


log = logging.getLogger(__name__)


# ── Repositories ───────────────────────────────────────────────────


class Repository:
    """Key/value persistence for the configurator.

    Subclasses implement ``_read`` and ``_write`` for the whole document;
    the typed accessors below never raise on bad stored data.
    """

    def _read(self) -> dict:
        raise NotImplementedError

    def _write(self, doc: dict) -> None:
        raise NotImplementedError

    def _get(self, key: str) -> Any | None:
        return self._read().get(key)

    def _set(self, key: str, value: Any) -> None:
        doc = self._read()
        doc[key] = value
        self._write(doc)

    def load_dimensions(self) -> list[DimensionValue] | None:
        raw = self._get("dimensions")
        if not isinstance(raw, list):
            return None
        return [parse_dimension(d) for d in raw if isinstance(d, dict)]

    def save_dimensions(self, dims: Sequence[DimensionValue]) -> None:
        self._set("dimensions", [dimension_to_dict(d) for d in dims])

    def load_active_index(self) -> int:
        raw = self._get("activeIndex")
        try:
            return int(raw) if raw is not None else 0
        except (TypeError, ValueError):
            return 0

    def save_active_index(self, index: int) -> None:
        self._set("activeIndex", index)

    def load_sockets(self) -> list[SocketGroup]:
        stored = self._get("sockets")
        if stored is None:
            return []
        if not isinstance(stored, list):
            log.warning("Ignoring stored sockets: expected a list, got %r", stored)
            return []
        groups = []
        for raw in stored:
            if not isinstance(raw, dict):
                log.warning("Dropping unreadable socket group %r", raw)
                continue
            try:
                groups.append(parse_socket_group(raw))
            except SocketGroupError as exc:
                log.warning("Dropping unreadable socket group %r: %s", raw, exc)
        return groups

    def save_sockets(self, groups: Sequence[SocketGroup]) -> None:
        self._set("sockets", [socket_group_to_dict(g) for g in groups])


class InMemoryRepository(Repository):
    def __init__(self, doc: dict | None = None) -> None:
        self.doc: dict = dict(doc or {})

    def _read(self) -> dict:
        return dict(self.doc)

    def _write(self, doc: dict) -> None:
        self.doc = doc


class JsonFileRepository(Repository):
    """One JSON document on disk; a missing or corrupt file reads as empty."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            doc = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            log.warning("Could not read %s: %s", self.path, exc)
            return {}
        return doc if isinstance(doc, dict) else {}

    def _write(self, doc: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Atomic swap: readers see either the old or the new document.
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(doc, indent=2), encoding="utf-8")
        tmp.replace(self.path)


# ── Dimension store ────────────────────────────────────────────────


class DimensionStore:
    """Ordered plate dimension strings plus the active plate index."""

    def __init__(
        self,
        repository: Repository | None = None,
        rules: DimensionRules = DIMENSION_RULES,
    ) -> None:
        self._repo = repository or InMemoryRepository()
        self._rules = rules
        loaded = self._repo.load_dimensions()
        self._dims: tuple[DimensionValue, ...] = (
            tuple(loaded) if loaded else (initial_dimension(rules),)
        )
        self._active_index = self._repo.load_active_index()

    @property
    def dimensions(self) -> tuple[DimensionValue, ...]:
        return self._dims

    @property
    def active_index(self) -> int:
        return self._active_index

    def set_active_index(self, index: int) -> None:
        self._active_index = index
        self._repo.save_active_index(index)

    def plates(self) -> list[PlateDimension]:
        return [parse_plate(d) for d in self._dims]

    def set_dimensions(self, dims: Iterable[DimensionValue]) -> None:
        self._dims = tuple(dims)
        self._repo.save_dimensions(self._dims)
        log.info("Stored %d plate dimension(s)", len(self._dims))

    def add(self, dim: DimensionValue) -> int:
        self.set_dimensions(self._dims + (dim,))
        return len(self._dims) - 1

    def update(self, index: int, dim: DimensionValue) -> None:
        if not 0 <= index < len(self._dims):
            raise IndexError(f"No plate #{index + 1}")
        dims = list(self._dims)
        dims[index] = dim
        self.set_dimensions(dims)

    def remove(self, index: int) -> bool:
        """Remove a plate; refuses to drop the last one."""
        if not 0 <= index < len(self._dims) or not can_delete_plate(len(self._dims), self._rules):
            return False
        self.set_dimensions(self._dims[:index] + self._dims[index + 1:])
        if self._active_index > index:
            self.set_active_index(self._active_index - 1)
        elif self._active_index >= len(self._dims):
            self.set_active_index(len(self._dims) - 1)
        return True


# ── Socket store ───────────────────────────────────────────────────


def new_socket_id() -> str:
    return uuid.uuid4().hex[:12]


class SocketStore:
    """Authoritative socket group collection."""

    def __init__(
        self,
        repository: Repository | None = None,
        rules: SocketRules = SOCKET_RULES,
    ) -> None:
        self._repo = repository or InMemoryRepository()
        self.rules = rules
        self._groups: tuple[SocketGroup, ...] = tuple(self._repo.load_sockets())
        self._dirty = False

    @property
    def groups(self) -> tuple[SocketGroup, ...]:
        return self._groups

    def get(self, socket_id: str) -> SocketGroup | None:
        for g in self._groups:
            if g.id == socket_id:
                return g
        return None

    def on_plate(self, plate_index: int) -> list[SocketGroup]:
        return [g for g in self._groups if g.plate_index == plate_index]

    def update(
        self,
        fn: Callable[[tuple[SocketGroup, ...]], Iterable[SocketGroup]],
        *,
        persist: bool = True,
    ) -> None:
        """Replace the whole collection with ``fn(current)``.

        With ``persist=False`` the change stays in memory until ``flush``.
        """
        self._groups = tuple(fn(self._groups))
        self._dirty = True
        if persist:
            self.flush()

    def flush(self) -> None:
        """Save in-memory changes not yet written to the repository."""
        if self._dirty:
            self._repo.save_sockets(self._groups)
            self._dirty = False

    def _require(self, socket_id: str) -> SocketGroup:
        group = self.get(socket_id)
        if group is None:
            raise SocketGroupError(f"Unknown socket group '{socket_id}'")
        return group

    def add(self, group: SocketGroup, plates: Sequence[PlateDimension]) -> Verdict:
        """Confirm a new group if its placement is valid."""
        if self.get(group.id) is not None:
            raise SocketGroupError(f"Duplicate socket group id '{group.id}'")
        verdict = validate_socket_group(group, plates, self._groups, self.rules)
        if verdict.valid:
            self.update(lambda groups: groups + (group,))
            log.info(
                "Added socket group %s on plate %d: %d× %s at (%.2f, %.2f)",
                group.id, group.plate_index, group.count, group.orientation.value,
                group.anchor_x_cm, group.anchor_y_cm,
            )
        return verdict

    def replace(self, group: SocketGroup, plates: Sequence[PlateDimension]) -> Verdict:
        """Apply an edit (count, orientation, position …) if still valid."""
        self._require(group.id)
        verdict = validate_socket_group(group, plates, self._groups, self.rules)
        if verdict.valid:
            self.update(lambda groups: [group if g.id == group.id else g for g in groups])
            log.info("Updated socket group %s", group.id)
        return verdict

    def move(
        self,
        socket_id: str,
        anchor_x_cm: float,
        anchor_y_cm: float,
        *,
        persist: bool = True,
    ) -> None:
        """Write an already-validated anchor."""
        self._require(socket_id)
        self.update(lambda groups: [
            replace(g, anchor_x_cm=anchor_x_cm, anchor_y_cm=anchor_y_cm)
            if g.id == socket_id else g
            for g in groups
        ], persist=persist)

    def delete(self, socket_id: str) -> bool:
        if self.get(socket_id) is None:
            return False
        self.update(lambda groups: [g for g in groups if g.id != socket_id])
        log.info("Deleted socket group %s", socket_id)
        return True

    def remove_plate(self, plate_index: int) -> None:
        """Drop groups on a removed plate and shift later plate indices down."""
        self.update(lambda groups: [
            replace(g, plate_index=g.plate_index - 1) if g.plate_index > plate_index else g
            for g in groups
            if g.plate_index != plate_index
        ])

    def drop_plates_from(self, plate_count: int) -> list[str]:
        """Drop groups on plates at or past ``plate_count``; returns their ids."""
        dropped = [g.id for g in self._groups if g.plate_index >= plate_count]
        if dropped:
            self.update(lambda groups: [g for g in groups if g.plate_index < plate_count])
            log.info("Dropped %d socket group(s) on removed plates", len(dropped))
        return dropped
