from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from record_match.errors import BlankFieldName


class _Absent:
    """Marker for a field that does not exist, as opposed to one holding ``None``."""

    _instance: "_Absent | None" = None

    def __new__(cls) -> "_Absent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False

    def __deepcopy__(self, memo: dict[int, Any]) -> "_Absent":
        return self


ABSENT = _Absent()


@dataclass(frozen=True)
class FieldPath:
    """Address of a possibly nested value inside a record."""

    raw: str
    segments: tuple[str, ...]

    @classmethod
    def parse(cls, text: str, dot_notation: bool = True) -> "FieldPath":
        raw = text.strip()
        if not raw:
            raise BlankFieldName()
        segments = tuple(raw.split(".")) if dot_notation else (raw,)
        return cls(raw=raw, segments=segments)

    def __str__(self) -> str:
        return self.raw

    def covers(self, other: "FieldPath") -> bool:
        """True if ``other`` is this path or nested below it."""
        return other.segments[: len(self.segments)] == self.segments


class FieldAccessor:
    """Reads, enumerates and rewrites record fields addressed by ``FieldPath``.

    With ``dot_notation`` disabled every path is a single literal top-level key,
    so ``"a.b"`` names the field called ``a.b`` rather than ``b`` inside ``a``.
    """

    def __init__(self, dot_notation: bool = True) -> None:
        self._dot_notation = dot_notation

    @property
    def dot_notation(self) -> bool:
        return self._dot_notation

    def path(self, field: str | FieldPath) -> FieldPath:
        if isinstance(field, FieldPath):
            return field
        return FieldPath.parse(field, dot_notation=self._dot_notation)

    def paths(self, fields: Iterable[str | FieldPath]) -> list[FieldPath]:
        return [self.path(field) for field in fields]

    def resolve(self, record: object, field: str | FieldPath) -> Any:
        return _walk(record, self.path(field).segments)

    def flatten(self, record: Mapping[str, Any]) -> list[tuple[FieldPath, Any]]:
        if not self._dot_notation:
            return [(FieldPath(raw=key, segments=(key,)), value) for key, value in record.items()]
        leaves: list[tuple[FieldPath, Any]] = []
        _collect_leaves(record, (), leaves)
        return leaves

    def collect_paths(self, records: Iterable[Mapping[str, Any]]) -> list[FieldPath]:
        """Leaf paths across a batch, first-seen order, later discoveries appended."""
        seen: dict[tuple[str, ...], FieldPath] = {}
        for record in records:
            for path, _ in self.flatten(record):
                seen.setdefault(path.segments, path)
        return list(seen.values())

    def pick(self, record: Mapping[str, Any], fields: Sequence[str | FieldPath]) -> dict[str, Any]:
        """Project ``record`` onto ``fields``; lists along a path are kept whole."""
        picked: dict[str, Any] = {}
        for path in self.paths(fields):
            segments = _until_list(record, path.segments)
            value = _walk(record, segments)
            if value is ABSENT:
                continue
            _assign(picked, segments, copy.deepcopy(value))
        return picked

    def assign(self, record: dict[str, Any], field: str | FieldPath, value: Any, insert: bool = False) -> None:
        """Set a field, creating records along the way.

        An in-range list index overwrites that element unless ``insert`` is set.
        """
        _assign(record, self.path(field).segments, value, insert=insert)

    def unset(self, record: dict[str, Any], field: str | FieldPath) -> bool:
        return _unset(record, self.path(field).segments)

    def without(self, record: Mapping[str, Any], fields: Iterable[str | FieldPath]) -> dict[str, Any]:
        stripped = copy.deepcopy(dict(record))
        for path in self.paths(fields):
            _unset(stripped, path.segments)
        return stripped


def _walk(value: object, segments: Sequence[str]) -> Any:
    current = value
    for segment in segments:
        if isinstance(current, Mapping):
            if segment not in current:
                return ABSENT
            current = current[segment]
        elif isinstance(current, list):
            index = _list_index(segment)
            if index is None or index >= len(current):
                return ABSENT
            current = current[index]
        else:
            return ABSENT
    return current


def _list_index(segment: str) -> int | None:
    return int(segment) if segment.isdigit() else None


def _collect_leaves(value: Any, prefix: tuple[str, ...], out: list[tuple[FieldPath, Any]]) -> None:
    if isinstance(value, Mapping) and value:
        children: Iterable[tuple[str, Any]] = ((str(key), child) for key, child in value.items())
    elif isinstance(value, list) and value and prefix:
        children = ((str(index), child) for index, child in enumerate(value))
    else:
        if prefix:
            out.append((FieldPath(raw=".".join(prefix), segments=prefix), value))
        return
    for key, child in children:
        _collect_leaves(child, (*prefix, key), out)


def _until_list(record: Mapping[str, Any], segments: tuple[str, ...]) -> tuple[str, ...]:
    current: Any = record
    for depth, segment in enumerate(segments):
        if isinstance(current, list):
            return segments[:depth]
        if not isinstance(current, Mapping) or segment not in current:
            return segments
        current = current[segment]
    return segments


def _assign(record: Any, segments: Sequence[str], value: Any, insert: bool = False) -> None:
    parent: Any = None
    parent_key: Any = None
    current = record
    for depth, segment in enumerate(segments):
        last = depth == len(segments) - 1
        index = _list_index(segment)
        if isinstance(current, list) and index is None:
            # a named segment cannot address a list element
            current = {}
            parent[parent_key] = current
        if isinstance(current, list):
            if last and insert:
                current.insert(index, value)
                return
            if index >= len(current):
                current.append(None)
                index = len(current) - 1
            key: Any = index
        else:
            key = segment
        if last:
            current[key] = value
            return
        child = current.get(key) if isinstance(current, dict) else current[key]
        if not isinstance(child, (dict, list)):
            child = {}
            current[key] = child
        parent, parent_key, current = current, key, child


def _unset(record: Any, segments: Sequence[str]) -> bool:
    parent = _walk(record, segments[:-1])
    last = segments[-1]
    if isinstance(parent, dict) and last in parent:
        del parent[last]
        return True
    if isinstance(parent, list):
        index = _list_index(last)
        if index is not None and index < len(parent):
            del parent[index]
            return True
    return False
