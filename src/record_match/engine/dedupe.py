from __future__ import annotations

from collections.abc import Mapping, Sequence
from functools import cmp_to_key
from typing import Any

from loguru import logger

from record_match.engine.equality import EqualityEngine, ValueKind, kind_of
from record_match.errors import EmptyKeySpec, InconsistentFieldType, MissingField
from record_match.fields import FieldAccessor, FieldPath
from record_match.models import AllExcept, AllFields, ComparisonMode, KeyFieldSpec, Record, Selected


class Deduplicator:
    """Single-input engine: drops records whose key fields repeat an earlier record.

    Records are sorted by their key tuple (O(n log n)) and scanned once; a record
    is a duplicate when its key tuple is strictly deep-equal to the last record
    kept. ``mode`` only affects the sort grouping. Output keeps input order.
    """

    def __init__(self, accessor: FieldAccessor | None = None) -> None:
        self._accessor = accessor or FieldAccessor()

    def dedupe(
        self,
        records: Sequence[Mapping[str, Any]],
        key_spec: KeyFieldSpec | None = None,
        mode: ComparisonMode = ComparisonMode.STRICT,
        project_only: bool = False,
    ) -> list[Record]:
        key_spec = key_spec or AllFields()
        if isinstance(key_spec, Selected) and not key_spec.fields:
            raise EmptyKeySpec("No fields specified. Please add a field to compare on")
        if isinstance(key_spec, AllExcept) and not key_spec.fields:
            raise EmptyKeySpec("No fields specified. Please add a field to exclude from comparison")
        if not records:
            return []

        paths = self.resolve_key_fields(records, key_spec)
        logger.debug(f"Deduplicating on {len(paths)} fields: {[path.raw for path in paths]}")
        self._check_fields(records, paths, require_present=isinstance(key_spec, Selected))

        equality = EqualityEngine(self._accessor, mode)
        keys = [equality.composite_key(record, paths) for record in records]
        order = sorted(
            range(len(records)),
            key=cmp_to_key(lambda left, right: _order(equality, keys[left], keys[right])),
        )

        removed: set[int] = set()
        last_kept = order[0]
        for position in order[1:]:
            if equality.equal_keys(keys[position], keys[last_kept], ComparisonMode.STRICT):
                removed.add(position)
            else:
                last_kept = position

        kept = [dict(record) for position, record in enumerate(records) if position not in removed]
        logger.info(f"Removed {len(removed)} duplicates from {len(records)} records")
        if project_only:
            return [self._accessor.pick(record, paths) for record in kept]
        return kept

    def resolve_key_fields(self, records: Sequence[Mapping[str, Any]], key_spec: KeyFieldSpec) -> list[FieldPath]:
        if isinstance(key_spec, Selected):
            if not key_spec.fields:
                raise EmptyKeySpec("No fields specified. Please add a field to compare on")
            return self._accessor.paths(key_spec.fields)

        paths = self._accessor.collect_paths(records)
        if isinstance(key_spec, AllExcept):
            if not key_spec.fields:
                raise EmptyKeySpec("No fields specified. Please add a field to exclude from comparison")
            excluded = self._accessor.paths(key_spec.fields)
            paths = [path for path in paths if not any(skip.covers(path) for skip in excluded)]
            if not paths:
                raise EmptyKeySpec("Every field was excluded from the comparison")
        if not paths:
            raise EmptyKeySpec("Input items have no fields to compare on")
        return paths

    def _check_fields(
        self,
        records: Sequence[Mapping[str, Any]],
        paths: Sequence[FieldPath],
        require_present: bool,
    ) -> None:
        """Every present value of a key field must have one kind across the batch.

        Absent values are tolerated when fields were discovered from the data, since
        a field first seen in a later record is legitimately missing from earlier ones.
        """
        for path in paths:
            seen: ValueKind | None = None
            for record in records:
                kind = kind_of(self._accessor.resolve(record, path))
                if kind is ValueKind.ABSENT:
                    if require_present:
                        raise MissingField(path.raw, hint=self._missing_hint(path, records))
                    continue
                if seen is not None and kind is not seen:
                    raise InconsistentFieldType(path.raw, kinds=(seen.value, kind.value))
                seen = kind

    def _missing_hint(self, path: FieldPath, records: Sequence[Mapping[str, Any]]) -> str | None:
        if "." not in path.raw:
            return None
        if not self._accessor.dot_notation:
            return "If you're trying to use a nested field, make sure dot notation is not disabled"
        if any(path.raw in record for record in records):
            return f"'{path.raw}' is a field name containing a dot; disable dot notation to compare on it"
        return None


def _order(equality: EqualityEngine, left: tuple[Any, ...], right: tuple[Any, ...]) -> int:
    # strict tiebreak keeps strictly equal tuples adjacent inside a fuzzy group
    result = equality.compare_keys(left, right)
    if result:
        return result
    return equality.compare_keys(left, right, ComparisonMode.STRICT)
