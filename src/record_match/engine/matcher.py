from __future__ import annotations

import copy
from collections import deque
from collections.abc import Hashable, Mapping, Sequence
from typing import Any

from loguru import logger

from record_match.engine.equality import EqualityEngine
from record_match.errors import EmptyKeySpec, MissingKeyField
from record_match.fields import ABSENT, FieldAccessor, FieldPath
from record_match.models import (
    ClassifiedRecord,
    ComparisonMode,
    ComparisonResult,
    CompositeRecord,
    KeyPair,
    MultipleMatchPolicy,
    Record,
    ResolutionKind,
    ResolutionPolicy,
    Side,
)


class DatasetMatcher:
    """Two-input comparator: splits A and B into only-in-A, same, different, only-in-B.

    B is indexed by composite key into per-key queues that keep B's order. A is
    then scanned left to right and each A record consumes from its key's queue as
    the queue stands at that moment, so an earlier A record can exhaust a match a
    later A record with the same key would otherwise have taken.
    """

    def __init__(self, accessor: FieldAccessor | None = None, lenient_missing_keys: bool = True) -> None:
        self._accessor = accessor or FieldAccessor()
        self._lenient_missing_keys = lenient_missing_keys

    def compare(
        self,
        input_a: Sequence[Mapping[str, Any]],
        input_b: Sequence[Mapping[str, Any]],
        key_pairs: Sequence[KeyPair],
        mode: ComparisonMode = ComparisonMode.STRICT,
        multiple_matches: MultipleMatchPolicy = MultipleMatchPolicy.FIRST,
        resolution: ResolutionPolicy | None = None,
        skip_fields: Sequence[str | FieldPath] = (),
    ) -> ComparisonResult:
        resolution = resolution or ResolutionPolicy.include_both()
        pairs = self._resolve_pairs(key_pairs)
        paths_a = [path_a for path_a, _ in pairs]
        paths_b = [path_b for _, path_b in pairs]
        skip = self._accessor.paths(skip_fields)
        equality = EqualityEngine(self._accessor, mode)

        if not self._lenient_missing_keys:
            self._check_keys(input_a, paths_a, Side.A)
            self._check_keys(input_b, paths_b, Side.B)

        index = self._index(input_b, paths_b, equality)
        logger.debug(f"Indexed {len(input_b)} B records into {len(index)} key buckets")

        result = ComparisonResult()
        consumed: set[int] = set()
        for index_a, record_a in enumerate(input_a):
            values = equality.composite_key(record_a, paths_a)
            queue = None if ABSENT in values else index.get(equality.index_key(values))
            if not queue:
                result.only_in_a.append(ClassifiedRecord(record=record_a, index_a=index_a))
                continue

            if multiple_matches is MultipleMatchPolicy.ALL:
                selected = list(queue)
                queue.clear()
            else:
                selected = [queue.popleft()]

            for index_b in selected:
                consumed.add(index_b)
                record_b = input_b[index_b]
                differing = self._differing_fields(record_a, record_b, paths_a, paths_b, skip, equality)
                if not differing:
                    result.same.append(ClassifiedRecord(record=dict(record_a), index_a=index_a, index_b=index_b))
                    continue
                result.different.append(
                    ClassifiedRecord(
                        record=self._resolve(record_a, record_b, pairs, resolution),
                        index_a=index_a,
                        index_b=index_b,
                        differing_fields=differing,
                    )
                )

        result.only_in_b = [
            ClassifiedRecord(record=record_b, index_b=index_b)
            for index_b, record_b in enumerate(input_b)
            if index_b not in consumed
        ]
        logger.info(f"Compared {len(input_a)} A records with {len(input_b)} B records: {result.counts()}")
        return result

    def _resolve_pairs(self, key_pairs: Sequence[KeyPair]) -> list[tuple[FieldPath, FieldPath]]:
        if not key_pairs:
            raise EmptyKeySpec("No fields specified to match on")
        return [(self._accessor.path(pair.field_a), self._accessor.path(pair.field_b)) for pair in key_pairs]

    def _check_keys(self, records: Sequence[Mapping[str, Any]], paths: Sequence[FieldPath], side: Side) -> None:
        for position, record in enumerate(records):
            for path in paths:
                if self._accessor.resolve(record, path) is ABSENT:
                    raise MissingKeyField(side=side.value, path=path.raw, index=position)

    def _index(
        self,
        records: Sequence[Mapping[str, Any]],
        paths: Sequence[FieldPath],
        equality: EqualityEngine,
    ) -> dict[Hashable, deque[int]]:
        index: dict[Hashable, deque[int]] = {}
        for position, record in enumerate(records):
            values = equality.composite_key(record, paths)
            # unkeyed B records are never matched and fall through to only_in_b
            if ABSENT in values:
                continue
            index.setdefault(equality.index_key(values), deque()).append(position)
        return index

    def _differing_fields(
        self,
        record_a: Mapping[str, Any],
        record_b: Mapping[str, Any],
        paths_a: Sequence[FieldPath],
        paths_b: Sequence[FieldPath],
        skip: Sequence[FieldPath],
        equality: EqualityEngine,
    ) -> tuple[str, ...]:
        left = self._accessor.without(record_a, [*paths_a, *skip])
        right = self._accessor.without(record_b, [*paths_b, *skip])
        fields = dict.fromkeys([*left, *right])
        return tuple(
            name for name in fields if not equality.equal(left.get(name, ABSENT), right.get(name, ABSENT))
        )

    def _resolve(
        self,
        record_a: Mapping[str, Any],
        record_b: Mapping[str, Any],
        pairs: Sequence[tuple[FieldPath, FieldPath]],
        resolution: ResolutionPolicy,
    ) -> Record | CompositeRecord:
        if resolution.kind is ResolutionKind.PREFER_A:
            return dict(record_a)
        if resolution.kind is ResolutionKind.PREFER_B:
            return dict(record_b)
        if resolution.kind is ResolutionKind.MIX:
            return self._mix(record_a, record_b, resolution)
        return self._composite(record_a, record_b, pairs)

    def _mix(
        self,
        record_a: Mapping[str, Any],
        record_b: Mapping[str, Any],
        resolution: ResolutionPolicy,
    ) -> Record:
        preferred, other = (record_a, record_b) if resolution.prefer is Side.A else (record_b, record_a)
        merged = copy.deepcopy(dict(preferred))
        for path in self._accessor.paths(resolution.except_fields):
            value = self._accessor.resolve(other, path)
            if value is ABSENT:
                self._accessor.unset(merged, path)
            else:
                self._accessor.assign(merged, path, copy.deepcopy(value))
        return merged

    def _composite(
        self,
        record_a: Mapping[str, Any],
        record_b: Mapping[str, Any],
        pairs: Sequence[tuple[FieldPath, FieldPath]],
    ) -> CompositeRecord:
        keys = {path_a.raw: copy.deepcopy(self._accessor.resolve(record_a, path_a)) for path_a, _ in pairs}
        input_b = copy.deepcopy(dict(record_b))
        strict = EqualityEngine(self._accessor, ComparisonMode.STRICT)
        for path_a, path_b in pairs:
            if strict.equal(self._accessor.resolve(input_b, path_b), keys[path_a.raw]):
                self._accessor.unset(input_b, path_b)
        return CompositeRecord(
            keys=keys,
            input_a=self._accessor.without(record_a, [path_a for path_a, _ in pairs]),
            input_b=input_b,
            key_pairs=tuple(pairs),
        )
