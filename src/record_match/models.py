from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Union

from record_match.fields import ABSENT, FieldAccessor, FieldPath

Record = dict[str, Any]

_ACCESSOR = FieldAccessor()


class ComparisonMode(StrEnum):
    STRICT = "strict"
    FUZZY = "fuzzy"


class MultipleMatchPolicy(StrEnum):
    FIRST = "first"
    ALL = "all"


class ResolutionKind(StrEnum):
    PREFER_A = "prefer_a"
    PREFER_B = "prefer_b"
    MIX = "mix"
    INCLUDE_BOTH = "include_both"


class Side(StrEnum):
    A = "a"
    B = "b"


@dataclass(frozen=True)
class KeyPair:
    """One component of the join key: a field in input A and its counterpart in B."""

    field_a: str | FieldPath
    field_b: str | FieldPath


@dataclass(frozen=True)
class ResolutionPolicy:
    """How a matched pair that differs is turned into one output record."""

    kind: ResolutionKind = ResolutionKind.INCLUDE_BOTH
    prefer: Side = Side.A
    except_fields: tuple[str | FieldPath, ...] = ()

    @classmethod
    def prefer_a(cls) -> "ResolutionPolicy":
        return cls(kind=ResolutionKind.PREFER_A)

    @classmethod
    def prefer_b(cls) -> "ResolutionPolicy":
        return cls(kind=ResolutionKind.PREFER_B, prefer=Side.B)

    @classmethod
    def mix(cls, prefer: Side, except_fields: tuple[str | FieldPath, ...] | list[str]) -> "ResolutionPolicy":
        return cls(kind=ResolutionKind.MIX, prefer=prefer, except_fields=tuple(except_fields))

    @classmethod
    def include_both(cls) -> "ResolutionPolicy":
        return cls(kind=ResolutionKind.INCLUDE_BOTH)


@dataclass(frozen=True)
class AllFields:
    """Compare on every leaf field found anywhere in the batch."""


@dataclass(frozen=True)
class AllExcept:
    fields: tuple[str | FieldPath, ...]


@dataclass(frozen=True)
class Selected:
    fields: tuple[str | FieldPath, ...]


KeyFieldSpec = Union[AllFields, AllExcept, Selected]
ExclusionSpec = KeyFieldSpec


@dataclass(slots=True)
class CompositeRecord:
    """Both sides of a matched pair, with the join key values hoisted out.

    ``input_a`` is A without its key fields. ``input_b`` is B without those key
    fields whose value is identical to the hoisted one; a B key value that only
    matched fuzzily stays in ``input_b``. Either original can be rebuilt.
    """

    keys: dict[str, Any]
    input_a: Record
    input_b: Record
    key_pairs: tuple[tuple[FieldPath, FieldPath], ...] = ()

    def restore_a(self) -> Record:
        record = copy.deepcopy(self.input_a)
        for path_a, _ in self.key_pairs:
            _ACCESSOR.assign(record, path_a, copy.deepcopy(self.keys[path_a.raw]), insert=True)
        return record

    def restore_b(self) -> Record:
        record = copy.deepcopy(self.input_b)
        for path_a, path_b in self.key_pairs:
            if _ACCESSOR.resolve(record, path_b) is ABSENT:
                _ACCESSOR.assign(record, path_b, copy.deepcopy(self.keys[path_a.raw]), insert=True)
        return record

    def to_dict(self) -> Record:
        return {"keys": self.keys, "input_a": self.input_a, "input_b": self.input_b}


@dataclass(slots=True)
class ClassifiedRecord:
    """An output record tagged with the input positions it came from."""

    record: Record | CompositeRecord
    index_a: int | None = None
    index_b: int | None = None
    differing_fields: tuple[str, ...] = ()

    @property
    def is_composite(self) -> bool:
        return isinstance(self.record, CompositeRecord)

    def as_dict(self) -> Record:
        if isinstance(self.record, CompositeRecord):
            return self.record.to_dict()
        return self.record


@dataclass(slots=True)
class ComparisonResult:
    only_in_a: list[ClassifiedRecord] = field(default_factory=list)
    same: list[ClassifiedRecord] = field(default_factory=list)
    different: list[ClassifiedRecord] = field(default_factory=list)
    only_in_b: list[ClassifiedRecord] = field(default_factory=list)

    def counts(self) -> dict[str, int]:
        return {
            "only_in_a": len(self.only_in_a),
            "same": len(self.same),
            "different": len(self.different),
            "only_in_b": len(self.only_in_b),
        }
