from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence

from record_match.fields import FieldPath
from record_match.models import (
    ComparisonMode,
    ComparisonResult,
    KeyFieldSpec,
    KeyPair,
    MultipleMatchPolicy,
    Record,
    ResolutionPolicy,
)


class RecordMatcher(Protocol):
    """Classify two collections against a composite key."""

    def compare(
        self,
        input_a: Sequence[Mapping[str, Any]],
        input_b: Sequence[Mapping[str, Any]],
        key_pairs: Sequence[KeyPair],
        mode: ComparisonMode = ...,
        multiple_matches: MultipleMatchPolicy = ...,
        resolution: ResolutionPolicy | None = ...,
        skip_fields: Sequence[str | FieldPath] = ...,
    ) -> ComparisonResult:
        ...


class RecordDeduplicator(Protocol):
    """Remove records repeating the key fields of an earlier record."""

    def dedupe(
        self,
        records: Sequence[Mapping[str, Any]],
        key_spec: KeyFieldSpec | None = ...,
        mode: ComparisonMode = ...,
        project_only: bool = ...,
    ) -> list[Record]:
        ...
