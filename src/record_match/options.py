"""
User-facing option models.

Hosts collect options as loosely typed text (comma separated field lists,
policy names). These models validate that input and turn it into the typed
arguments the engines take.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Mapping, Sequence

from pydantic import BaseModel, ConfigDict, field_validator

from record_match.config import EngineSettings, get_settings
from record_match.engine import DatasetMatcher, Deduplicator
from record_match.fields import FieldAccessor
from record_match.interfaces import RecordDeduplicator, RecordMatcher
from record_match.models import (
    AllExcept,
    AllFields,
    ComparisonMode,
    ComparisonResult,
    KeyFieldSpec,
    KeyPair,
    MultipleMatchPolicy,
    Record,
    ResolutionKind,
    ResolutionPolicy,
    Selected,
    Side,
)


def parse_field_list(text: str | Sequence[str] | None) -> list[str]:
    """Split ``"id, name,,email"`` into ``["id", "name", "email"]``."""
    if text is None:
        return []
    items = text.split(",") if isinstance(text, str) else list(text)
    return [item.strip() for item in items if item and item.strip()]


class FieldPairOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    field_a: str
    field_b: str

    @classmethod
    def parse(cls, text: str) -> "FieldPairOption":
        """``"id"`` matches ``id`` on both sides; ``"id=user_id"`` maps A's ``id`` to B's ``user_id``."""
        left, sep, right = text.partition("=")
        left = left.strip()
        return cls(field_a=left, field_b=right.strip() if sep else left)


class CompareOptions(BaseModel):
    """Options for comparing two datasets."""

    model_config = ConfigDict(extra="forbid")

    fields_to_match: list[FieldPairOption] = []
    resolve: ResolutionKind = ResolutionKind.INCLUDE_BOTH
    prefer_when_mix: Side = Side.A
    except_when_mix: str = ""
    skip_fields: str = ""
    fuzzy_compare: bool = False
    multiple_matches: MultipleMatchPolicy = MultipleMatchPolicy.FIRST
    disable_dot_notation: bool = False
    lenient_missing_keys: bool = True

    @field_validator("fields_to_match", mode="before")
    @classmethod
    def parse_pairs(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = parse_field_list(value)
        if isinstance(value, list):
            return [FieldPairOption.parse(item) if isinstance(item, str) else item for item in value]
        return value

    @classmethod
    def from_settings(cls, settings: EngineSettings | None = None, **overrides: Any) -> "CompareOptions":
        settings = settings or get_settings()
        defaults = {
            "resolve": settings.resolution,
            "fuzzy_compare": settings.comparison_mode is ComparisonMode.FUZZY,
            "multiple_matches": settings.multiple_matches,
            "disable_dot_notation": not settings.dot_notation,
            "lenient_missing_keys": settings.lenient_missing_keys,
        }
        return cls(**{**defaults, **overrides})

    @property
    def mode(self) -> ComparisonMode:
        return ComparisonMode.FUZZY if self.fuzzy_compare else ComparisonMode.STRICT

    def key_pairs(self) -> list[KeyPair]:
        return [KeyPair(field_a=pair.field_a, field_b=pair.field_b) for pair in self.fields_to_match]

    def resolution(self) -> ResolutionPolicy:
        if self.resolve is ResolutionKind.MIX:
            return ResolutionPolicy.mix(self.prefer_when_mix, parse_field_list(self.except_when_mix))
        if self.resolve is ResolutionKind.PREFER_B:
            return ResolutionPolicy.prefer_b()
        return ResolutionPolicy(kind=self.resolve)

    def build_matcher(self) -> DatasetMatcher:
        return DatasetMatcher(
            accessor=FieldAccessor(dot_notation=not self.disable_dot_notation),
            lenient_missing_keys=self.lenient_missing_keys,
        )

    def run(
        self,
        input_a: Sequence[Mapping[str, Any]],
        input_b: Sequence[Mapping[str, Any]],
        matcher: RecordMatcher | None = None,
    ) -> ComparisonResult:
        matcher = matcher or self.build_matcher()
        return matcher.compare(
            input_a,
            input_b,
            self.key_pairs(),
            mode=self.mode,
            multiple_matches=self.multiple_matches,
            resolution=self.resolution(),
            skip_fields=parse_field_list(self.skip_fields),
        )


class CompareScope(StrEnum):
    ALL_FIELDS = "all_fields"
    ALL_FIELDS_EXCEPT = "all_fields_except"
    SELECTED_FIELDS = "selected_fields"


class DedupeOptions(BaseModel):
    """Options for removing duplicates from one dataset."""

    model_config = ConfigDict(extra="forbid")

    compare: CompareScope = CompareScope.ALL_FIELDS
    fields_to_exclude: str = ""
    fields_to_compare: str = ""
    fuzzy_compare: bool = False
    disable_dot_notation: bool = False
    remove_other_fields: bool = False

    @classmethod
    def from_settings(cls, settings: EngineSettings | None = None, **overrides: Any) -> "DedupeOptions":
        settings = settings or get_settings()
        defaults = {
            "fuzzy_compare": settings.comparison_mode is ComparisonMode.FUZZY,
            "disable_dot_notation": not settings.dot_notation,
        }
        return cls(**{**defaults, **overrides})

    @property
    def mode(self) -> ComparisonMode:
        return ComparisonMode.FUZZY if self.fuzzy_compare else ComparisonMode.STRICT

    def key_spec(self) -> KeyFieldSpec:
        if self.compare is CompareScope.ALL_FIELDS_EXCEPT:
            return AllExcept(fields=tuple(parse_field_list(self.fields_to_exclude)))
        if self.compare is CompareScope.SELECTED_FIELDS:
            return Selected(fields=tuple(parse_field_list(self.fields_to_compare)))
        return AllFields()

    def build_deduplicator(self) -> Deduplicator:
        return Deduplicator(accessor=FieldAccessor(dot_notation=not self.disable_dot_notation))

    def run(
        self,
        records: Sequence[Mapping[str, Any]],
        deduplicator: RecordDeduplicator | None = None,
    ) -> list[Record]:
        deduplicator = deduplicator or self.build_deduplicator()
        return deduplicator.dedupe(
            records,
            self.key_spec(),
            mode=self.mode,
            project_only=self.remove_other_fields,
        )
