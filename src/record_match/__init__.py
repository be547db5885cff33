"""Record matching (two-input comparison) and deduplication engines."""

from record_match.engine import DatasetMatcher, Deduplicator, EqualityEngine
from record_match.errors import (
    BlankFieldName,
    EmptyKeySpec,
    InconsistentFieldType,
    MissingField,
    MissingKeyField,
    RecordMatchError,
)
from record_match.fields import ABSENT, FieldAccessor, FieldPath
from record_match.models import (
    AllExcept,
    AllFields,
    ClassifiedRecord,
    ComparisonMode,
    ComparisonResult,
    CompositeRecord,
    KeyPair,
    MultipleMatchPolicy,
    ResolutionKind,
    ResolutionPolicy,
    Selected,
    Side,
)

__all__ = [
    "ABSENT",
    "AllExcept",
    "AllFields",
    "BlankFieldName",
    "ClassifiedRecord",
    "ComparisonMode",
    "ComparisonResult",
    "CompositeRecord",
    "DatasetMatcher",
    "Deduplicator",
    "EmptyKeySpec",
    "EqualityEngine",
    "FieldAccessor",
    "FieldPath",
    "InconsistentFieldType",
    "KeyPair",
    "MissingField",
    "MissingKeyField",
    "MultipleMatchPolicy",
    "RecordMatchError",
    "ResolutionKind",
    "ResolutionPolicy",
    "Selected",
    "Side",
]
