from record_match.engine.dedupe import Deduplicator
from record_match.engine.equality import EqualityEngine, Ordering, ValueKind, kind_of
from record_match.engine.matcher import DatasetMatcher

__all__ = [
    "Deduplicator",
    "DatasetMatcher",
    "EqualityEngine",
    "Ordering",
    "ValueKind",
    "kind_of",
]
