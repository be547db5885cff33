import pytest

from record_match.engine import Deduplicator
from record_match.errors import EmptyKeySpec, InconsistentFieldType, MissingField
from record_match.fields import FieldAccessor
from record_match.models import AllExcept, AllFields, ComparisonMode, Selected


def test_removes_duplicates_on_selected_fields_in_original_order() -> None:
    records = [{"id": 1, "v": "a"}, {"id": 1, "v": "a"}, {"id": 2, "v": "b"}]

    kept = Deduplicator().dedupe(records, Selected(("id", "v")))

    assert kept == [{"id": 1, "v": "a"}, {"id": 2, "v": "b"}]


def test_output_is_a_subsequence_of_the_input() -> None:
    records = [{"id": 3}, {"id": 1}, {"id": 3}, {"id": 2}, {"id": 1}]

    kept = Deduplicator().dedupe(records, Selected(("id",)))

    assert kept == [{"id": 3}, {"id": 1}, {"id": 2}]


def test_first_occurrence_is_kept() -> None:
    records = [{"id": 1, "seen": "first"}, {"id": 1, "seen": "second"}]

    assert Deduplicator().dedupe(records, Selected(("id",))) == [{"id": 1, "seen": "first"}]


def test_dedupe_is_idempotent() -> None:
    records = [{"id": i % 3, "tag": ["x", "y"][i % 2], "n": {"k": i % 2}} for i in range(12)]
    deduplicator = Deduplicator()

    once = deduplicator.dedupe(records, AllFields())

    assert deduplicator.dedupe(once, AllFields()) == once


def test_mixed_value_types_fail_the_whole_call() -> None:
    with pytest.raises(InconsistentFieldType) as excinfo:
        Deduplicator().dedupe([{"id": 1}, {"id": "1"}], Selected(("id",)))

    assert excinfo.value.path == "id"


def test_booleans_and_numbers_are_different_types() -> None:
    with pytest.raises(InconsistentFieldType):
        Deduplicator().dedupe([{"flag": True}, {"flag": 1}], Selected(("flag",)))


def test_null_is_its_own_type() -> None:
    with pytest.raises(InconsistentFieldType):
        Deduplicator().dedupe([{"v": None}, {"v": "x"}], Selected(("v",)))


def test_missing_selected_field_is_an_error() -> None:
    with pytest.raises(MissingField) as excinfo:
        Deduplicator().dedupe([{"id": 1}, {"name": "x"}], Selected(("id",)))

    assert excinfo.value.path == "id"
    assert excinfo.value.hint is None


def test_missing_nested_field_hints_at_dot_notation_when_disabled() -> None:
    deduplicator = Deduplicator(accessor=FieldAccessor(dot_notation=False))

    with pytest.raises(MissingField) as excinfo:
        deduplicator.dedupe([{"a": {"b": 1}}], Selected(("a.b",)))

    assert "dot notation" in excinfo.value.hint


def test_missing_dotted_field_hints_at_disabling_dot_notation() -> None:
    with pytest.raises(MissingField) as excinfo:
        Deduplicator().dedupe([{"a.b": 1}, {"a.b": 1}], Selected(("a.b",)))

    assert "disable dot notation" in excinfo.value.hint


def test_all_fields_includes_fields_first_seen_in_later_records() -> None:
    records = [{"id": 1}, {"id": 1, "extra": 2}, {"id": 1}]

    kept = Deduplicator().dedupe(records, AllFields())

    assert kept == [{"id": 1}, {"id": 1, "extra": 2}]


def test_all_fields_compares_nested_values() -> None:
    records = [
        {"id": 1, "address": {"city": "Leeds"}},
        {"id": 1, "address": {"city": "Leeds"}},
        {"id": 1, "address": {"city": "York"}},
    ]

    assert len(Deduplicator().dedupe(records)) == 2


def test_all_except_ignores_excluded_fields_and_their_children() -> None:
    records = [
        {"id": 1, "ts": 1, "meta": {"source": "a"}},
        {"id": 1, "ts": 2, "meta": {"source": "b"}},
        {"id": 2, "ts": 3, "meta": {"source": "c"}},
    ]

    kept = Deduplicator().dedupe(records, AllExcept(("ts", "meta")))

    assert [record["ts"] for record in kept] == [1, 3]


def test_all_except_everything_is_an_empty_key_spec() -> None:
    with pytest.raises(EmptyKeySpec):
        Deduplicator().dedupe([{"id": 1}, {"id": 2}], AllExcept(("id",)))


def test_empty_selection_is_an_empty_key_spec() -> None:
    with pytest.raises(EmptyKeySpec):
        Deduplicator().dedupe([{"id": 1}], Selected(()))


def test_project_only_keeps_just_the_key_fields() -> None:
    records = [
        {"id": 1, "meta": {"v": "a", "x": 9}},
        {"id": 1, "meta": {"v": "a", "x": 10}},
        {"id": 2, "meta": {"v": "a", "x": 11}},
    ]

    kept = Deduplicator().dedupe(records, Selected(("id", "meta.v")), project_only=True)

    assert kept == [{"id": 1, "meta": {"v": "a"}}, {"id": 2, "meta": {"v": "a"}}]


def test_final_duplicate_test_is_strict_even_in_fuzzy_mode() -> None:
    records = [{"v": "3"}, {"v": "3.0"}, {"v": "4"}, {"v": "4"}]

    kept = Deduplicator().dedupe(records, Selected(("v",)), mode=ComparisonMode.FUZZY)

    assert kept == [{"v": "3"}, {"v": "3.0"}, {"v": "4"}]


def test_empty_input_returns_empty_output() -> None:
    assert Deduplicator().dedupe([], AllFields()) == []


def test_input_records_are_not_modified() -> None:
    records = [{"id": 1, "x": 1}, {"id": 1, "x": 2}]

    Deduplicator().dedupe(records, Selected(("id",)), project_only=True)

    assert records == [{"id": 1, "x": 1}, {"id": 1, "x": 2}]


def test_fuzzy_mode_removes_strict_duplicates_separated_by_a_fuzzy_match() -> None:
    records = [{"v": "1"}, {"v": "1.0"}, {"v": "1"}]

    kept = Deduplicator().dedupe(records, Selected(("v",)), mode=ComparisonMode.FUZZY)

    assert kept == [{"v": "1"}, {"v": "1.0"}]


def test_fuzzy_mode_keeps_one_of_each_spelling_in_a_numeric_group() -> None:
    records = [{"v": "2"}, {"v": "2.0"}, {"v": "02"}, {"v": "2.0"}, {"v": "2"}]

    kept = Deduplicator().dedupe(records, AllFields(), mode=ComparisonMode.FUZZY)

    assert kept == [{"v": "2"}, {"v": "2.0"}, {"v": "02"}]


def test_empty_exclusion_list_is_an_empty_key_spec() -> None:
    with pytest.raises(EmptyKeySpec, match="exclude from comparison"):
        Deduplicator().dedupe([{"id": 1}, {"id": 1}], AllExcept(()))
