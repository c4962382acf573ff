"""
Sort tests for derive_view.

Tests:
1. Typed comparison (numbers, dates, datetimes, bools, strings)
2. Stability: equal keys keep input order in both directions
3. Nulls (and NaN) last in both directions
4. Case-insensitive string fields
"""

import pytest

from dashkit.kernel.params import SortSpec, ViewParameters
from dashkit.kernel.types import CollectionSchema
from dashkit.kernel.view import apply_sort, derive_view


def ids(records):
    return [r["id"] for r in records]


def sorted_ids(members, schema, field, direction="asc"):
    params = ViewParameters(sort=SortSpec(field=field, direction=direction))
    return ids(derive_view(members, schema, params).visible)


# ============================================================================
# Basic ordering
# ============================================================================


class TestSortOrder:
    def test_no_sort_keeps_input_order(self, members, team_schema):
        assert ids(apply_sort(members, team_schema, None)) == ["m01", "m02", "m03", "m04", "m05"]

    def test_people_by_name(self, people, people_schema):
        """Equal names keep their input order."""
        params = ViewParameters(sort=SortSpec(field="name"))
        view = derive_view(people, people_schema, params)
        assert [(r["name"], r["age"]) for r in view.visible] == [("A", 25), ("A", 40), ("B", 30)]

    def test_strings_are_case_sensitive_by_default(self, members, team_schema):
        """Uppercase sorts before lowercase unless the field is case-insensitive."""
        assert sorted_ids(members, team_schema, "name") == ["m01", "m03", "m04", "m05", "m02"]

    def test_case_insensitive_field(self, members, team_fields):
        schema = CollectionSchema(fields=team_fields, case_insensitive=frozenset({"name"}))
        assert sorted_ids(members, schema, "name") == ["m01", "m02", "m03", "m04", "m05"]

    def test_numbers_sort_numerically(self):
        schema = CollectionSchema(fields={"id": "int", "n": "int"})
        records = [{"id": 1, "n": 10}, {"id": 2, "n": 9}, {"id": 3, "n": 100}]
        params = ViewParameters(sort=SortSpec(field="n"))
        assert ids(derive_view(records, schema, params).visible) == [2, 1, 3]

    def test_dates(self, members, team_schema):
        assert sorted_ids(members, team_schema, "joined") == ["m03", "m05", "m01", "m02", "m04"]

    def test_datetimes_sort_chronologically_not_lexically(self):
        """Offsets are honoured: 23:00-05:00 on the 10th is after 01:00Z on the 11th."""
        schema = CollectionSchema(fields={"id": "string", "at": "datetime"})
        records = [
            {"id": "a", "at": "2024-05-10T23:00:00-05:00"},
            {"id": "b", "at": "2024-05-11T01:00:00Z"},
        ]
        params = ViewParameters(sort=SortSpec(field="at"))
        assert ids(derive_view(records, schema, params).visible) == ["b", "a"]

    def test_bools_false_first(self, members, team_schema):
        assert sorted_ids(members, team_schema, "active") == ["m03", "m05", "m01", "m02", "m04"]

    def test_enum_sorts_by_value(self, members, team_schema):
        assert sorted_ids(members, team_schema, "role") == ["m02", "m01", "m04", "m05", "m03"]


# ============================================================================
# Stability and direction
# ============================================================================


class TestSortStability:
    def test_ascending_ties_keep_input_order(self, members, team_schema):
        """m01 and m05 share a salary; m01 comes first in the input."""
        assert sorted_ids(members, team_schema, "salary") == ["m02", "m04", "m01", "m05", "m03"]

    def test_descending_ties_keep_input_order(self, members, team_schema):
        """Descending flips the comparison only, not the order of ties."""
        assert sorted_ids(members, team_schema, "salary", "desc") == ["m03", "m01", "m05", "m04", "m02"]

    def test_sort_does_not_touch_input(self, members, team_schema):
        before = ids(members)
        sorted_ids(members, team_schema, "salary", "desc")
        assert ids(members) == before


# ============================================================================
# Nulls
# ============================================================================


class TestSortNulls:
    def test_nulls_last_ascending(self, members, team_schema):
        assert sorted_ids(members, team_schema, "level") == ["m02", "m04", "m01", "m05", "m03"]

    def test_nulls_last_descending(self, members, team_schema):
        assert sorted_ids(members, team_schema, "level", "desc") == ["m01", "m05", "m02", "m04", "m03"]

    def test_nullable_datetime(self, members, team_schema):
        assert sorted_ids(members, team_schema, "last_login") == ["m05", "m02", "m01", "m04", "m03"]

    def test_missing_key_sorts_like_null(self):
        schema = CollectionSchema(fields={"id": "string", "n": "int?"})
        records = [{"id": "a"}, {"id": "b", "n": 2}, {"id": "c", "n": 1}]
        params = ViewParameters(sort=SortSpec(field="n", direction="desc"))
        assert ids(derive_view(records, schema, params).visible) == ["b", "c", "a"]

    def test_unparseable_dates_go_last(self):
        schema = CollectionSchema(fields={"id": "string", "d": "date"})
        records = [{"id": "a", "d": "soon"}, {"id": "b", "d": "2024-01-01"}]
        params = ViewParameters(sort=SortSpec(field="d"))
        assert ids(derive_view(records, schema, params).visible) == ["b", "a"]

    @pytest.mark.parametrize("direction", ["asc", "desc"])
    def test_nan_sorts_like_null(self, direction):
        schema = CollectionSchema(fields={"id": "string", "x": "float"})
        records = [
            {"id": "a", "x": 3.0},
            {"id": "b", "x": float("nan")},
            {"id": "c", "x": 1.0},
            {"id": "d", "x": 2.0},
        ]
        expected = ["c", "d", "a", "b"] if direction == "asc" else ["a", "d", "c", "b"]
        assert ids(apply_sort(records, schema, SortSpec(field="x", direction=direction))) == expected
