"""
Unit Tests - Key and Lookup Utilities
"""
from datetime import date

import polars as pl

from sales_dwh.transformation.keys import (
    assign_surrogate_key,
    first_per_key,
    latest_per_key,
    left_lookup,
    map_codes,
    yyyymmdd_to_date,
)


class TestLatestPerKey:
    """Tests for latest_per_key"""

    def test_keeps_most_recent_row(self):
        df = pl.DataFrame({
            "id": [1, 1, 2],
            "value": ["old", "new", "only"],
            "created": [date(2025, 1, 1), date(2025, 3, 1), date(2025, 2, 1)],
        })

        result = latest_per_key(df, "id", "created")

        assert result["id"].to_list() == [1, 2]
        assert result["value"].to_list() == ["new", "only"]

    def test_ties_resolved_by_input_order(self):
        df = pl.DataFrame({
            "id": [5, 5, 5],
            "value": ["first", "second", "third"],
            "created": [date(2025, 1, 1), date(2025, 1, 1), date(2024, 1, 1)],
        })

        result = latest_per_key(df, "id", "created")

        assert result["value"].to_list() == ["first"]

    def test_null_order_value_loses(self):
        df = pl.DataFrame({
            "id": [1, 1],
            "value": ["undated", "dated"],
            "created": [None, date(2020, 1, 1)],
        })

        result = latest_per_key(df, "id", "created")

        assert result["value"].to_list() == ["dated"]


class TestFirstPerKey:
    def test_keeps_first_in_input_order(self):
        df = pl.DataFrame({"cid": ["B", "A", "B"], "value": [1, 2, 3]})

        result = first_per_key(df, "cid")

        assert result["cid"].to_list() == ["B", "A"]
        assert result["value"].to_list() == [1, 2]


class TestMapCodes:
    """Tests for map_codes"""

    def test_maps_after_trim_and_upper(self):
        df = pl.DataFrame({"code": [" f ", "M", "m", "X", None]})

        result = df.select(map_codes(pl.col("code"), {"F": "Female", "M": "Male"}))

        assert result["code"].to_list() == ["Female", "Male", "Male", "n/a", "n/a"]

    def test_custom_default(self):
        df = pl.DataFrame({"code": ["Q"]})

        result = df.select(map_codes(pl.col("code"), {"A": "Alpha"}, default="unknown"))

        assert result["code"].to_list() == ["unknown"]


class TestYyyymmddToDate:
    def test_invalid_values_become_null(self):
        df = pl.DataFrame({"dt": [20130101, 0, 2013010, None, 20131301]})

        result = df.select(yyyymmdd_to_date("dt"))

        assert result["dt"].to_list() == [date(2013, 1, 1), None, None, None, None]


class TestLeftLookup:
    def test_preserves_left_rows_and_order(self):
        left = pl.DataFrame({"key": ["c", "a", "x", "b"], "n": [1, 2, 3, 4]})
        lookup = pl.DataFrame({"code": ["a", "b", "c"], "label": ["A", "B", "C"]})

        result = left_lookup(left, lookup, left_on="key", right_on="code")

        assert result["key"].to_list() == ["c", "a", "x", "b"]
        assert result["label"].to_list() == ["C", "A", None, "B"]
        assert "code" not in result.columns


class TestAssignSurrogateKey:
    def test_dense_keys_by_natural_key(self):
        df = pl.DataFrame({"natural": ["m", "b", "z"]})

        result = assign_surrogate_key(df, "natural", "sk")

        assert result["natural"].to_list() == ["b", "m", "z"]
        assert result["sk"].to_list() == [1, 2, 3]
        assert result["sk"].dtype == pl.Int64

    def test_empty_frame(self):
        df = pl.DataFrame({"natural": []}, schema={"natural": pl.Utf8})

        result = assign_surrogate_key(df, "natural", "sk")

        assert result.is_empty()
        assert "sk" in result.columns
