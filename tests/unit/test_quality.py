"""
Unit Tests - Data Quality
"""
from datetime import date

import pytest
import polars as pl

from sales_dwh.quality.validators import (
    DataValidator,
    ValidationSeverity,
    ValidationStatus,
    create_dim_customers_validator,
    validate_gold,
    validate_silver,
)


class TestDataValidator:
    """Tests for DataValidator"""

    def test_not_null_check_passes(self):
        df = pl.DataFrame({"id": [1, 2, 3], "name": ["a", "b", "c"]})

        validator = DataValidator()
        validator.add_not_null_check("id")

        result = validator.validate(df)

        assert result.status == ValidationStatus.PASSED
        assert result.passed_checks == 1

    def test_not_null_check_fails(self):
        df = pl.DataFrame({"id": [1, None, 3], "name": ["a", "b", "c"]})

        validator = DataValidator()
        validator.add_not_null_check("id")

        result = validator.validate(df)

        assert result.status == ValidationStatus.FAILED
        assert result.failed_checks == 1
        assert result.get_check("not_null_id").failed_rows == 1

    def test_unique_check_reports_duplicated_values(self):
        df = pl.DataFrame({"id": [1, 2, 1, 1]})

        validator = DataValidator()
        validator.add_unique_check("id")

        result = validator.validate(df)
        check = result.get_check("unique_id")

        assert result.status == ValidationStatus.FAILED
        assert check.violations.to_dicts() == [{"id": 1, "duplicate_count": 3}]

    def test_range_check_ignores_nulls(self):
        df = pl.DataFrame({"price": [10.0, 50.0, -5.0, 200.0, None]})

        validator = DataValidator()
        validator.add_range_check("price", min_value=0, max_value=100)

        result = validator.validate(df)

        assert result.get_check("range_price").failed_rows == 2

    def test_enum_check_treats_null_as_violation(self):
        df = pl.DataFrame({"gender": ["Male", "Female", None, "x"]})

        validator = DataValidator()
        validator.add_enum_check("gender", ["Male", "Female", "n/a"])

        result = validator.validate(df)

        assert result.get_check("enum_gender").failed_rows == 2

    def test_enum_check_allow_null(self):
        df = pl.DataFrame({"gender": ["Male", None]})

        validator = DataValidator()
        validator.add_enum_check("gender", ["Male"], allow_null=True)

        assert validator.validate(df).status == ValidationStatus.PASSED

    def test_dense_key_check(self):
        validator = DataValidator()
        validator.add_dense_key_check("key")

        assert validator.validate(pl.DataFrame({"key": [3, 1, 2]})).status == ValidationStatus.PASSED
        assert validator.validate(pl.DataFrame({"key": [1, 2, 4]})).status == ValidationStatus.FAILED
        assert validator.validate(pl.DataFrame({"key": [1, 1, 2]})).status == ValidationStatus.FAILED

    def test_referential_integrity(self):
        facts = pl.DataFrame({"customer_key": [1, 2, 9, None]})
        dims = pl.DataFrame({"customer_key": [1, 2, 3]})

        validator = DataValidator()
        validator.add_referential_integrity_check("customer_key", dims, "customer_key")

        result = validator.validate(facts)
        check = result.get_check("ref_integrity_customer_key")

        assert not check.passed
        assert check.violations["customer_key"].to_list() == [9, None]

    def test_referential_integrity_requires_single_match(self):
        facts = pl.DataFrame({"customer_key": [1]})
        dims = pl.DataFrame({"customer_key": [1, 1]})

        validator = DataValidator()
        validator.add_referential_integrity_check("customer_key", dims, "customer_key")

        assert validator.validate(facts).status == ValidationStatus.FAILED

    def test_missing_column_fails_check(self):
        validator = DataValidator()
        validator.add_not_null_check("absent")

        result = validator.validate(pl.DataFrame({"id": [1]}))

        assert result.get_check("not_null_absent").message == "Column 'absent' not found"

    def test_warnings_give_partial_status(self):
        df = pl.DataFrame({"value": [-1]})

        validator = DataValidator(strict_mode=False)
        validator.add_range_check("value", min_value=0, severity=ValidationSeverity.WARNING)

        result = validator.validate(df)

        assert result.status == ValidationStatus.PARTIAL
        assert result.warning_count == 1
        assert result.failed_checks == 0

    def test_strict_mode_fails_on_warning(self):
        df = pl.DataFrame({"value": [-1]})

        validator = DataValidator(strict_mode=True)
        validator.add_range_check("value", min_value=0, severity=ValidationSeverity.WARNING)

        assert validator.validate(df).status == ValidationStatus.FAILED

    def test_row_check_with_unknown_column(self):
        validator = DataValidator()
        validator.add_row_check("rule", pl.col("missing") > 0, "Rule broken")

        result = validator.validate(pl.DataFrame({"id": [1]}))

        assert not result.get_check("rule").passed

    def test_get_check_unknown_name(self):
        result = DataValidator().validate(pl.DataFrame({"id": [1]}))

        with pytest.raises(KeyError):
            result.get_check("nope")

    def test_to_dict_samples_violations(self):
        df = pl.DataFrame({"id": [None] * 20})

        validator = DataValidator()
        validator.add_not_null_check("id")

        report = validator.validate(df, table="t").to_dict(sample_size=3)

        assert report["table"] == "t"
        assert report["checks"][0]["failed_rows"] == 20
        assert len(report["checks"][0]["sample"]) == 3


class TestGoldSuites:
    """Tests for the gold quality suites"""

    def test_dimensions_pass(self, gold_tables):
        results = validate_gold(gold_tables)

        assert results["dim_customers"].status == ValidationStatus.PASSED
        assert results["dim_products"].status == ValidationStatus.PASSED

    def test_dangling_product_reported(self, gold_tables):
        fact = validate_gold(gold_tables)["fact_sales"]
        check = fact.get_check("ref_integrity_product_key")

        assert fact.status == ValidationStatus.FAILED
        assert check.violations["order_number"].to_list() == ["SO4"]
        assert fact.get_check("ref_integrity_customer_key").passed
        assert fact.get_check("sales_amount_matches_quantity_price").passed

    def test_clean_fact_passes(self, gold_tables):
        gold = dict(gold_tables)
        gold["fact_sales"] = gold_tables["fact_sales"].filter(pl.col("product_key").is_not_null())

        assert validate_gold(gold)["fact_sales"].failed_checks == 0

    def test_duplicate_surrogate_key_detected(self, gold_tables):
        customers = pl.concat([gold_tables["dim_customers"], gold_tables["dim_customers"].head(1)])

        result = create_dim_customers_validator().validate(customers)

        assert not result.get_check("unique_customer_key").passed
        assert not result.get_check("dense_customer_key").passed

    def test_missing_natural_keys_are_warnings(self, gold_tables):
        gold = dict(gold_tables)
        gold["fact_sales"] = gold_tables["fact_sales"].with_columns(
            pl.when(pl.col("order_number") == "SO1")
            .then(None)
            .otherwise(pl.col("order_number"))
            .alias("order_number")
        )

        check = validate_gold(gold)["fact_sales"].get_check("not_null_order_number")

        assert not check.passed
        assert check.severity == ValidationSeverity.WARNING
        assert check.failed_rows == 1


class TestSilverSuites:
    """Tests for the silver quality suites"""

    def test_reconciled_tables_pass_error_checks(self, silver_tables, reference_date):
        results = validate_silver(silver_tables, reference_date)

        assert set(results) == set(silver_tables)
        for table, result in results.items():
            assert result.failed_checks == 0, table

    def test_untrimmed_bronze_detected(self, bronze_tables, reference_date):
        customers = bronze_tables["crm_cust_info"].filter(pl.col("cst_id") == 2)

        result = validate_silver({"crm_cust_info": customers}, reference_date)["crm_cust_info"]

        assert not result.get_check("trimmed_names").passed

    def test_future_birthdate_detected(self, reference_date):
        erp = pl.DataFrame({
            "cid": ["AW1"],
            "bdate": [date(2030, 1, 1)],
            "gen": ["Male"],
        })

        result = validate_silver({"erp_cust_az12": erp}, reference_date)["erp_cust_az12"]

        assert not result.get_check("birthdate_not_in_future").passed
