"""
Data Validation Module

Rule-based quality checks over silver and gold relations.

Every check produces the set of offending rows: an empty set means the
check passed. Validation only reports; it never modifies data and never
stops the pipeline.

Features:
- Null, uniqueness and range checks
- Closed-set (enumeration) checks
- Dense surrogate key checks
- Referential integrity between fact and dimension tables
- Row-level business rule checks
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import polars as pl
import structlog

from sales_dwh.config import get_settings
from sales_dwh.database.models import Gender, MaritalStatus, ProductLine

logger = structlog.get_logger(__name__)


class ValidationSeverity(str, Enum):
    """Severity levels for validation failures"""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ValidationStatus(str, Enum):
    """Overall validation status"""
    PASSED = "passed"
    FAILED = "failed"
    PARTIAL = "partial"


@dataclass
class ValidationCheck:
    """Single validation check result"""
    name: str
    passed: bool
    severity: ValidationSeverity
    message: str
    violations: pl.DataFrame = field(default_factory=pl.DataFrame)
    total_rows: int = 0

    @property
    def failed_rows(self) -> int:
        return len(self.violations)

    def to_dict(self, sample_size: int = 10) -> Dict[str, Any]:
        return {
            "name": self.name,
            "passed": self.passed,
            "severity": self.severity.value,
            "message": self.message,
            "failed_rows": self.failed_rows,
            "total_rows": self.total_rows,
            "sample": self.violations.head(sample_size).to_dicts(),
        }


@dataclass
class ValidationResult:
    """Complete validation suite result"""
    status: ValidationStatus
    total_checks: int
    passed_checks: int
    failed_checks: int
    warning_count: int
    checks: List[ValidationCheck] = field(default_factory=list)
    table: Optional[str] = None
    started_at: datetime = field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None

    @property
    def success_rate(self) -> float:
        """Percentage of passed checks"""
        if self.total_checks == 0:
            return 100.0
        return (self.passed_checks / self.total_checks) * 100

    def get_check(self, name: str) -> ValidationCheck:
        for check in self.checks:
            if check.name == name:
                return check
        raise KeyError(name)

    def to_dict(self, sample_size: int = 10) -> Dict[str, Any]:
        return {
            "table": self.table,
            "status": self.status.value,
            "total_checks": self.total_checks,
            "passed_checks": self.passed_checks,
            "failed_checks": self.failed_checks,
            "warning_count": self.warning_count,
            "success_rate": round(self.success_rate, 2),
            "checks": [c.to_dict(sample_size) for c in self.checks],
        }


class DataValidator:
    """
    Data validator with a fluent check suite.

    Example:
        validator = DataValidator()
        validator.add_unique_check("customer_key")
        validator.add_enum_check("gender", ["Male", "Female", "n/a"])
        result = validator.validate(df)
    """

    def __init__(self, strict_mode: Optional[bool] = None):
        if strict_mode is None:
            strict_mode = get_settings().data_quality.strict_mode
        self.strict_mode = strict_mode  # Fail on any warning
        self._checks: List[Callable[[pl.DataFrame], ValidationCheck]] = []

    @staticmethod
    def _missing_column(name: str, column: str, severity: ValidationSeverity) -> ValidationCheck:
        return ValidationCheck(
            name=name,
            passed=False,
            severity=severity,
            message=f"Column '{column}' not found",
        )

    @staticmethod
    def _from_violations(
        name: str,
        violations: pl.DataFrame,
        total: int,
        severity: ValidationSeverity,
        fail_message: str,
        pass_message: str,
    ) -> ValidationCheck:
        passed = violations.is_empty()
        return ValidationCheck(
            name=name,
            passed=passed,
            severity=severity,
            message=pass_message if passed else fail_message,
            violations=violations,
            total_rows=total,
        )

    def add_not_null_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for null values in column"""
        name = f"not_null_{column}"

        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return self._missing_column(name, column, severity)

            violations = df.filter(pl.col(column).is_null())
            return self._from_violations(
                name, violations, len(df), severity,
                f"Column '{column}' has {len(violations)} null values",
                f"Column '{column}' has no null values",
            )

        self._checks.append(check)
        return self

    def add_unique_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """
        Add check for uniqueness of column values.

        Violations are one row per duplicated value with its count.
        """
        name = f"unique_{column}"

        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return self._missing_column(name, column, severity)

            violations = (
                df.group_by(column)
                .agg(pl.len().alias("duplicate_count"))
                .filter(pl.col("duplicate_count") > 1)
                .sort(column, nulls_last=True)
            )
            return self._from_violations(
                name, violations, len(df), severity,
                f"Column '{column}' has {len(violations)} duplicated values",
                f"Column '{column}' values are unique",
            )

        self._checks.append(check)
        return self

    def add_range_check(
        self,
        column: str,
        min_value: Optional[float] = None,
        max_value: Optional[float] = None,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for values within specified range (nulls are ignored)"""
        name = f"range_{column}"

        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return self._missing_column(name, column, severity)

            condition = pl.lit(False)
            if min_value is not None:
                condition = condition | (pl.col(column) < min_value)
            if max_value is not None:
                condition = condition | (pl.col(column) > max_value)

            violations = df.filter(condition.fill_null(False))
            return self._from_violations(
                name, violations, len(df), severity,
                f"Column '{column}' has {len(violations)} values outside range [{min_value}, {max_value}]",
                "All values in range",
            )

        self._checks.append(check)
        return self

    def add_enum_check(
        self,
        column: str,
        allowed_values: List[Any],
        allow_null: bool = False,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for values in a closed set"""
        name = f"enum_{column}"

        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return self._missing_column(name, column, severity)

            outside = ~pl.col(column).is_in(allowed_values)
            if allow_null:
                outside = outside & pl.col(column).is_not_null()
            else:
                outside = outside | pl.col(column).is_null()

            violations = df.filter(outside.fill_null(False))
            return self._from_violations(
                name, violations, len(df), severity,
                f"Column '{column}' has {len(violations)} values outside {allowed_values}",
                "All values are valid",
            )

        self._checks.append(check)
        return self

    def add_dense_key_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """
        Add check that a surrogate key is exactly 1..n.

        Rows with a null, duplicated or out-of-range key are violations; with
        none of those, n distinct keys in 1..n leave no gaps.
        """
        name = f"dense_{column}"

        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return self._missing_column(name, column, severity)

            total = len(df)
            violations = df.filter(
                pl.col(column).is_null()
                | (pl.col(column) < 1)
                | (pl.col(column) > total)
                | pl.col(column).is_duplicated()
            )
            return self._from_violations(
                name, violations, total, severity,
                f"Column '{column}' is not a dense 1..{total} sequence",
                f"Column '{column}' is a dense 1..{total} sequence",
            )

        self._checks.append(check)
        return self

    def add_referential_integrity_check(
        self,
        column: str,
        reference_df: pl.DataFrame,
        reference_column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """
        Add referential integrity check.

        Every row must match exactly one reference row; null keys count as
        orphans.
        """
        name = f"ref_integrity_{column}"

        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return self._missing_column(name, column, severity)

            reference = reference_df.select(pl.col(reference_column).alias(column))
            matches = reference.group_by(column).agg(pl.len().alias("__matches"))

            violations = (
                df.with_row_index("__row")
                .join(matches, on=column, how="left")
                .filter(pl.col("__matches").fill_null(0) != 1)
                .sort("__row")
                .drop(["__row", "__matches"])
            )
            return self._from_violations(
                name, violations, len(df), severity,
                f"Column '{column}' has {len(violations)} orphan records",
                "Referential integrity maintained",
            )

        self._checks.append(check)
        return self

    def add_row_check(
        self,
        name: str,
        violation: pl.Expr,
        message_on_fail: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add a business rule; rows where ``violation`` is true are reported"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            try:
                violations = df.filter(violation.fill_null(False))
            except pl.exceptions.ColumnNotFoundError as e:
                return ValidationCheck(
                    name=name,
                    passed=False,
                    severity=severity,
                    message=f"Check failed with error: {e}",
                )
            return self._from_violations(
                name, violations, len(df), severity,
                f"{message_on_fail} ({len(violations)} rows)",
                "Check passed",
            )

        self._checks.append(check)
        return self

    def validate(self, df: pl.DataFrame, table: Optional[str] = None) -> ValidationResult:
        """
        Run all validation checks on DataFrame.

        Args:
            df: DataFrame to validate
            table: Name used in the report

        Returns:
            ValidationResult with all check results
        """
        started_at = datetime.utcnow()
        results = []

        logger.info(f"Running {len(self._checks)} validation checks on {len(df)} rows", table=table)

        for check_func in self._checks:
            result = check_func(df)
            results.append(result)

            if not result.passed:
                logger.warning(
                    f"Validation failed: {result.name}",
                    table=table,
                    message=result.message,
                    severity=result.severity.value,
                )

        passed_checks = sum(1 for r in results if r.passed)
        failed_checks = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.ERROR)
        warning_count = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.WARNING)

        if failed_checks > 0:
            status = ValidationStatus.FAILED
        elif warning_count > 0 and self.strict_mode:
            status = ValidationStatus.FAILED
        elif warning_count > 0:
            status = ValidationStatus.PARTIAL
        else:
            status = ValidationStatus.PASSED

        validation_result = ValidationResult(
            status=status,
            total_checks=len(results),
            passed_checks=passed_checks,
            failed_checks=failed_checks,
            warning_count=warning_count,
            checks=results,
            table=table,
            started_at=started_at,
            completed_at=datetime.utcnow(),
        )

        logger.info(
            f"Validation complete: {status.value}",
            table=table,
            passed=passed_checks,
            failed=failed_checks,
            warnings=warning_count,
        )

        return validation_result


def _values(enum_cls) -> List[str]:
    return [member.value for member in enum_cls]


# =============================================================================
# GOLD LAYER SUITES
# =============================================================================

def create_dim_customers_validator() -> DataValidator:
    """Create pre-configured validator for the customer dimension"""
    return (
        DataValidator()
        .add_unique_check("customer_key")
        .add_dense_key_check("customer_key")
        .add_not_null_check("customer_id")
        .add_unique_check("customer_id")
        .add_enum_check("gender", _values(Gender))
        .add_enum_check("marital_status", _values(MaritalStatus))
    )


def create_dim_products_validator() -> DataValidator:
    """Create pre-configured validator for the product dimension"""
    return (
        DataValidator()
        .add_unique_check("product_key")
        .add_dense_key_check("product_key")
        .add_unique_check("product_number")
        .add_not_null_check("product_number", severity=ValidationSeverity.WARNING)
        .add_not_null_check("product_id", severity=ValidationSeverity.WARNING)
        .add_enum_check("product_line", _values(ProductLine))
        .add_range_check("cost", min_value=0, severity=ValidationSeverity.WARNING)
    )


def create_fact_sales_validator(
    dim_customers: pl.DataFrame,
    dim_products: pl.DataFrame,
) -> DataValidator:
    """Create pre-configured validator for the sales fact"""
    return (
        DataValidator()
        .add_not_null_check("order_number", severity=ValidationSeverity.WARNING)
        .add_referential_integrity_check("customer_key", dim_customers, "customer_key")
        .add_referential_integrity_check("product_key", dim_products, "product_key")
        .add_row_check(
            "sales_amount_matches_quantity_price",
            pl.col("sales_amount") != pl.col("quantity") * pl.col("price"),
            "Sales amount differs from quantity x price",
        )
        .add_row_check(
            "order_date_before_shipping",
            (pl.col("order_date") > pl.col("shipping_date")) | (pl.col("order_date") > pl.col("due_date")),
            "Order date after shipping or due date",
            severity=ValidationSeverity.WARNING,
        )
    )


def validate_gold(gold: Dict[str, pl.DataFrame]) -> Dict[str, ValidationResult]:
    """
    Run the gold suites: key uniqueness and density, closed enumerations and
    fact-to-dimension coverage.
    """
    return {
        "dim_customers": create_dim_customers_validator().validate(gold["dim_customers"], "dim_customers"),
        "dim_products": create_dim_products_validator().validate(gold["dim_products"], "dim_products"),
        "fact_sales": create_fact_sales_validator(
            gold["dim_customers"], gold["dim_products"]
        ).validate(gold["fact_sales"], "fact_sales"),
    }


# =============================================================================
# SILVER LAYER SUITES
# =============================================================================

def _untrimmed(column: str) -> pl.Expr:
    return pl.col(column) != pl.col(column).str.strip_chars()


def create_silver_validators(reference_date: Optional[date] = None) -> Dict[str, DataValidator]:
    """Create validators for every silver table"""
    reference_date = reference_date or date.today()
    return {
        "crm_cust_info": (
            DataValidator()
            .add_not_null_check("cst_id")
            .add_unique_check("cst_id")
            .add_row_check(
                "trimmed_names",
                _untrimmed("cst_firstname") | _untrimmed("cst_lastname") | _untrimmed("cst_key"),
                "Unwanted leading or trailing spaces",
            )
            .add_enum_check("cst_gndr", _values(Gender))
            .add_enum_check("cst_marital_status", _values(MaritalStatus))
        ),
        "crm_prd_info": (
            DataValidator()
            .add_unique_check("prd_id")
            .add_range_check("prd_cost", min_value=0)
            .add_not_null_check("prd_cost")
            .add_enum_check("prd_line", _values(ProductLine))
            .add_row_check(
                "end_date_after_start",
                pl.col("prd_end_dt") < pl.col("prd_start_dt"),
                "Product end date before start date",
            )
        ),
        "crm_sales_details": (
            DataValidator()
            .add_row_check(
                "order_date_before_shipping",
                (pl.col("sls_order_dt") > pl.col("sls_ship_dt")) | (pl.col("sls_order_dt") > pl.col("sls_due_dt")),
                "Order date after shipping or due date",
                severity=ValidationSeverity.WARNING,
            )
            .add_row_check(
                "sales_consistency",
                pl.col("sls_sales").is_null()
                | pl.col("sls_quantity").is_null()
                | pl.col("sls_price").is_null()
                | (pl.col("sls_sales") <= 0)
                | (pl.col("sls_quantity") <= 0)
                | (pl.col("sls_price") <= 0)
                | (pl.col("sls_sales") != pl.col("sls_quantity") * pl.col("sls_price")),
                "Sales must equal quantity x price and be positive",
                severity=ValidationSeverity.WARNING,
            )
        ),
        "erp_cust_az12": (
            DataValidator()
            .add_unique_check("cid")
            .add_row_check(
                "birthdate_not_in_future",
                pl.col("bdate") > pl.lit(reference_date),
                "Birthdate after the reference date",
            )
            .add_enum_check("gen", _values(Gender))
        ),
        "erp_loc_a101": (
            DataValidator()
            .add_unique_check("cid")
            .add_not_null_check("cntry")
        ),
        "erp_px_cat_g1v2": (
            DataValidator()
            .add_unique_check("id")
        ),
    }


def validate_silver(
    silver: Dict[str, pl.DataFrame],
    reference_date: Optional[date] = None,
) -> Dict[str, ValidationResult]:
    """Run the silver suites over every table present in ``silver``"""
    validators = create_silver_validators(reference_date)
    return {
        table: validator.validate(silver[table], table)
        for table, validator in validators.items()
        if table in silver
    }
