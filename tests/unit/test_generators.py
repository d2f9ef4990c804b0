"""
Unit Tests - Synthetic Source Generator
"""
import polars as pl

from sales_dwh.data.generators import GeneratorConfig, SourceDataGenerator, generate_sources
from sales_dwh.ingestion.sources import SOURCE_TABLES
from sales_dwh.pipeline import WarehousePipeline
from sales_dwh.transformation.transformers import Layer


SMALL = GeneratorConfig(customers=30, products=8, orders=80)


class TestSourceDataGenerator:
    """Tests for SourceDataGenerator"""

    def test_seeded_output_is_reproducible(self):
        first = SourceDataGenerator(SMALL).generate()
        second = SourceDataGenerator(SMALL).generate()

        for name in first:
            assert first[name].equals(second[name]), name

    def test_columns_match_source_tables(self):
        tables = SourceDataGenerator(SMALL).generate()

        for source in SOURCE_TABLES:
            assert [c.lower() for c in tables[source.name].columns] == source.columns

    def test_contains_duplicates_and_prefixed_ids(self):
        tables = SourceDataGenerator(GeneratorConfig(customers=200, duplicate_rate=0.2)).generate()

        customers = tables["crm_cust_info"]
        assert customers["cst_id"].drop_nulls().is_duplicated().any()
        assert tables["erp_cust_az12"]["CID"].str.starts_with("NAS").any()
        assert tables["erp_loc_a101"]["CID"].str.contains("-").all()

    def test_write_layout(self, tmp_path):
        paths = generate_sources(tmp_path, SMALL)

        assert len(paths) == len(SOURCE_TABLES)
        assert (tmp_path / "source_crm" / "cust_info.csv").exists()
        assert (tmp_path / "source_erp" / "PX_CAT_G1V2.csv").exists()

    def test_generated_sources_run_through_pipeline(self, tmp_path, reference_date):
        generate_sources(tmp_path / "datasets", SMALL)
        pipeline = WarehousePipeline(
            lake_path=tmp_path / "lake",
            reference_date=reference_date,
            run_quality_checks=True,
            publish=False,
        )

        result = pipeline.run(tmp_path / "datasets")

        gold = pipeline.store.read_layer(Layer.GOLD)
        assert len(gold["dim_customers"]) == SMALL.customers
        assert len(gold["dim_products"]) == SMALL.products
        assert len(gold["fact_sales"]) == SMALL.orders
        assert gold["fact_sales"]["customer_key"].null_count() == 0
        assert gold["fact_sales"]["product_key"].null_count() == 0
        for table, report in result.gold_quality.items():
            assert report.failed_checks == 0, table

    def test_dangling_rate_produces_orphans(self, tmp_path, reference_date):
        config = GeneratorConfig(customers=30, products=8, orders=200, dangling_rate=0.2)
        generate_sources(tmp_path / "datasets", config)
        pipeline = WarehousePipeline(
            lake_path=tmp_path / "lake",
            reference_date=reference_date,
            run_quality_checks=True,
            publish=False,
        )

        result = pipeline.run(tmp_path / "datasets")

        assert not result.gold_quality["fact_sales"].get_check("ref_integrity_product_key").passed
