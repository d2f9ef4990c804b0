"""
Unit Tests - Serving API
"""
import pytest
import polars as pl
from fastapi.testclient import TestClient

from sales_dwh.serving.api import create_api_app
from sales_dwh.storage.layer_store import LayerStore
from sales_dwh.transformation.transformers import Layer


@pytest.fixture
def client(layer_store, gold_tables) -> TestClient:
    layer_store.write_layer(Layer.GOLD, gold_tables)
    return TestClient(create_api_app(layer_store))


@pytest.fixture
def empty_client(tmp_path) -> TestClient:
    return TestClient(create_api_app(LayerStore(tmp_path / "empty")))


class TestHealth:
    def test_health(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["checks"]["gold_layer"]["tables"]["fact_sales"] == 4
        assert body["checks"]["database"]["status"] == "not_initialized"

    def test_ready(self, client):
        assert client.get("/api/v1/health/ready").status_code == 200

    def test_not_ready_without_gold(self, empty_client):
        response = empty_client.get("/api/v1/health/ready")

        assert response.status_code == 503
        assert empty_client.get("/api/v1/health").json()["status"] == "degraded"

    def test_live(self, empty_client):
        assert empty_client.get("/api/v1/health/live").json() == {"status": "alive"}

    def test_request_id_header(self, client):
        response = client.get("/api/v1/health/live", headers={"X-Request-ID": "abc"})

        assert response.headers["X-Request-ID"] == "abc"
        assert "X-Response-Time" in response.headers


class TestCustomers:
    def test_list(self, client):
        body = client.get("/api/v1/customers").json()

        assert body["total"] == 3
        assert [c["customer_key"] for c in body["items"]] == [1, 2, 3]

    def test_pagination(self, client):
        body = client.get("/api/v1/customers", params={"page": 2, "page_size": 2}).json()

        assert body["total"] == 3
        assert [c["customer_key"] for c in body["items"]] == [3]

    def test_filter_by_country(self, client):
        body = client.get("/api/v1/customers", params={"country": "Germany"}).json()

        assert body["total"] == 1
        assert body["items"][0]["first_name"] == "Jon"

    def test_get_customer(self, client):
        body = client.get("/api/v1/customers/1").json()

        assert body["gender"] == "Male"
        assert body["birthdate"] == "1980-05-01"

    def test_unknown_customer(self, client):
        assert client.get("/api/v1/customers/99").status_code == 404

    def test_gold_not_built(self, empty_client):
        assert empty_client.get("/api/v1/customers").status_code == 503


class TestProducts:
    def test_filter_by_category(self, client):
        body = client.get("/api/v1/products", params={"category": "Bikes"}).json()

        assert body["total"] == 1
        assert body["items"][0]["product_number"] == "BK-R93R-62"

    def test_get_product(self, client):
        body = client.get("/api/v1/products/3").json()

        assert body["category_id"] == "AC_HE"
        assert body["product_line"] == "n/a"


class TestSales:
    def test_list(self, client):
        body = client.get("/api/v1/sales").json()

        assert body["total"] == 4
        assert body["total_sales_amount"] == 185

    def test_filter_by_customer(self, client):
        body = client.get("/api/v1/sales", params={"customer_key": 1}).json()

        assert [s["order_number"] for s in body["items"]] == ["SO1", "SO4"]

    def test_filter_by_order_date(self, client):
        body = client.get("/api/v1/sales", params={"start_date": "2013-01-02"}).json()

        assert [s["order_number"] for s in body["items"]] == ["SO4"]


class TestQuality:
    def test_report(self, client):
        body = client.get("/api/v1/quality").json()

        assert body["passed"] is False
        checks = {c["name"]: c for c in body["tables"]["fact_sales"]["checks"]}
        assert checks["ref_integrity_product_key"]["failed_rows"] == 1

    def test_gold_not_built(self, empty_client):
        assert empty_client.get("/api/v1/quality").status_code == 503


class TestNullKeys:
    """Missing natural keys in gold are served as nulls"""

    @pytest.fixture
    def null_key_client(self, layer_store, gold_tables) -> TestClient:
        gold_tables["fact_sales"] = gold_tables["fact_sales"].with_columns(
            pl.when(pl.col("order_number") == "SO2")
            .then(None)
            .otherwise(pl.col("order_number"))
            .alias("order_number")
        )
        gold_tables["dim_products"] = gold_tables["dim_products"].with_columns([
            pl.when(pl.col("product_key") == 3).then(None).otherwise(pl.col(c)).alias(c)
            for c in ["product_id", "product_number"]
        ])
        layer_store.write_layer(Layer.GOLD, gold_tables)
        return TestClient(create_api_app(layer_store))

    def test_sales_with_null_order_number(self, null_key_client):
        response = null_key_client.get("/api/v1/sales")

        assert response.status_code == 200
        assert [s["order_number"] for s in response.json()["items"]] == ["SO1", None, "SO3", "SO4"]

    def test_product_with_null_natural_key(self, null_key_client):
        response = null_key_client.get("/api/v1/products/3")

        assert response.status_code == 200
        assert response.json()["product_number"] is None
        assert response.json()["product_id"] is None
