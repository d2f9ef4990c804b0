"""
Layer Store

Persists each medallion layer as a directory of Parquet files under the
data lake root:

    <lake>/bronze/crm_cust_info.parquet
    <lake>/silver/...
    <lake>/gold/dim_customers.parquet

A layer is written into a hidden staging directory first and swapped into
place once every table is on disk, so readers never observe a partially
rewritten layer.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import json
import shutil
import tempfile

import polars as pl
import structlog

from sales_dwh.config import get_settings
from sales_dwh.transformation.transformers import Layer

logger = structlog.get_logger(__name__)

MANIFEST_FILE = "_manifest.json"


class LayerStore:
    """
    Parquet-backed storage for layer snapshots.

    Example:
        store = LayerStore("./data")
        store.write_layer(Layer.GOLD, gold_tables)
        dim_customers = store.read_table(Layer.GOLD, "dim_customers")
    """

    def __init__(self, root: Optional[Union[str, Path]] = None):
        self.root = Path(root or get_settings().data_lake.lake_path)
        self.root.mkdir(parents=True, exist_ok=True)

    def layer_path(self, layer: Layer) -> Path:
        return self.root / Layer(layer).value

    def has_layer(self, layer: Layer) -> bool:
        return (self.layer_path(layer) / MANIFEST_FILE).exists()

    def write_layer(self, layer: Layer, tables: Dict[str, pl.DataFrame]) -> Path:
        """
        Replace a layer with a new table set.

        Args:
            layer: Target layer
            tables: Complete new contents of the layer

        Returns:
            Path of the written layer
        """
        layer = Layer(layer)
        staging = Path(tempfile.mkdtemp(prefix=f".{layer.value}-", dir=self.root))

        try:
            for name, df in tables.items():
                df.write_parquet(staging / f"{name}.parquet")

            manifest = {
                "layer": layer.value,
                "written_at": datetime.utcnow().isoformat(),
                "tables": {name: len(df) for name, df in tables.items()},
            }
            (staging / MANIFEST_FILE).write_text(json.dumps(manifest, indent=2))
        except Exception:
            shutil.rmtree(staging, ignore_errors=True)
            raise

        target = self.layer_path(layer)
        previous = self.root / f".{layer.value}-previous"
        if previous.exists():
            shutil.rmtree(previous)
        if target.exists():
            target.rename(previous)
        staging.rename(target)
        shutil.rmtree(previous, ignore_errors=True)

        logger.info(
            f"Written {layer.value} layer",
            path=str(target),
            tables=len(tables),
            rows=sum(len(df) for df in tables.values()),
        )
        return target

    def manifest(self, layer: Layer) -> Dict[str, Any]:
        """
        Read a layer's manifest.

        Raises:
            FileNotFoundError: If the layer has not been written
        """
        path = self.layer_path(layer) / MANIFEST_FILE
        if not path.exists():
            raise FileNotFoundError(f"Layer '{Layer(layer).value}' has not been built")
        return json.loads(path.read_text())

    def table_names(self, layer: Layer) -> List[str]:
        return list(self.manifest(layer)["tables"])

    def read_table(self, layer: Layer, name: str) -> pl.DataFrame:
        """
        Read one table of a layer.

        Raises:
            FileNotFoundError: If the layer or table does not exist
        """
        path = self.layer_path(layer) / f"{name}.parquet"
        if not path.exists():
            raise FileNotFoundError(f"Table '{name}' not found in layer '{Layer(layer).value}'")
        return pl.read_parquet(path)

    def read_layer(self, layer: Layer) -> Dict[str, pl.DataFrame]:
        """Read every table of a layer"""
        return {name: self.read_table(layer, name) for name in self.table_names(layer)}
