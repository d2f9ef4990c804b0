"""
Quality Report Endpoint
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Query

from sales_dwh.quality.validators import validate_gold
from sales_dwh.serving.api.dependencies import get_store
from sales_dwh.storage.layer_store import LayerStore
from sales_dwh.transformation.transformers import Layer

router = APIRouter()


@router.get("")
def quality_report(
    sample_size: int = Query(10, ge=0, le=100),
    store: LayerStore = Depends(get_store),
) -> Dict[str, Any]:
    """Run the gold quality suites against the current gold layer."""
    try:
        gold = store.read_layer(Layer.GOLD)
    except FileNotFoundError:
        raise HTTPException(status_code=503, detail="Gold layer has not been built yet")

    results = validate_gold(gold)
    return {
        "passed": all(r.failed_checks == 0 for r in results.values()),
        "tables": {name: r.to_dict(sample_size) for name, r in results.items()},
    }
