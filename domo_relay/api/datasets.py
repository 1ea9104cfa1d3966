"""
Dataset API endpoints.

Relays dataset reads and writes to Domo, converting between Domo's CSV
format and JSON records.
"""

from fastapi import APIRouter, Depends

from domo_relay.api.dependencies import get_dataset_relay
from domo_relay.core.schemas.dataset import (
    DatasetRecords,
    DatasetUpdateRequest,
    DatasetUpdateResponse,
)
from domo_relay.providers.domo.services.dataset_relay import DatasetRelay

router = APIRouter(prefix="/dataset", tags=["Datasets"])


@router.get("/{dataset_id}", response_model=DatasetRecords)
async def fetch_dataset(
    dataset_id: str,
    relay: DatasetRelay = Depends(get_dataset_relay),
):
    """
    Read a dataset as records.

    Reserved batch columns are removed from the returned schema. A rejected
    token is refreshed and the read retried once before failing with 500.
    """
    return await relay.fetch_dataset(dataset_id)


@router.put("/{dataset_id}", response_model=DatasetUpdateResponse)
async def update_dataset(
    dataset_id: str,
    payload: DatasetUpdateRequest,
    relay: DatasetRelay = Depends(get_dataset_relay),
):
    """
    Replace a dataset's content with the given records.

    Writes are not retried; upstream failures are returned with Domo's status
    code and error body.
    """
    await relay.update_dataset(dataset_id, payload.records)
    return DatasetUpdateResponse(success=True)
