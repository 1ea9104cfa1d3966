"""
Dataset relay - reads Domo datasets as JSON records and writes records back as CSV.
"""

import logging
from typing import Any, List, Optional, Tuple

from domo_relay.core.exceptions import (
    RelayError,
    TokenAcquisitionError,
    UpstreamAuthError,
    UpstreamError,
    ValidationError,
)
from domo_relay.core.schemas.dataset import DatasetRecords
from domo_relay.providers.domo.client import DomoClient
from domo_relay.providers.domo.services import csv_codec
from domo_relay.providers.domo.services.token_manager import TokenManager

logger = logging.getLogger(__name__)

# A read that hits 401 gets one retry with a freshly acquired token
READ_ATTEMPTS = 2


class DatasetRelay:
    """
    Proxies dataset reads and writes between the front end and Domo.

    Reads fetch the schema and the headerless CSV export and zip them into
    records. Writes serialize records in schema order and replace the dataset
    content in one PUT.
    """

    def __init__(
        self,
        client: DomoClient,
        token_manager: TokenManager,
        write_timeout: float = 120.0,
    ):
        self.client = client
        self.token_manager = token_manager
        self.write_timeout = write_timeout

    async def _read_once(self, dataset_id: str) -> Tuple[List[str], str]:
        token = await self.token_manager.ensure_token()
        try:
            columns = await self.client.get_dataset_columns(dataset_id, token)
            csv_text = await self.client.get_dataset_csv(dataset_id, token)
        except UpstreamAuthError:
            self.token_manager.invalidate(token)
            raise
        return csv_codec.visible_columns(columns), csv_text

    async def fetch_dataset(self, dataset_id: str) -> DatasetRecords:
        """Read a dataset as records.

        Args:
            dataset_id: Domo dataset id

        Returns:
            DatasetRecords with the visible columns and one record per CSV row

        Raises:
            UpstreamError: With status 500 for any upstream or token failure
        """
        for attempt in range(1, READ_ATTEMPTS + 1):
            try:
                columns, csv_text = await self._read_once(dataset_id)
                break
            except UpstreamAuthError as e:
                if attempt == READ_ATTEMPTS:
                    raise self._read_failure(dataset_id, e) from e
                logger.info(f"Token expired while reading dataset {dataset_id}. Refreshing...")
                try:
                    await self.token_manager.acquire_token()
                except TokenAcquisitionError as refresh_error:
                    raise self._read_failure(dataset_id, refresh_error) from refresh_error
            except RelayError as e:
                raise self._read_failure(dataset_id, e) from e

        records = csv_codec.csv_to_records(csv_text, columns)
        logger.info(f"Fetched dataset {dataset_id}: {len(records)} rows, {len(columns)} columns")
        return DatasetRecords(dataset_id=dataset_id, columns=columns, records=records)

    def _read_failure(self, dataset_id: str, cause: RelayError) -> UpstreamError:
        logger.error(f"Error fetching dataset {dataset_id}: {cause.details or cause.message}")
        return UpstreamError(
            "Failed to fetch dataset",
            details=cause.details if cause.details is not None else cause.message,
            status_code=500,
            upstream_status=getattr(cause, "upstream_status", None),
        )

    async def update_dataset(self, dataset_id: str, records: Optional[List[Any]]) -> int:
        """Replace a dataset's content with ``records``.

        The full (unfiltered) schema drives column order, so reserved batch
        columns present in the schema are uploaded as empty cells.

        Args:
            dataset_id: Domo dataset id
            records: Non-empty list of row mappings

        Returns:
            The upstream HTTP status of the PUT

        Raises:
            ValidationError: If ``records`` is missing, not a list, or empty
            UpstreamError: Carrying the upstream status (or 500); writes are never retried
        """
        if not records or not isinstance(records, list):
            raise ValidationError("No records provided")
        if not all(isinstance(record, dict) for record in records):
            raise ValidationError("Every record must be an object keyed by column name")

        logger.info(f"Saving dataset {dataset_id} with {len(records)} rows")
        token = ""
        try:
            token = await self.token_manager.ensure_token()
            columns = await self.client.get_dataset_columns(dataset_id, token)
            payload = csv_codec.records_to_csv(records, columns)
            status_code = await self.client.put_dataset_csv(
                dataset_id, token, payload, timeout=self.write_timeout
            )
        except UpstreamAuthError as e:
            await self._refresh_after_rejection(token)
            raise self._write_failure(dataset_id, e) from e
        except RelayError as e:
            raise self._write_failure(dataset_id, e) from e

        logger.info(f"Domo dataset {dataset_id} updated: {status_code}")
        return status_code

    async def _refresh_after_rejection(self, token: str) -> None:
        self.token_manager.invalidate(token)
        try:
            await self.token_manager.acquire_token()
        except TokenAcquisitionError as e:
            # The write already failed; the next call retries acquisition via ensure_token
            logger.warning(f"Token refresh after rejected write failed: {e.details or e.message}")

    def _write_failure(self, dataset_id: str, cause: RelayError) -> UpstreamError:
        logger.error(f"Error updating dataset {dataset_id}: {cause.details or cause.message}")
        upstream_status = getattr(cause, "upstream_status", None)
        return UpstreamError(
            "Failed to update dataset",
            details=cause.details if cause.details is not None else cause.message,
            status_code=upstream_status or 500,
            upstream_status=upstream_status,
        )
