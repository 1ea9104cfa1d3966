"""
Unit tests for the dataset relay

Runs the read and write paths against the fake Domo API, including the
single token refresh on 401.
"""

import pytest

from domo_relay.core.exceptions import UpstreamError, ValidationError

pytestmark = pytest.mark.unit


class TestFetchDataset:
    async def test_records_built_from_visible_columns(self, dataset_relay):
        result = await dataset_relay.fetch_dataset("7")

        assert result.dataset_id == "7"
        assert result.columns == ["Name", "Score"]
        assert result.records == [
            {"Name": "Alice", "Score": "91"},
            {"Name": "Bob", "Score": "78"},
        ]

    async def test_content_requested_as_csv(self, dataset_relay, fake_domo):
        await dataset_relay.fetch_dataset("7")

        request = fake_domo.calls("GET", "/v1/datasets/7/data")[0]
        assert request.headers["Accept"] == "text/csv"
        assert request.headers["Authorization"] == "Bearer token-1"

    async def test_consecutive_reads_share_one_token(self, dataset_relay, fake_domo):
        await dataset_relay.fetch_dataset("7")
        await dataset_relay.fetch_dataset("7")

        assert fake_domo.token_grants == 1

    async def test_expired_token_refreshed_and_read_retried_once(
        self, dataset_relay, token_manager, fake_domo
    ):
        await token_manager.ensure_token()
        fake_domo.expire_tokens()

        result = await dataset_relay.fetch_dataset("7")

        assert result.columns == ["Name", "Score"]
        assert fake_domo.token_grants == 2
        # first attempt stops at the rejected metadata call; the retry reads both
        assert len(fake_domo.calls("GET", "/v1/datasets/7")) == 2
        assert len(fake_domo.calls("GET", "/v1/datasets/7/data")) == 1
        assert token_manager.access_token == "token-2"

    async def test_second_401_surfaces_as_500(self, dataset_relay, fake_domo, monkeypatch):
        # Domo never accepts any token
        monkeypatch.setattr(fake_domo, "_authorized", lambda request: False)

        with pytest.raises(UpstreamError) as exc_info:
            await dataset_relay.fetch_dataset("7")

        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "Failed to fetch dataset"
        assert fake_domo.token_grants == 2
        assert len(fake_domo.calls("GET", "/v1/datasets/7")) == 2

    async def test_other_failures_surface_as_500_with_payload(self, dataset_relay):
        with pytest.raises(UpstreamError) as exc_info:
            await dataset_relay.fetch_dataset("missing")

        assert exc_info.value.status_code == 500
        assert exc_info.value.details == {"status": 404, "message": "Not Found"}

    @pytest.mark.parametrize(
        "metadata",
        [
            {"schema": {"columns": [{"type": "STRING"}]}},
            {"schema": {"columns": ["Name"]}},
            ["not", "an", "object"],
        ],
    )
    async def test_unreadable_metadata_surfaces_as_500(self, dataset_relay, fake_domo, metadata):
        fake_domo.metadata_overrides["7"] = metadata

        with pytest.raises(UpstreamError) as exc_info:
            await dataset_relay.fetch_dataset("7")

        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "Failed to fetch dataset"
        assert exc_info.value.upstream_status == 200
        assert fake_domo.calls("GET", "/v1/datasets/7/data") == []

    async def test_token_failure_surfaces_as_500(self, dataset_relay, fake_domo):
        fake_domo.token_error = {"error": "server_error"}

        with pytest.raises(UpstreamError) as exc_info:
            await dataset_relay.fetch_dataset("7")

        assert exc_info.value.status_code == 500


class TestUpdateDataset:
    async def test_records_uploaded_as_csv(self, dataset_relay, fake_domo):
        status = await dataset_relay.update_dataset(
            "42", [{"Name": "'Brien, J.", "Notes": "line1\nline2"}]
        )

        assert status == 200
        upload = fake_domo.uploads[0]
        assert upload["body"] == '"Brien, J.","line1\nline2"'
        assert upload["content_type"] == "text/csv; charset=utf-8"

    async def test_reserved_columns_not_filtered_on_write(self, dataset_relay, fake_domo):
        await dataset_relay.update_dataset("7", [{"Name": "Carol", "Score": 88}])

        assert fake_domo.uploads[0]["body"] == ",Carol,,88"

    @pytest.mark.parametrize("records", [None, [], "not-a-list"])
    async def test_missing_records_rejected(self, dataset_relay, fake_domo, records):
        with pytest.raises(ValidationError):
            await dataset_relay.update_dataset("42", records)

        assert fake_domo.requests == []

    async def test_upstream_status_surfaced_without_retry(self, dataset_relay, fake_domo):
        fake_domo.put_status = 403

        with pytest.raises(UpstreamError) as exc_info:
            await dataset_relay.update_dataset("42", [{"Name": "x"}])

        assert exc_info.value.status_code == 403
        assert exc_info.value.details["message"] == "Upload rejected"
        assert len(fake_domo.uploads) == 1

    async def test_401_refreshes_token_but_does_not_retry(
        self, dataset_relay, token_manager, fake_domo
    ):
        await token_manager.ensure_token()
        fake_domo.expire_tokens()

        with pytest.raises(UpstreamError) as exc_info:
            await dataset_relay.update_dataset("42", [{"Name": "x"}])

        assert exc_info.value.status_code == 401
        assert fake_domo.uploads == []
        assert token_manager.access_token == "token-2"
