"""Tests for common.aws module."""

import json
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from common.aws import encode_jsonl, partitioned_key, publish_records
from common.errors import FatalIOError

TS = datetime(2024, 3, 7, 9, 5, tzinfo=timezone.utc)


class TestPartitionedKey:
    def test_partitions_by_date(self) -> None:
        assert partitioned_key("ranked_locations", TS) == (
            "ranked_locations/year=2024/month=03/day=07/ranked_locations_2024_03_07_09_05.jsonl"
        )


class TestEncodeJsonl:
    def test_one_line_per_record(self) -> None:
        body = encode_jsonl([{"id": 1, "name": "Zürich"}, {"id": 2}])
        lines = body.decode("utf-8").splitlines()
        assert [json.loads(line) for line in lines] == [{"id": 1, "name": "Zürich"}, {"id": 2}]

    def test_empty(self) -> None:
        assert encode_jsonl([]) == b""


class TestPublishRecords:
    @patch("common.aws.get_s3_client")
    def test_uses_bucket_env(self, mock_client, monkeypatch) -> None:
        monkeypatch.setenv("S3_BUCKET_NAME", "geo-bucket")
        s3 = MagicMock()
        mock_client.return_value = s3

        key = publish_records([{"id": 1}], "ranked_locations", timestamp=TS)

        kwargs = s3.put_object.call_args.kwargs
        assert kwargs["Bucket"] == "geo-bucket"
        assert kwargs["Key"] == key
        assert kwargs["Body"] == b'{"id": 1}\n'
        assert key.startswith("ranked_locations/year=2024/")

    @patch("common.aws.get_s3_client")
    def test_explicit_bucket_wins(self, mock_client, monkeypatch) -> None:
        monkeypatch.setenv("S3_BUCKET_NAME", "env-bucket")
        publish_records([], "ranked_locations", bucket="other")
        assert mock_client.return_value.put_object.call_args.kwargs["Bucket"] == "other"

    def test_no_bucket(self, monkeypatch) -> None:
        monkeypatch.delenv("S3_BUCKET_NAME", raising=False)
        with pytest.raises(FatalIOError, match="S3_BUCKET_NAME"):
            publish_records([{"id": 1}], "ranked_locations")

    @patch("common.aws.get_s3_client")
    def test_client_error_is_fatal(self, mock_client) -> None:
        mock_client.return_value.put_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject"
        )
        with pytest.raises(FatalIOError, match="s3://b/"):
            publish_records([{"id": 1}], "ranked_locations", bucket="b", timestamp=TS)
