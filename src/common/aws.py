"""Publish stage output to S3 as date-partitioned JSONL objects."""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Mapping, Sequence

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from dotenv import load_dotenv

from common.errors import FatalIOError

load_dotenv()

logger = logging.getLogger(__name__)

BUCKET_ENV_VAR = "S3_BUCKET_NAME"


def get_s3_client():
    return boto3.client("s3")


def partitioned_key(prefix: str, timestamp: datetime) -> str:
    """Key under prefix/year=YYYY/month=MM/day=DD/ named after the upload minute."""
    return (
        f"{prefix}/"
        f"year={timestamp.year:04d}/"
        f"month={timestamp.month:02d}/"
        f"day={timestamp.day:02d}/"
        f"{prefix}_{timestamp.strftime('%Y_%m_%d_%H_%M')}.jsonl"
    )


def encode_jsonl(records: Sequence[Mapping[str, Any]]) -> bytes:
    return "".join(json.dumps(record, ensure_ascii=False) + "\n" for record in records).encode(
        "utf-8"
    )


def publish_records(
    records: Sequence[Mapping[str, Any]],
    prefix: str,
    bucket: str | None = None,
    timestamp: datetime | None = None,
) -> str:
    """
    Upload records as one JSONL object.

    Args:
        records: JSON-ready dicts, written in order
        prefix: Key prefix (e.g., "ranked_locations")
        bucket: Target bucket, $S3_BUCKET_NAME when None
        timestamp: Partition time, now (UTC) when None

    Returns:
        The S3 key written

    Raises:
        FatalIOError: If no bucket is configured or the upload fails
    """
    bucket = bucket or os.environ.get(BUCKET_ENV_VAR)
    if not bucket:
        raise FatalIOError(f"No S3 bucket configured (set {BUCKET_ENV_VAR})")
    key = partitioned_key(prefix, timestamp or datetime.now(timezone.utc))

    try:
        get_s3_client().put_object(
            Bucket=bucket,
            Key=key,
            Body=encode_jsonl(records),
            ContentType="application/jsonl",
        )
    except (BotoCoreError, ClientError) as exc:
        raise FatalIOError(f"Upload to s3://{bucket}/{key} failed: {exc}") from exc

    logger.info("Uploaded %d records to s3://%s/%s", len(records), bucket, key)
    return key
