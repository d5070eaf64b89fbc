# core/s3_client.py

from typing import Optional

import boto3
from botocore.exceptions import ClientError

from core.config import settings
from core.logging_config import logger


DEFAULT_CONTENT_TYPE = "application/octet-stream"


def get_s3():
    """
    Get S3 client and bucket name.
    Raises RuntimeError if AWS credentials are missing.
    """
    key = settings.AWS_ACCESS_KEY_ID
    secret = settings.AWS_SECRET_ACCESS_KEY
    bucket = settings.AWS_BUCKET_NAME

    if not all([key, secret, bucket]):
        raise RuntimeError("Missing AWS credentials")

    client = boto3.client(
        "s3",
        aws_access_key_id=key,
        aws_secret_access_key=secret,
        region_name=settings.AWS_REGION,
    )

    return client, bucket


class BlobStore:
    """Keyed byte storage for uploaded images (payment QR, billing backgrounds)."""

    def __init__(self, client, bucket: str):
        self.client = client
        self.bucket = bucket

    def get(self, key: str) -> Optional[dict]:
        """Returns ``{"body": bytes, "content_type": str}`` or None when the key is absent."""
        try:
            obj = self.client.get_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code in ("NoSuchKey", "404"):
                return None
            raise

        return {
            "body": obj["Body"].read(),
            "content_type": obj.get("ContentType") or DEFAULT_CONTENT_TYPE,
        }

    def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> None:
        self.client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=content_type or DEFAULT_CONTENT_TYPE,
        )
        logger.info(f"Stored blob {key} ({len(data)} bytes)")


def get_blob_store() -> BlobStore:
    client, bucket = get_s3()
    return BlobStore(client, bucket)
