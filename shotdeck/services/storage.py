import logging
import os
import re
from functools import lru_cache

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from shotdeck.errors import StorageError

logger = logging.getLogger(__name__)

AWS_REGION = os.getenv("AWS_REGION", "").strip()
S3_BUCKET = os.getenv("S3_BUCKET", "").strip()
S3_ENDPOINT_URL = os.getenv("AWS_S3_ENDPOINT_URL", "").strip()
CDN_BASE_URL = os.getenv("CLOUDFRONT_IMAGE_BASE_URL", "").strip()
UPLOAD_URL_EXPIRES_SEC = int(os.getenv("SHOTDECK_UPLOAD_URL_EXPIRES_SEC", "300"))
VIEW_URL_EXPIRES_SEC = int(os.getenv("SHOTDECK_VIEW_URL_EXPIRES_SEC", "3600"))

_KEY_ALLOWED_RE = re.compile(r"[A-Za-z0-9._\-/]+")


def _normalize_key(key: str) -> str:
    normalized = re.sub(r"/{2,}", "/", (key or "").strip().lstrip("/"))
    if not normalized:
        raise StorageError("Invalid storage key: empty")
    if ".." in normalized:
        raise StorageError("Invalid storage key: path traversal detected")
    if not _KEY_ALLOWED_RE.fullmatch(normalized):
        raise StorageError("Invalid storage key: contains forbidden characters")
    return normalized


class S3Storage:
    """
    Signs S3 URLs for direct-to-bucket uploads and private reads.

    A presigned PUT binds the `Content-Type` given at signing time; the
    uploader must send the same header or S3 rejects the request with a
    signature mismatch.
    """

    def __init__(
        self,
        bucket: str | None = None,
        region: str | None = None,
        endpoint_url: str | None = None,
        cdn_base_url: str | None = None,
        upload_expires_sec: int = UPLOAD_URL_EXPIRES_SEC,
        view_expires_sec: int = VIEW_URL_EXPIRES_SEC,
        client=None,
    ) -> None:
        self.bucket = bucket if bucket is not None else S3_BUCKET
        self.region = region if region is not None else AWS_REGION
        self.cdn_base_url = (cdn_base_url if cdn_base_url is not None else CDN_BASE_URL).rstrip("/")
        self.upload_expires_sec = upload_expires_sec
        self.view_expires_sec = view_expires_sec

        if not self.region or not self.bucket:
            logger.warning("Missing AWS_REGION or S3_BUCKET; signing requests will fail")

        if client is None:
            client_kwargs = {
                "config": BotoConfig(
                    signature_version="s3v4",
                    retries={"max_attempts": 1, "mode": "standard"},
                    connect_timeout=3,
                    read_timeout=10,
                ),
            }
            if self.region:
                client_kwargs["region_name"] = self.region
            endpoint = endpoint_url if endpoint_url is not None else S3_ENDPOINT_URL
            if endpoint:
                client_kwargs["endpoint_url"] = endpoint
            client = boto3.client("s3", **client_kwargs)
        self.client = client

    def _require_config(self) -> None:
        if not self.bucket:
            raise StorageError("S3_BUCKET is not set")
        if not self.region:
            raise StorageError("AWS_REGION is not set")

    def presign_put(self, key: str, content_type: str) -> str:
        self._require_config()
        if not content_type:
            raise StorageError("content_type is required")
        params = {
            "Bucket": self.bucket,
            "Key": _normalize_key(key),
            "ContentType": content_type,
        }
        try:
            return self.client.generate_presigned_url(
                ClientMethod="put_object",
                Params=params,
                ExpiresIn=self.upload_expires_sec,
                HttpMethod="PUT",
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError("Failed to presign upload") from exc

    def presign_get(self, key: str) -> str:
        self._require_config()
        params = {"Bucket": self.bucket, "Key": _normalize_key(key)}
        try:
            return self.client.generate_presigned_url(
                ClientMethod="get_object",
                Params=params,
                ExpiresIn=self.view_expires_sec,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError("Failed to generate view URL") from exc

    def public_url(self, key: str | None) -> str | None:
        # Only reachable when the bucket is public or fronted by a CDN.
        if not key:
            return None
        if self.cdn_base_url:
            return f"{self.cdn_base_url}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def __repr__(self) -> str:
        return f"S3Storage(bucket={self.bucket}, region={self.region})"


@lru_cache(maxsize=1)
def get_storage() -> S3Storage:
    return S3Storage()
