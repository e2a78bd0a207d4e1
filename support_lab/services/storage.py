"""
Object Storage Gateway for S3-compatible buckets

The boto3 client is only created when credentials and a bucket are
configured. Without them every operation raises Unavailable, so callers
can answer 503 instead of failing with a generic error.
"""
import asyncio
from datetime import datetime
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from support_lab.config import Settings
from support_lab.errors import NotFound, StoreFailure, Unavailable
from support_lab.utils.logger import get_logger

logger = get_logger(__name__)


class ObjectStorage:
    """Get/put/list/delete of text objects in a single bucket"""

    def __init__(self, settings: Settings, client: Optional[Any] = None):
        """
        Args:
            settings: Application settings (aws_* fields)
            client: Prebuilt S3 client (uses boto3 when None)
        """
        self.bucket_name = settings.aws_s3_bucket_name
        self._client = client

        if self._client is None and settings.storage_configured:
            self._client = boto3.client(
                "s3",
                aws_access_key_id=settings.aws_access_key_id,
                aws_secret_access_key=settings.aws_secret_access_key,
                region_name=settings.aws_default_region,
                endpoint_url=settings.aws_endpoint_url,
            )
            logger.info("S3 client initialized")
        elif self._client is None:
            logger.warning("S3 credentials missing, storage endpoints will be disabled")

    @property
    def configured(self) -> bool:
        return self._client is not None

    def _require_client(self) -> Any:
        if self._client is None:
            raise Unavailable("S3 storage is not configured. Please check environment variables.")
        return self._client

    async def _call(self, operation: str, **kwargs) -> Dict[str, Any]:
        client = self._require_client()
        method = getattr(client, operation)
        try:
            return await asyncio.to_thread(method, Bucket=self.bucket_name, **kwargs)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code in ("NoSuchKey", "404"):
                raise NotFound("File not found") from e
            logger.error(f"S3 {operation} failed: {e}")
            raise StoreFailure(f"Storage {operation} failed", statement=f"s3.{operation}", detail=str(e)) from e
        except BotoCoreError as e:
            logger.error(f"S3 {operation} failed: {e}")
            raise StoreFailure(f"Storage {operation} failed", statement=f"s3.{operation}", detail=str(e)) from e

    async def check_connection(self) -> str:
        """HEAD the bucket; returns the bucket name"""
        await self._call("head_bucket")
        return self.bucket_name

    async def list(self, prefix: str = "", max_keys: int = 100) -> List[Dict[str, Any]]:
        """List objects as {key, size, last_modified}"""
        response = await self._call("list_objects_v2", Prefix=prefix, MaxKeys=max_keys)
        return [
            {
                "key": item["Key"],
                "size": item["Size"],
                "last_modified": item.get("LastModified"),
            }
            for item in response.get("Contents", [])
        ]

    async def put(self, key: str, content: str, content_type: str = "text/plain") -> Dict[str, Any]:
        body = content.encode("utf-8")
        await self._call("put_object", Key=key, Body=body, ContentType=content_type)
        return {"key": key, "size": len(body)}

    async def get(self, key: str) -> Dict[str, Any]:
        response = await self._call("get_object", Key=key)
        body = await asyncio.to_thread(response["Body"].read)
        last_modified: Optional[datetime] = response.get("LastModified")
        return {
            "key": key,
            "content": body.decode("utf-8", errors="replace"),
            "content_type": response.get("ContentType"),
            "last_modified": last_modified,
        }

    async def delete(self, key: str) -> str:
        await self._call("delete_object", Key=key)
        return key
