"""Amazon S3 (and S3-compatible) object store."""

import logging
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from repo_analyzer.core.exceptions import StoreError
from repo_analyzer.storage.base import ObjectStore

logger = logging.getLogger(__name__)


class S3ObjectStore(ObjectStore):
    """Object store backed by an S3 API endpoint."""

    def __init__(
        self,
        *,
        region: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        acl: Optional[str] = None,
        client: Any = None,
    ):
        self.region = region or None
        self.access_key_id = access_key_id or None
        self.secret_access_key = secret_access_key or None
        self.endpoint_url = endpoint_url or None
        self.acl = acl or None
        self._client = client

    def _get_client(self) -> Any:
        """Lazy-load and cache the boto3 client."""
        if self._client is None:
            self._client = boto3.client(
                "s3",
                region_name=self.region,
                aws_access_key_id=self.access_key_id,
                aws_secret_access_key=self.secret_access_key,
                endpoint_url=self.endpoint_url,
            )
        return self._client

    def put_object(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        params = {
            "Bucket": bucket,
            "Key": key,
            "Body": data,
            "ContentType": content_type,
        }
        if self.acl:
            params["ACL"] = self.acl

        try:
            self._get_client().put_object(**params)
        except ClientError as e:
            error = e.response.get("Error", {})
            code = error.get("Code", "Unknown")
            message = error.get("Message", str(e))
            logger.error(
                "S3 rejected object write",
                extra={"bucket": bucket, "key": key, "error_code": code},
            )
            raise StoreError(f"Failed to upload file: {code}: {message}") from e
        except BotoCoreError as e:
            logger.error(
                "S3 transport failure",
                extra={"bucket": bucket, "key": key, "error": str(e)},
            )
            raise StoreError(f"Failed to upload file: {e}") from e

    def object_url(self, bucket: str, region: str, key: str) -> str:
        return f"https://{bucket}.s3.{region}.amazonaws.com/{key}"

    def get_backend_name(self) -> str:
        return "s3"


class R2ObjectStore(S3ObjectStore):
    """Cloudflare R2, addressed through its S3-compatible endpoint.

    R2 has no object ACLs, so none is sent regardless of configuration.
    """

    def __init__(
        self,
        *,
        account_id: str,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        client: Any = None,
    ):
        if not account_id and not endpoint_url and client is None:
            raise ValueError("R2_ACCOUNT_ID or S3_ENDPOINT_URL must be configured for R2")
        super().__init__(
            region="auto",
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            endpoint_url=endpoint_url or f"https://{account_id}.r2.cloudflarestorage.com",
            acl=None,
            client=client,
        )

    def object_url(self, bucket: str, region: str, key: str) -> str:
        return f"https://{bucket}.{region}.r2.cloudflarestorage.com/{key}"

    def get_backend_name(self) -> str:
        return "r2"
