"""Upload orchestration: authenticate, extract, resolve, store, respond."""

import asyncio
import logging
from typing import Any, Callable, Mapping, Optional

from starlette.datastructures import FormData, UploadFile
from starlette.requests import Request

from repo_analyzer.core.auth import Authenticator
from repo_analyzer.core.config import Settings
from repo_analyzer.core.exceptions import (
    PayloadTooLargeError,
    RequestTimeoutError,
    ValidationError,
)
from repo_analyzer.models.upload import UploadRequest, UploadResult
from repo_analyzer.services.keys import generate_key
from repo_analyzer.storage.gateway import ObjectStoreGateway, resolve_content_type

logger = logging.getLogger(__name__)

FILE_FIELD = "file"


def extract_file_part(form: FormData) -> UploadFile:
    """Return the file submitted under the ``file`` field.

    When several parts share the field name, the last one wins.

    Raises:
        ValidationError: If no file part was submitted
    """
    parts = [part for part in form.getlist(FILE_FIELD) if isinstance(part, UploadFile)]
    if not parts:
        raise ValidationError("No file uploaded")
    return parts[-1]


def pick_parameter(name: str, *sources: Mapping[str, Any]) -> Optional[str]:
    """First non-empty string value for ``name``, in source order."""
    for source in sources:
        value = source.get(name)
        if isinstance(value, str) and value:
            return value
    return None


class UploadOrchestrator:
    """Coordinates one upload from inbound request to stored object."""

    def __init__(
        self,
        authenticator: Authenticator,
        gateway: ObjectStoreGateway,
        settings: Settings,
        key_generator: Callable[[Optional[str]], str] = generate_key,
    ):
        self._authenticator = authenticator
        self._gateway = gateway
        self._settings = settings
        self._key_generator = key_generator

    async def ingest(self, request: Request) -> UploadResult:
        """Handle a POST /upload request end to end."""
        self._authenticator.require(request.headers)
        upload = await self.read_upload(request)
        return await self.handle_upload(upload)

    async def read_upload(self, request: Request) -> UploadRequest:
        """Extract the upload from the multipart payload within the read timeout.

        Raises:
            RequestTimeoutError: If the payload is not received in time
            ValidationError: If no file was submitted
            PayloadTooLargeError: If the file exceeds MAX_UPLOAD_MB
        """
        timeout = self._settings.UPLOAD_READ_TIMEOUT_SECONDS
        try:
            return await asyncio.wait_for(self._collect(request), timeout=timeout)
        except asyncio.TimeoutError as e:
            logger.warning("Upload payload read timed out", extra={"timeout": timeout})
            raise RequestTimeoutError(
                f"Upload was not received within {timeout} seconds"
            ) from e

    async def _collect(self, request: Request) -> UploadRequest:
        form = await request.form()
        try:
            part = extract_file_part(form)

            # Validate file size before loading it into memory
            part.file.seek(0, 2)
            size_bytes = part.file.tell()
            part.file.seek(0)
            if size_bytes > self._settings.max_upload_bytes:
                raise PayloadTooLargeError(
                    f"File size exceeds maximum allowed size of {self._settings.MAX_UPLOAD_MB}MB"
                )

            data = await part.read()
        finally:
            await form.close()

        query = request.query_params
        return UploadRequest(
            file_bytes=data,
            filename=part.filename or None,
            content_type=part.content_type,
            bucket=pick_parameter("bucket", query, form),
            region=pick_parameter("region", query, form),
            key=pick_parameter("key", query, form),
        )

    async def handle_upload(self, upload: UploadRequest) -> UploadResult:
        """Store an extracted upload and describe where it landed.

        Bucket and region resolve as explicit value, then configured default,
        then built-in fallback. An explicit key is used verbatim; otherwise a
        fresh one is generated.

        Raises:
            StoreError: If the object store write fails
            UpstreamTimeoutError: If the write does not finish in time
        """
        bucket = upload.bucket or self._settings.default_bucket
        region = upload.region or self._settings.default_region
        key = upload.key or self._key_generator(upload.filename)
        content_type = resolve_content_type(upload.content_type)

        logger.info(
            f"Uploading file to {self._gateway.backend_name}: {bucket}/{key}",
            extra={
                "bucket": bucket,
                "key": key,
                "content_type": content_type,
                "size_bytes": len(upload.file_bytes),
            },
        )

        await self._gateway.put(bucket, key, upload.file_bytes, content_type)
        url = self._gateway.public_url(bucket, key, region)

        logger.info(f"File uploaded successfully: {url}")

        return UploadResult(url=url, bucket=bucket, key=key, region=region)
