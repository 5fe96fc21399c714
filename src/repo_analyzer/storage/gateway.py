"""Uniform write interface over the configured object store."""

import asyncio
import logging
from typing import Optional

from repo_analyzer.core.exceptions import StoreError, UpstreamTimeoutError
from repo_analyzer.storage.base import ObjectStore

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def resolve_content_type(content_type: Optional[str]) -> str:
    """Return the given content type, or the binary default when it is blank."""
    if content_type and content_type.strip():
        return content_type.strip()
    return DEFAULT_CONTENT_TYPE


class ObjectStoreGateway:
    """Writes objects through a provider and builds their public URLs.

    Provider calls are blocking SDK calls, so they run in a worker thread and
    are bounded by ``write_timeout``. Every provider failure surfaces as a
    StoreError; nothing is retried.
    """

    def __init__(
        self,
        store: ObjectStore,
        domain_override: Optional[str] = None,
        write_timeout: Optional[float] = None,
    ):
        self._store = store
        self._domain_override = self._normalize_domain(domain_override)
        self._write_timeout = write_timeout

    @property
    def backend_name(self) -> str:
        return self._store.get_backend_name()

    async def put(
        self, bucket: str, key: str, data: bytes, content_type: Optional[str]
    ) -> None:
        """Write one object.

        Raises:
            StoreError: If the provider fails
            UpstreamTimeoutError: If the write does not finish in time
        """
        content_type = resolve_content_type(content_type)
        try:
            # On timeout the worker thread is abandoned, not interrupted
            await asyncio.wait_for(
                asyncio.to_thread(self._store.put_object, bucket, key, data, content_type),
                timeout=self._write_timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error(
                "Object store write timed out",
                extra={"bucket": bucket, "key": key, "timeout": self._write_timeout},
            )
            raise UpstreamTimeoutError(
                f"Object store write timed out after {self._write_timeout} seconds"
            ) from e
        except StoreError:
            raise
        except Exception as e:
            logger.error(
                "Object store write failed",
                extra={"bucket": bucket, "key": key, "error": str(e)},
                exc_info=True,
            )
            raise StoreError(f"Failed to upload file: {e}") from e

    def public_url(self, bucket: str, key: str, region: str) -> str:
        if self._domain_override:
            return f"https://{self._domain_override}/{key}"
        return self._store.object_url(bucket, region, key)

    @staticmethod
    def _normalize_domain(domain: Optional[str]) -> Optional[str]:
        if not domain or not domain.strip():
            return None
        domain = domain.strip()
        for scheme in ("https://", "http://"):
            if domain.startswith(scheme):
                domain = domain[len(scheme):]
        return domain.rstrip("/")
