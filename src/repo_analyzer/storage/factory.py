"""Object store selection."""

from repo_analyzer.core.config import Settings
from repo_analyzer.storage.base import ObjectStore
from repo_analyzer.storage.local import LocalObjectStore
from repo_analyzer.storage.s3 import R2ObjectStore, S3ObjectStore


def get_object_store(settings: Settings) -> ObjectStore:
    """Build the object store named by STORAGE_BACKEND.

    Raises:
        ValueError: If the backend is unknown or misconfigured
    """
    backend = settings.STORAGE_BACKEND.strip().lower()

    if backend == "s3":
        return S3ObjectStore(
            region=settings.default_region,
            access_key_id=settings.AWS_ACCESS_KEY_ID,
            secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
            endpoint_url=settings.S3_ENDPOINT_URL,
            acl=settings.OBJECT_ACL,
        )
    if backend == "r2":
        return R2ObjectStore(
            account_id=settings.R2_ACCOUNT_ID,
            access_key_id=settings.AWS_ACCESS_KEY_ID,
            secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
            endpoint_url=settings.S3_ENDPOINT_URL,
        )
    if backend == "local":
        return LocalObjectStore(settings.LOCAL_STORAGE_PATH)

    raise ValueError(f"Unknown STORAGE_BACKEND: {settings.STORAGE_BACKEND}")
