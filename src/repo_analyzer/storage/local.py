"""Local filesystem object store."""

import json
from pathlib import Path

from repo_analyzer.core.exceptions import StoreError
from repo_analyzer.storage.base import ObjectStore

METADATA_SUFFIX = ".metadata.json"


class LocalObjectStore(ObjectStore):
    """Filesystem object store for local development.

    Objects live at ``{base_path}/{bucket}/{key}``; the content type is kept in
    a sidecar JSON file next to each object.
    """

    def __init__(self, base_path: str | Path = "data/objects"):
        self.base_path = Path(base_path)

    def get_target_path(self, bucket: str, key: str) -> Path:
        """Resolve the object path, refusing keys that leave the bucket."""
        base_dir = self.base_path.resolve()
        bucket_dir = (base_dir / bucket).resolve()
        if bucket_dir.parent != base_dir:
            raise StoreError(f"Invalid bucket name: {bucket}")
        target = (bucket_dir / key).resolve()
        if bucket_dir not in target.parents:
            raise StoreError(f"Invalid object key: {key}")
        return target

    def put_object(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        target_path = self.get_target_path(bucket, key)
        try:
            target_path.parent.mkdir(parents=True, exist_ok=True)
            target_path.write_bytes(data)
            metadata_path = target_path.with_name(target_path.name + METADATA_SUFFIX)
            metadata_path.write_text(json.dumps({"content_type": content_type}))
        except OSError as e:
            raise StoreError(f"Failed to upload file: {e}") from e

    def get_content_type(self, bucket: str, key: str) -> str | None:
        """Read back the content type stored with an object."""
        target_path = self.get_target_path(bucket, key)
        metadata_path = target_path.with_name(target_path.name + METADATA_SUFFIX)
        if not metadata_path.exists():
            return None
        return json.loads(metadata_path.read_text()).get("content_type")

    def object_url(self, bucket: str, region: str, key: str) -> str:
        return self.get_target_path(bucket, key).as_uri()

    def get_backend_name(self) -> str:
        return "local"
