"""Abstract object store interface."""

from abc import ABC, abstractmethod


class ObjectStore(ABC):
    """Abstract base class for object store providers."""

    @abstractmethod
    def put_object(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        """Write an object.

        Args:
            bucket: Target bucket
            key: Object key inside the bucket
            data: Object content
            content_type: MIME type recorded with the object

        Raises:
            StoreError: If the provider rejects the write
        """
        pass

    @abstractmethod
    def object_url(self, bucket: str, region: str, key: str) -> str:
        """Build the public URL of an object without contacting the store."""
        pass

    @abstractmethod
    def get_backend_name(self) -> str:
        """Return backend identifier."""
        pass
