"""Object store providers and the gateway in front of them."""

from repo_analyzer.storage.base import ObjectStore
from repo_analyzer.storage.factory import get_object_store
from repo_analyzer.storage.gateway import DEFAULT_CONTENT_TYPE, ObjectStoreGateway

__all__ = [
    "DEFAULT_CONTENT_TYPE",
    "ObjectStore",
    "ObjectStoreGateway",
    "get_object_store",
]
