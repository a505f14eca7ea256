"""
Adapters package
----------------

Storage (bytes + tables) and run-registry interfaces. Each has a local
backend (directory, JSON file) and an AWS one (S3, DynamoDB); the
analytics only ever talk to the abstract classes.
"""

from .storage import (  # noqa: F401
    LocalStorageAdapter,
    S3StorageAdapter,
    StorageAdapter,
)
from .metadata import (  # noqa: F401
    DynamoMetadataAdapter,
    LocalMetadataAdapter,
    MetadataAdapter,
)

__all__ = [
    "StorageAdapter",
    "LocalStorageAdapter",
    "S3StorageAdapter",
    "MetadataAdapter",
    "LocalMetadataAdapter",
    "DynamoMetadataAdapter",
]
