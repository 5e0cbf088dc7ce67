"""Repository layer for fragment storage."""

from fragments.repositories.metadata_store import (
    FragmentRecord,
    MetadataStore,
    MemoryMetadataStore,
    SqliteMetadataStore,
)
from fragments.repositories.blob_store import BlobStore, MemoryBlobStore, FileBlobStore
from fragments.repositories.fragment_store import FragmentStore, create_fragment_store

__all__ = [
    "FragmentRecord",
    "MetadataStore",
    "MemoryMetadataStore",
    "SqliteMetadataStore",
    "BlobStore",
    "MemoryBlobStore",
    "FileBlobStore",
    "FragmentStore",
    "create_fragment_store",
]
