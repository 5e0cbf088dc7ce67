"""FragmentStore: pairs a metadata store with a blob store."""

from typing import List, Optional

from common.logging_config import get_logger
from fragments import config
from fragments.exceptions import ConfigurationError
from fragments.repositories.blob_store import BlobStore, FileBlobStore, MemoryBlobStore
from fragments.repositories.metadata_store import (
    FragmentRecord,
    MemoryMetadataStore,
    MetadataStore,
    SqliteMetadataStore,
)

logger = get_logger(__name__)


class FragmentStore:
    """
    Explicit storage object for fragments, constructed at startup and injected
    into the entity and route layers.

    Metadata and payload live in two separate namespaces. Nothing here spans
    both in a transaction: a crash between the two writes of an update leaves
    them out of step.
    """

    def __init__(self, metadata: MetadataStore, blobs: BlobStore):
        self.metadata = metadata
        self.blobs = blobs

    def write_fragment(self, fragment_id: str, record: FragmentRecord) -> None:
        self.metadata.write(fragment_id, record)

    def read_fragment(self, fragment_id: str) -> Optional[FragmentRecord]:
        return self.metadata.read(fragment_id)

    def write_fragment_data(self, fragment_id: str, payload: bytes) -> None:
        self.blobs.write(fragment_id, payload)

    def read_fragment_data(self, fragment_id: str) -> Optional[bytes]:
        return self.blobs.read(fragment_id)

    def list_fragments(self, owner_id: str) -> List[str]:
        return self.metadata.list_by_owner(owner_id)

    def delete_fragment(self, fragment_id: str) -> bool:
        """
        Delete metadata and payload for a fragment.

        Returns:
            True only if the metadata existed; a stray payload is removed either way
        """
        existed = self.metadata.delete(fragment_id)
        self.blobs.delete(fragment_id)
        if existed:
            logger.info(f"Deleted fragment [fragment_id={fragment_id}]")
        return existed


def create_fragment_store(
    backend: Optional[str] = None,
    database_path: Optional[str] = None,
    data_dir: Optional[str] = None,
) -> FragmentStore:
    """
    Build the FragmentStore for the configured backend.

    Args:
        backend: "memory" or "sqlite" (defaults to FRAGMENTS_STORAGE_BACKEND)
        database_path: SQLite file for metadata (sqlite backend only)
        data_dir: Directory for payload files (sqlite backend only)

    Returns:
        New FragmentStore

    Raises:
        ConfigurationError: If the backend name is unknown
    """
    backend = (backend or config.STORAGE_BACKEND).lower()

    if backend == "memory":
        logger.info("Using in-memory fragment storage")
        return FragmentStore(MemoryMetadataStore(), MemoryBlobStore())

    if backend == "sqlite":
        logger.info("Using SQLite metadata and file payload storage")
        return FragmentStore(
            SqliteMetadataStore(database_path or config.DATABASE_PATH),
            FileBlobStore(data_dir or config.DATA_DIR),
        )

    raise ConfigurationError(f"Unknown storage backend: {backend!r}")
