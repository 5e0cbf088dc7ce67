"""Fragment entity: validated metadata plus access to its payload."""

from typing import List, Optional, Union

from common.constants import SUPPORTED_TYPES
from common.logging_config import get_logger
from fragments.exceptions import ValidationError
from fragments.repositories.fragment_store import FragmentStore
from fragments.repositories.metadata_store import FragmentRecord
from fragments.utils import generate_uuid, get_current_timestamp, is_byte_buffer, parse_media_type

logger = get_logger(__name__)


class Fragment:
    """
    A stored unit of content owned by one user.

    Metadata goes to the store's metadata namespace and the payload to its blob
    namespace. ``set_data`` writes the payload first and the metadata second;
    if the second write fails the payload is already replaced while the stored
    size still describes the previous one.
    """

    def __init__(
        self,
        store: FragmentStore,
        *,
        owner_id: str,
        type: str,
        id: Optional[str] = None,
        size: int = 0,
        created: Optional[str] = None,
        updated: Optional[str] = None,
    ):
        if not owner_id or not isinstance(owner_id, str):
            raise ValidationError("owner_id is required")
        if not type or not isinstance(type, str):
            raise ValidationError("type is required")
        if not Fragment.is_supported_type(type):
            raise ValidationError(f"unsupported type: {type}")
        if id is not None and not isinstance(id, str):
            raise ValidationError(f"id must be a string, got {id!r}")
        if isinstance(size, bool) or not isinstance(size, int) or size < 0:
            raise ValidationError(f"size must be a non-negative integer, got {size!r}")

        self._store = store
        self._id = id or generate_uuid()
        self.owner_id = owner_id
        self.type = type
        self.size = size

        if created and updated:
            self.created = created
            self.updated = updated
        else:
            now = get_current_timestamp()
            self.created = now
            self.updated = now

    @property
    def id(self) -> str:
        return self._id

    @property
    def mime_type(self) -> str:
        """The type without parameters, e.g. ``text/plain`` for ``text/plain; charset=utf-8``."""
        return parse_media_type(self.type)

    @staticmethod
    def is_supported_type(value: str) -> bool:
        """
        Check whether a Content-Type can be stored.

        Parameters such as charset are ignored and the media type is compared
        case-insensitively.

        Args:
            value: Content-Type value

        Returns:
            True if the media type is in the supported set
        """
        if not isinstance(value, str):
            return False
        return parse_media_type(value) in SUPPORTED_TYPES

    @classmethod
    def from_record(cls, store: FragmentStore, record: FragmentRecord) -> "Fragment":
        return cls(
            store,
            id=record.id,
            owner_id=record.owner_id,
            type=record.type,
            size=record.size,
            created=record.created,
            updated=record.updated,
        )

    @classmethod
    def by_id(cls, store: FragmentStore, fragment_id: str) -> Optional["Fragment"]:
        record = store.read_fragment(fragment_id)
        if record is None:
            logger.debug(f"Fragment not found [fragment_id={fragment_id}]")
            return None
        return cls.from_record(store, record)

    @staticmethod
    def by_user(
        store: FragmentStore, owner_id: str, expand: bool = False
    ) -> Union[List[str], List[FragmentRecord]]:
        """
        List an owner's fragments.

        Args:
            store: Fragment store to read from
            owner_id: Owner to list for
            expand: Return full records instead of ids

        Returns:
            Fragment ids, or records when ``expand`` is set. Ids whose metadata
            disappeared after listing are skipped.
        """
        ids = store.list_fragments(owner_id)
        if not expand:
            return ids

        records = []
        for fragment_id in ids:
            record = store.read_fragment(fragment_id)
            if record is not None:
                records.append(record)
        return records

    def to_record(self) -> FragmentRecord:
        return FragmentRecord(
            id=self.id,
            owner_id=self.owner_id,
            type=self.type,
            size=self.size,
            created=self.created,
            updated=self.updated,
        )

    def to_dict(self) -> dict:
        return self.to_record().to_dict()

    def save(self) -> None:
        """Refresh ``updated`` and persist the metadata."""
        self.updated = max(get_current_timestamp(), self.updated, self.created)
        self._store.write_fragment(self.id, self.to_record())

    def get_data(self) -> Optional[bytes]:
        return self._store.read_fragment_data(self.id)

    def set_data(self, payload: bytes) -> None:
        """
        Replace the payload, then update size and persist metadata.

        Raises:
            ValidationError: If payload is not a byte buffer
        """
        if not is_byte_buffer(payload):
            raise ValidationError(f"payload must be a byte buffer, got {type(payload).__name__}")

        self._store.write_fragment_data(self.id, payload)
        self.size = memoryview(payload).nbytes
        self.save()
        logger.info(f"Stored {self.size} bytes [fragment_id={self.id}]")

    def delete(self) -> bool:
        return self._store.delete_fragment(self.id)

    def __repr__(self) -> str:
        return f"Fragment(id={self.id!r}, owner_id={self.owner_id!r}, type={self.type!r}, size={self.size})"
