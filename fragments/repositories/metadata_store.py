"""Metadata store backends: fragment records keyed by id, plus an owner index."""

from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Protocol, Set, runtime_checkable

from common.logging_config import get_logger
from fragments.database import get_db_connection, init_database
from fragments.exceptions import InvalidArgumentError

logger = get_logger(__name__)


@dataclass
class FragmentRecord:
    id: str
    owner_id: str
    type: str
    size: int
    created: str
    updated: str

    def to_dict(self) -> dict:
        """Serialize using the API field names."""
        return {
            "id": self.id,
            "ownerId": self.owner_id,
            "created": self.created,
            "updated": self.updated,
            "type": self.type,
            "size": self.size,
        }


@runtime_checkable
class MetadataStore(Protocol):
    """Storage contract for fragment records.

    Implementations persist records exactly as given (timestamps included) and
    keep the owner index consistent with writes and deletes. Returned records
    are copies owned by the caller.
    """

    def write(self, fragment_id: str, record: FragmentRecord) -> None:
        ...

    def read(self, fragment_id: str) -> Optional[FragmentRecord]:
        ...

    def list_by_owner(self, owner_id: str) -> List[str]:
        ...

    def delete(self, fragment_id: str) -> bool:
        ...


def _require_id(fragment_id: str) -> None:
    if not fragment_id or not isinstance(fragment_id, str):
        raise InvalidArgumentError(f"fragment id is required, got {fragment_id!r}")


def _require_record(fragment_id: str, record: FragmentRecord) -> None:
    if record is None:
        raise InvalidArgumentError(f"fragment record is required [fragment_id={fragment_id}]")
    if record.id != fragment_id:
        raise InvalidArgumentError(
            f"record id {record.id!r} does not match fragment id {fragment_id!r}"
        )


class MemoryMetadataStore:
    """Dict-backed metadata store for development and testing."""

    def __init__(self) -> None:
        self._records: Dict[str, FragmentRecord] = {}
        self._owners: Dict[str, Set[str]] = {}

    def write(self, fragment_id: str, record: FragmentRecord) -> None:
        _require_id(fragment_id)
        _require_record(fragment_id, record)

        previous = self._records.get(fragment_id)
        if previous is not None and previous.owner_id != record.owner_id:
            self._unindex(previous.owner_id, fragment_id)

        self._records[fragment_id] = replace(record)
        self._owners.setdefault(record.owner_id, set()).add(fragment_id)
        logger.debug(f"Wrote fragment metadata [fragment_id={fragment_id}] [owner_id={record.owner_id}]")

    def read(self, fragment_id: str) -> Optional[FragmentRecord]:
        _require_id(fragment_id)
        record = self._records.get(fragment_id)
        if record is None:
            return None
        return replace(record)

    def list_by_owner(self, owner_id: str) -> List[str]:
        return list(self._owners.get(owner_id, ()))

    def delete(self, fragment_id: str) -> bool:
        _require_id(fragment_id)
        record = self._records.pop(fragment_id, None)
        if record is None:
            return False
        self._unindex(record.owner_id, fragment_id)
        logger.debug(f"Deleted fragment metadata [fragment_id={fragment_id}]")
        return True

    def clear(self) -> None:
        self._records.clear()
        self._owners.clear()

    def _unindex(self, owner_id: str, fragment_id: str) -> None:
        ids = self._owners.get(owner_id)
        if ids is None:
            return
        ids.discard(fragment_id)
        if not ids:
            del self._owners[owner_id]


class SqliteMetadataStore:
    """Durable metadata store backed by the ``fragments`` SQLite table.

    The ``owner_id`` column (indexed) serves as the owner index, so it can never
    drift from the records themselves.
    """

    def __init__(self, database_path: str) -> None:
        self.database_path = database_path
        init_database(database_path)
        logger.info(f"SQLite metadata store ready at {database_path}")

    def write(self, fragment_id: str, record: FragmentRecord) -> None:
        _require_id(fragment_id)
        _require_record(fragment_id, record)

        with get_db_connection(self.database_path) as conn:
            cursor = conn.cursor()
            try:
                cursor.execute(
                    """
                    INSERT INTO fragments (id, owner_id, type, size, created, updated)
                    VALUES (?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        owner_id = excluded.owner_id,
                        type = excluded.type,
                        size = excluded.size,
                        created = excluded.created,
                        updated = excluded.updated
                    """,
                    (fragment_id, record.owner_id, record.type, record.size,
                     record.created, record.updated)
                )
                conn.commit()
                logger.debug(f"Wrote fragment metadata [fragment_id={fragment_id}] [owner_id={record.owner_id}]")
            except Exception as e:
                logger.error(f"Failed to write fragment metadata [fragment_id={fragment_id}]: {e}", exc_info=True)
                raise

    def read(self, fragment_id: str) -> Optional[FragmentRecord]:
        _require_id(fragment_id)
        with get_db_connection(self.database_path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT id, owner_id, type, size, created, updated FROM fragments WHERE id = ?",
                (fragment_id,)
            )
            row = cursor.fetchone()

            if row is None:
                return None

            return FragmentRecord(
                id=row["id"],
                owner_id=row["owner_id"],
                type=row["type"],
                size=row["size"],
                created=row["created"],
                updated=row["updated"],
            )

    def list_by_owner(self, owner_id: str) -> List[str]:
        with get_db_connection(self.database_path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT id FROM fragments WHERE owner_id = ? ORDER BY created",
                (owner_id,)
            )
            return [row["id"] for row in cursor.fetchall()]

    def delete(self, fragment_id: str) -> bool:
        _require_id(fragment_id)
        with get_db_connection(self.database_path) as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM fragments WHERE id = ?", (fragment_id,))
            conn.commit()
            deleted = cursor.rowcount > 0

        if deleted:
            logger.debug(f"Deleted fragment metadata [fragment_id={fragment_id}]")
        return deleted
