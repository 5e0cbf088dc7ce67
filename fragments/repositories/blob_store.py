"""Blob store backends: raw fragment payloads keyed by fragment id.

Every backend owns an independent copy of what it stores. ``write`` copies the
caller's buffer and ``read`` hands back a fresh ``bytes`` object, so neither
side can observe the other's mutations.
"""

from pathlib import Path
from typing import Dict, Optional, Protocol, runtime_checkable

from common.logging_config import get_logger
from fragments.exceptions import InvalidArgumentError
from fragments.utils import copy_buffer, is_byte_buffer

logger = get_logger(__name__)

PAYLOAD_SUFFIX = ".data"


@runtime_checkable
class BlobStore(Protocol):
    """Storage contract for fragment payloads."""

    def write(self, fragment_id: str, payload: bytes) -> None:
        ...

    def read(self, fragment_id: str) -> Optional[bytes]:
        ...

    def delete(self, fragment_id: str) -> bool:
        ...


def _require_id(fragment_id: str) -> None:
    if not fragment_id or not isinstance(fragment_id, str):
        raise InvalidArgumentError(f"fragment id is required, got {fragment_id!r}")


def _require_buffer(fragment_id: str, payload) -> None:
    if not is_byte_buffer(payload):
        raise InvalidArgumentError(
            f"payload must be a byte buffer, got {type(payload).__name__} [fragment_id={fragment_id}]"
        )


class MemoryBlobStore:
    """Dict-backed blob store for development and testing."""

    def __init__(self) -> None:
        self._payloads: Dict[str, bytes] = {}

    def write(self, fragment_id: str, payload: bytes) -> None:
        _require_id(fragment_id)
        _require_buffer(fragment_id, payload)
        self._payloads[fragment_id] = copy_buffer(payload)
        logger.debug(f"Wrote {len(self._payloads[fragment_id])} bytes [fragment_id={fragment_id}]")

    def read(self, fragment_id: str) -> Optional[bytes]:
        _require_id(fragment_id)
        payload = self._payloads.get(fragment_id)
        if payload is None:
            return None
        return copy_buffer(payload)

    def delete(self, fragment_id: str) -> bool:
        _require_id(fragment_id)
        return self._payloads.pop(fragment_id, None) is not None

    def clear(self) -> None:
        self._payloads.clear()


class FileBlobStore:
    """Durable blob store keeping one ``<id>.data`` file per fragment under a root directory."""

    def __init__(self, root: str) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        logger.info(f"File blob store ready at {self.root}")

    def get_payload_path(self, fragment_id: str) -> Path:
        """
        Get file path for a fragment payload.

        Args:
            fragment_id: Fragment id

        Returns:
            Path object for the payload file

        Raises:
            InvalidArgumentError: If the id is empty or resolves outside the root directory
        """
        _require_id(fragment_id)
        root = self.root.resolve()
        candidate = (self.root / f"{fragment_id}{PAYLOAD_SUFFIX}").resolve()
        if candidate.parent != root:
            raise InvalidArgumentError(f"fragment id escapes blob store root: {fragment_id!r}")
        return candidate

    def write(self, fragment_id: str, payload: bytes) -> None:
        filepath = self.get_payload_path(fragment_id)
        _require_buffer(fragment_id, payload)
        filepath.write_bytes(copy_buffer(payload))
        logger.debug(f"Wrote {filepath.stat().st_size} bytes to {filepath.name}")

    def read(self, fragment_id: str) -> Optional[bytes]:
        filepath = self.get_payload_path(fragment_id)
        if not filepath.exists():
            return None
        return filepath.read_bytes()

    def delete(self, fragment_id: str) -> bool:
        filepath = self.get_payload_path(fragment_id)
        if filepath.exists():
            filepath.unlink()
            return True
        return False
