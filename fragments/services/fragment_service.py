"""Fragment service for business logic."""

from typing import List, Optional, Tuple, Union

from common.logging_config import get_logger
from fragments.exceptions import FragmentNotFoundError, PayloadTooLargeError, UnsupportedMediaTypeError
from fragments.model.fragment import Fragment
from fragments.repositories.fragment_store import FragmentStore
from fragments.repositories.metadata_store import FragmentRecord

logger = get_logger(__name__)


class FragmentService:
    def __init__(self, store: FragmentStore):
        self.store = store

    def check_content_type(self, owner_id: str, content_type: Optional[str]) -> None:
        if not content_type or not Fragment.is_supported_type(content_type):
            logger.warning(f"Rejected unsupported content type: {content_type!r} [owner_id={owner_id}]")
            raise UnsupportedMediaTypeError("Unsupported Content-Type")

    def create_fragment(
        self,
        owner_id: str,
        content_type: Optional[str],
        data: bytes,
        max_bytes: Optional[int] = None,
    ) -> Fragment:
        self.check_content_type(owner_id, content_type)

        if max_bytes is not None and len(data) > max_bytes:
            logger.warning(f"Rejected {len(data)} byte fragment, limit is {max_bytes} [owner_id={owner_id}]")
            raise PayloadTooLargeError(f"Fragment exceeds {max_bytes} bytes")

        fragment = Fragment(self.store, owner_id=owner_id, type=content_type.strip())
        fragment.set_data(data)
        logger.info(f"Created {fragment.mime_type} fragment {fragment.id} ({fragment.size} bytes) [owner_id={owner_id}]")
        return fragment

    def list_fragments(self, owner_id: str, expand: bool = False) -> Union[List[str], List[FragmentRecord]]:
        fragments = Fragment.by_user(self.store, owner_id, expand=expand)
        logger.debug(f"Listed {len(fragments)} fragments [owner_id={owner_id}]")
        return fragments

    def get_fragment(self, owner_id: str, fragment_id: str) -> Fragment:
        fragment = Fragment.by_id(self.store, fragment_id)

        # Other owners' fragments are reported as missing, not forbidden.
        if fragment is None or fragment.owner_id != owner_id:
            raise FragmentNotFoundError(f"Fragment {fragment_id} not found")

        return fragment

    def get_fragment_data(self, owner_id: str, fragment_id: str) -> Tuple[Fragment, bytes]:
        fragment = self.get_fragment(owner_id, fragment_id)
        data = fragment.get_data()
        if data is None:
            logger.warning(f"Fragment {fragment_id} has metadata but no payload")
            raise FragmentNotFoundError(f"Fragment {fragment_id} has no data")
        return fragment, data

    def delete_fragment(self, owner_id: str, fragment_id: str) -> None:
        fragment = self.get_fragment(owner_id, fragment_id)
        if not fragment.delete():
            raise FragmentNotFoundError(f"Fragment {fragment_id} not found")
        logger.info(f"Deleted fragment {fragment_id} [owner_id={owner_id}]")
