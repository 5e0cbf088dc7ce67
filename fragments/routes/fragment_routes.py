"""Fragment API routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from starlette.concurrency import run_in_threadpool

from common.constants import API_PREFIX
from common.logging_config import get_logger
from fragments.auth import get_current_user
from fragments.exceptions import PayloadTooLargeError, ValidationError
from fragments.repositories.fragment_store import FragmentStore
from fragments.schemas.common import StatusResponse
from fragments.schemas.fragments import FragmentMetadata, FragmentResponse, ListFragmentsResponse
from fragments.services.fragment_service import FragmentService

logger = get_logger(__name__)

router = APIRouter(prefix=f"{API_PREFIX}/fragments", tags=["Fragments"])


def get_fragment_store(request: Request) -> FragmentStore:
    """
    FastAPI dependency returning the store created at application startup.
    """
    return request.app.state.fragment_store


def get_fragment_service(store: FragmentStore = Depends(get_fragment_store)) -> FragmentService:
    return FragmentService(store)


def build_location(request: Request, fragment_id: str) -> str:
    """
    Build the Location URL for a fragment from API_URL, or the request's own base URL.
    """
    base = request.app.state.api_url or str(request.base_url)
    return f"{base.rstrip('/')}{API_PREFIX}/fragments/{fragment_id}"


async def read_body(request: Request, max_bytes: Optional[int]) -> bytes:
    """
    Read the request body without buffering more than max_bytes.

    A declared Content-Length over the limit is rejected before anything is
    read; otherwise the stream is consumed until it ends or passes the limit.

    Raises:
        PayloadTooLargeError: If the declared or streamed body exceeds max_bytes
        ValidationError: If Content-Length is not an integer
    """
    if max_bytes is None:
        return await request.body()

    content_length = request.headers.get("content-length")
    if content_length is not None:
        try:
            declared = int(content_length)
        except ValueError:
            raise ValidationError(f"invalid Content-Length: {content_length!r}")
        if declared > max_bytes:
            logger.warning(f"Rejected declared {declared} byte body, limit is {max_bytes}")
            raise PayloadTooLargeError(f"Fragment exceeds {max_bytes} bytes")

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > max_bytes:
            logger.warning(f"Stopped reading body after {len(body)} bytes, limit is {max_bytes}")
            raise PayloadTooLargeError(f"Fragment exceeds {max_bytes} bytes")
    return bytes(body)


@router.post("", response_model=FragmentResponse, status_code=status.HTTP_201_CREATED)
async def create_fragment(
    request: Request,
    response: Response,
    current_user: str = Depends(get_current_user),
    fragment_service: FragmentService = Depends(get_fragment_service),
):
    """
    Store the raw request body as a new fragment.

    Parameters:
        - Content-Type header: media type of the body (must be supported)
        - Authorization header: Basic or Bearer credentials (required)

    Returns:
        - fragment: metadata of the stored fragment
        - Location header: URL of the new fragment

    Raises:
        - 401: Missing or invalid credentials
        - 413: Body larger than the configured limit
        - 415: Unsupported or missing Content-Type
    """
    content_type = request.headers.get("content-type")
    fragment_service.check_content_type(current_user, content_type)

    max_bytes = request.app.state.max_fragment_bytes
    data = await read_body(request, max_bytes)

    fragment = await run_in_threadpool(
        fragment_service.create_fragment,
        owner_id=current_user,
        content_type=content_type,
        data=data,
        max_bytes=max_bytes,
    )

    response.headers["Location"] = build_location(request, fragment.id)

    return FragmentResponse(fragment=FragmentMetadata.model_validate(fragment.to_dict()))


@router.get("", response_model=ListFragmentsResponse)
def list_fragments(
    expand: bool = Query(False, description="Return full metadata instead of ids"),
    current_user: str = Depends(get_current_user),
    fragment_service: FragmentService = Depends(get_fragment_service),
):
    """
    List the current user's fragments.

    Returns:
        - fragments: ids, or metadata objects when expand=1
    """
    fragments = fragment_service.list_fragments(current_user, expand=expand)

    if expand:
        return ListFragmentsResponse(
            fragments=[FragmentMetadata.model_validate(record.to_dict()) for record in fragments]
        )

    return ListFragmentsResponse(fragments=fragments)


@router.get("/{fragment_id}/info", response_model=FragmentResponse)
def get_fragment_info(
    fragment_id: str,
    current_user: str = Depends(get_current_user),
    fragment_service: FragmentService = Depends(get_fragment_service),
):
    """
    Return one fragment's metadata.

    Raises:
        - 404: Fragment missing or owned by someone else
    """
    fragment = fragment_service.get_fragment(current_user, fragment_id)
    return FragmentResponse(fragment=FragmentMetadata.model_validate(fragment.to_dict()))


@router.get("/{fragment_id}")
def get_fragment_data(
    fragment_id: str,
    current_user: str = Depends(get_current_user),
    fragment_service: FragmentService = Depends(get_fragment_service),
):
    """
    Return one fragment's payload with its stored Content-Type.

    Raises:
        - 404: Fragment missing, owned by someone else, or without data
    """
    fragment, data = fragment_service.get_fragment_data(current_user, fragment_id)
    return Response(content=data, media_type=fragment.type)


@router.delete("/{fragment_id}", response_model=StatusResponse)
def delete_fragment(
    fragment_id: str,
    current_user: str = Depends(get_current_user),
    fragment_service: FragmentService = Depends(get_fragment_service),
):
    """
    Delete a fragment's metadata and data.

    Raises:
        - 404: Fragment missing or owned by someone else
    """
    fragment_service.delete_fragment(current_user, fragment_id)
    return StatusResponse()
