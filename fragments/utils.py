"""Utility helper functions for the Fragments service."""

import uuid
from datetime import datetime, timezone


def generate_uuid() -> str:
    """
    Generate a new UUID4 string.

    Returns:
        UUID4 string
    """
    return str(uuid.uuid4())


def get_current_timestamp() -> str:
    """
    Get current UTC timestamp in ISO format.

    Microseconds are always present so timestamps compare correctly as strings.

    Returns:
        Current timestamp as ISO format string
    """
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def is_byte_buffer(value) -> bool:
    """
    Check whether a value is a bytes-like buffer accepted as a payload.

    Args:
        value: Candidate payload

    Returns:
        True for bytes, bytearray and memoryview; False for anything else (including str and None)
    """
    return isinstance(value, (bytes, bytearray, memoryview))


def copy_buffer(value) -> bytes:
    """
    Return an independent bytes copy of a byte buffer.

    Args:
        value: bytes, bytearray or memoryview

    Returns:
        New bytes object with the same content
    """
    return bytes(memoryview(value))


def parse_media_type(content_type: str) -> str:
    """
    Extract the bare media type from a Content-Type value.

    Args:
        content_type: Header value (e.g., "text/plain; charset=utf-8")

    Returns:
        Lowercased media type without parameters (e.g., "text/plain")
    """
    return content_type.split(";", 1)[0].strip().lower()
