"""
Wire codec for the store's property-list request and response bodies.
"""

import base64
import binascii
import plistlib
from typing import Any
from xml.parsers.expat import ExpatError

from appstore_cli.exceptions import MalformedWireFormat

CONTENT_TYPE = "application/x-apple-plist"


def encode(payload: dict[str, Any]) -> bytes:
    """
    Serializes a dictionary into an XML property list.

    Supports nested dictionaries, lists, strings, integers, booleans and raw
    bytes. Key order is preserved.
    """
    if not isinstance(payload, dict):
        raise MalformedWireFormat(
            f"Root value must be a dictionary, got {type(payload).__name__}."
        )
    try:
        return plistlib.dumps(payload, fmt=plistlib.FMT_XML, sort_keys=False)
    except (TypeError, OverflowError) as e:
        raise MalformedWireFormat(f"Cannot encode payload: {e}") from e


def decode(body: bytes) -> dict[str, Any]:
    """
    Parses an XML or binary property list into a dictionary.

    Raises:
        MalformedWireFormat: If the body is empty, truncated, not a property
        list, or its root is not a dictionary.
    """
    if not body:
        raise MalformedWireFormat("Response body is empty.")
    try:
        document = plistlib.loads(body)
    except (plistlib.InvalidFileException, ExpatError, ValueError, TypeError) as e:
        raise MalformedWireFormat(f"Invalid property list: {e}") from e
    except (IndexError, KeyError, OverflowError) as e:
        # Truncated binary plists surface as lookup errors inside plistlib.
        raise MalformedWireFormat(f"Truncated property list: {e}") from e

    if not isinstance(document, dict):
        raise MalformedWireFormat(
            f"Root value must be a dictionary, got {type(document).__name__}."
        )
    return document


def coerce_blob(value: Any) -> bytes:
    """
    Normalizes a binary field to raw bytes.

    The store sends blobs either as ``<data>`` (decoded to bytes) or as a
    base64 ``<string>``; both become the same bytes here.
    """
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        # Textual base64 may be wrapped across lines.
        compact = "".join(value.split())
        try:
            return base64.b64decode(compact, validate=True)
        except (binascii.Error, ValueError) as e:
            raise MalformedWireFormat(f"Invalid base64 blob: {e}") from e
    raise MalformedWireFormat(f"Expected binary data, got {type(value).__name__}.")


def to_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")
