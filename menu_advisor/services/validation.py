"""
validation.py

Upload checks that run before any image processing.

This file:
- Knows which image MIME types the service accepts
- Compares the first bytes of an upload with the signature of its declared type

This file does NOT:
- Decode images (a file with a valid header can still be corrupt)
- Raise HTTP errors (the API layer decides what a failed check means)
"""

from typing import Dict

# Leading bytes ("magic bytes") for every accepted image type
MAGIC_BYTES: Dict[str, bytes] = {
    "image/jpeg": b"\xff\xd8\xff",
    "image/png": b"\x89PNG",
    "image/webp": b"RIFF",
    "image/gif": b"GIF8",
}

ALLOWED_MIME_TYPES = tuple(MAGIC_BYTES)


def is_allowed_mime_type(mime_type: str) -> bool:
    """Return True if the declared MIME type is on the allow-list."""
    return mime_type in MAGIC_BYTES


def validate_magic_bytes(buffer: bytes, mime_type: str) -> bool:
    """
    Check that the buffer starts with the signature of the declared type.

    Parameters:
    - buffer: uploaded file content
    - mime_type: MIME type declared by the client (e.g. "image/png")

    Returns:
    - True if the signature matches, False for an unknown type,
      a short buffer, or any mismatch

    Examples:
    b"\\x89PNG..." declared "image/png"  -> True
    b"\\x89PNG..." declared "image/jpeg" -> False
    """

    signature = MAGIC_BYTES.get(mime_type)
    if not signature:
        return False

    return bytes(buffer[:len(signature)]) == signature
