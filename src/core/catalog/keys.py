"""
Storage key encoding.

Keys travel through URLs percent-encoded. We encode every byte outside
the RFC 3986 unreserved set, including "/", so a whole key fits in a
single path segment of the stream URL.

Decoding is strict: the standard library's unquote() passes malformed
escapes through untouched, which would let "%zz" reach the backend as a
literal key. A key with broken escapes is a client error instead.
"""

import re
from urllib.parse import quote, unquote_to_bytes

from .errors import InvalidKeyEncoding

STREAM_PATH_PREFIX = "/api/videos/stream/"

# "%" must always introduce exactly two hex digits
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def encode_key(key: str) -> str:
    """Percent-encode a key, "/" included."""
    return quote(key, safe="")


def decode_key(raw_key: str) -> str:
    """
    Percent-decode a key received from a client.

    Raises InvalidKeyEncoding if an escape is malformed or the decoded
    bytes are not valid UTF-8.
    """
    match = _BAD_ESCAPE.search(raw_key)
    if match:
        raise InvalidKeyEncoding(
            raw_key,
            f"malformed percent-escape at position {match.start()}",
        )

    try:
        return unquote_to_bytes(raw_key).decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidKeyEncoding(raw_key, f"decoded bytes are not UTF-8 ({e.reason})")


def stream_url_for(key: str) -> str:
    """Relative URL that redirects to a signed URL for this key."""
    return f"{STREAM_PATH_PREFIX}{encode_key(key)}"
