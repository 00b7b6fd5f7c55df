"""
Temporary access URLs for individual videos.

The issuer never checks that the key exists. A missing object only
shows up when the client follows the signed URL and the backend
answers 404.
"""

import logging

from .keys import decode_key
from .lister import StorageGateway
from .models import SignedAccessUrl

logger = logging.getLogger(__name__)

SIGNED_URL_TTL_SECONDS = 3600


class AccessIssuer:
    """Turns a client-supplied encoded key into a presigned GET URL."""

    def __init__(self, storage: StorageGateway) -> None:
        self._storage = storage

    async def issue(self, raw_encoded_key: str) -> SignedAccessUrl:
        """
        Decode the key and ask the backend to sign a GET for it.

        Raises InvalidKeyEncoding before any backend call if the key is
        malformed, BackendUnavailable if signing fails.
        """
        key = decode_key(raw_encoded_key)

        url = await self._storage.sign_get(key, ttl_seconds=SIGNED_URL_TTL_SECONDS)

        logger.debug(
            "Issued signed URL",
            extra={"key": key, "expires_in": SIGNED_URL_TTL_SECONDS},
        )

        return SignedAccessUrl(
            key=key,
            url=url,
            expires_in_seconds=SIGNED_URL_TTL_SECONDS,
        )
