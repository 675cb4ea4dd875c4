"""
HandleRegistry - Revocable references to encoded payloads.
"""

import logging
import uuid
from typing import Dict, Optional, Tuple

from .errors import HandleRevokedError

HANDLE_SCHEME = 'blob:'


class HandleRegistry:
    """
    Issues opaque ``blob:`` handles for payloads used in previews and downloads.

    A handle resolves until it is revoked; afterwards it is gone for good.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self._entries: Dict[str, Tuple[bytes, str]] = {}
        self.created = 0
        self.revoked = 0

    def create(self, payload: bytes, content_type: str) -> str:
        handle = f"{HANDLE_SCHEME}{uuid.uuid4()}"
        self._entries[handle] = (payload, content_type)
        self.created += 1
        return handle

    def revoke(self, handle: Optional[str]) -> bool:
        """Revoke ``handle``. Returns False if it was not live."""
        if handle is None or handle not in self._entries:
            return False
        del self._entries[handle]
        self.revoked += 1
        self.logger.debug(f"Revoked {handle}")
        return True

    def replace(self, old: Optional[str], payload: bytes, content_type: str) -> str:
        """Revoke ``old`` and issue a handle for ``payload`` in one step."""
        self.revoke(old)
        return self.create(payload, content_type)

    def resolve(self, handle: str) -> bytes:
        """
        Return the payload behind ``handle``.

        Raises:
            HandleRevokedError: If the handle is unknown or revoked
        """
        try:
            return self._entries[handle][0]
        except KeyError:
            raise HandleRevokedError(f"Handle is not live: {handle}") from None

    def content_type(self, handle: str) -> str:
        try:
            return self._entries[handle][1]
        except KeyError:
            raise HandleRevokedError(f"Handle is not live: {handle}") from None

    def is_live(self, handle: Optional[str]) -> bool:
        return handle is not None and handle in self._entries

    @property
    def live_count(self) -> int:
        return len(self._entries)

    def __contains__(self, handle: str) -> bool:
        return self.is_live(handle)
