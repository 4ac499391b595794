"""In-memory store for playable media referenced by queue items."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

MEDIA_URL_PREFIX = "/api/media"


@dataclass(frozen=True)
class MediaBlob:
    data: bytes
    content_type: str = "audio/mpeg"
    filename: str | None = None


class MediaStore:
    """Holds audio blobs until no queue item references them."""

    def __init__(self) -> None:
        self._blobs: dict[str, MediaBlob] = {}

    def put(self, data: bytes, content_type: str = "audio/mpeg", filename: str | None = None) -> str:
        """Store a blob and return its reference."""
        ref = uuid.uuid4().hex
        self._blobs[ref] = MediaBlob(data=data, content_type=content_type, filename=filename)
        logger.debug(f"Stored media {ref} ({len(data)} bytes, {content_type})")
        return ref

    def get(self, ref: str) -> MediaBlob | None:
        return self._blobs.get(ref)

    def retain(self, refs: Iterable[str]) -> int:
        """Release every blob whose reference is not in *refs*. Returns count released."""
        keep = set(refs)
        released = [ref for ref in self._blobs if ref not in keep]
        for ref in released:
            del self._blobs[ref]
        if released:
            logger.debug(f"Released {len(released)} media blob(s)")
        return len(released)

    def clear(self) -> None:
        self._blobs.clear()

    def __contains__(self, ref: object) -> bool:
        return ref in self._blobs

    def __len__(self) -> int:
        return len(self._blobs)

    @staticmethod
    def url_for(ref: str) -> str:
        return f"{MEDIA_URL_PREFIX}/{ref}"
